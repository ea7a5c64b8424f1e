"""Error taxonomy shared by every service.

Services raise; tool implementations turn these into user-facing messages.
"""

from __future__ import annotations

import re
from typing import Any

_INT_PATTERN = re.compile(r"-?[0-9]+")


class DealerError(RuntimeError):
    """Base error with a stable machine-readable code."""

    code = "DEALER_ERROR"

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": True,
            "code": self.code,
            "message": str(self),
            "details": self.details,
        }


class NotFoundError(DealerError):
    """The requested record does not exist in its collection."""

    code = "NOT_FOUND"


class ValidationError(DealerError):
    """Input data is incomplete or out of range."""

    code = "VALIDATION_ERROR"


class DomainConflictError(DealerError):
    """The operation is not allowed in the record's current state."""

    code = "DOMAIN_CONFLICT"


class InvalidArgumentError(DealerError):
    """An argument could not be interpreted (e.g. a non-integer id)."""

    code = "INVALID_ARGUMENT"


def coerce_id(value: Any, *, label: str = "id") -> int:
    """Interpret ``value`` as an integer record id."""
    if isinstance(value, bool):
        raise InvalidArgumentError(f"Invalid {label}: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        if _INT_PATTERN.fullmatch(value.strip()):
            return int(value.strip())
    raise InvalidArgumentError(f"Invalid {label}: {value!r}")
