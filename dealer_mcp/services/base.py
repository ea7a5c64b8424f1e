"""Shared CRUD behaviour for every entity service.

Each service binds to one collection of the active :class:`Database`. The
database is resolved on every call so tests can swap it with
``set_database`` without rebuilding services.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import datetime, timezone
from typing import Any

from dealer_mcp.config import DealerConfig
from dealer_mcp.data.database import Database, get_database
from dealer_mcp.data.store import RecordStore
from dealer_mcp.errors import NotFoundError, ValidationError, coerce_id

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def isoformat(moment: datetime) -> str:
    return moment.isoformat()


def parse_datetime(value: Any, *, label: str = "date") -> datetime:
    """Parse an ISO-8601 string (or pass through a datetime) as an aware UTC datetime."""
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            moment = datetime.fromisoformat(text)
        except ValueError:
            raise ValidationError(f"Invalid {label}: {value!r}") from None
    else:
        raise ValidationError(f"Invalid {label}: {value!r}")
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def check_choice(value: Any, choices: Iterable[str], *, label: str) -> None:
    options = tuple(choices)
    if value not in options:
        raise ValidationError(
            f"Invalid {label} '{value}'. Expected one of: {', '.join(options)}.",
            details={"field": label, "value": value},
        )


class EntityService:
    """CRUD over one collection with field checks and per-entity defaults."""

    collection: str = ""
    entity_name: str = "Record"
    fields: frozenset[str] = frozenset()
    required: tuple[str, ...] = ()

    def __init__(
        self,
        database: Database | None = None,
        config: DealerConfig | None = None,
    ) -> None:
        self._database = database
        self.config = config or DealerConfig()

    # ── Plumbing ───────────────────────────────────────────────────

    @property
    def database(self) -> Database:
        return self._database if self._database is not None else get_database()

    @property
    def store(self) -> RecordStore:
        return self.database.store(self.collection)

    def _id(self, record_id: Any) -> int:
        return coerce_id(record_id, label=f"{self.entity_name.lower()} id")

    def _not_found(self, record_id: int) -> NotFoundError:
        return NotFoundError(
            f"{self.entity_name} {record_id} not found",
            details={"collection": self.collection, "id": record_id},
        )

    def _check_fields(self, data: Any) -> dict[str, Any]:
        if not isinstance(data, dict):
            raise ValidationError(f"{self.entity_name} payload must be an object")
        unknown = sorted(set(data) - self.fields - {"id"})
        if unknown:
            raise ValidationError(
                f"Unknown {self.entity_name.lower()} field(s): {', '.join(unknown)}",
                details={"fields": unknown},
            )
        return {k: v for k, v in data.items() if k != "id"}

    def _check_required(self, record: dict[str, Any]) -> None:
        missing = [f for f in self.required if record.get(f) in (None, "")]
        if missing:
            raise ValidationError(
                f"Missing required {self.entity_name.lower()} field(s): {', '.join(missing)}",
                details={"fields": missing},
            )

    # ── Hooks ──────────────────────────────────────────────────────

    def _defaults(self, record: dict[str, Any]) -> dict[str, Any]:
        """Fill entity defaults on create."""
        return record

    def _touch(self, record: dict[str, Any]) -> dict[str, Any]:
        """Refresh bookkeeping fields on update."""
        return record

    def _validate(self, record: dict[str, Any]) -> None:
        """Raise ValidationError when a merged record breaks an entity rule."""

    def _on_read(self, record: dict[str, Any]) -> dict[str, Any]:
        return record

    # ── CRUD ───────────────────────────────────────────────────────

    def get_all(self) -> list[dict[str, Any]]:
        return [self._on_read(r) for r in self.store.all()]

    def get_by_id(self, record_id: Any) -> dict[str, Any]:
        rid = self._id(record_id)
        record = self.store.get(rid)
        if record is None:
            raise self._not_found(rid)
        return self._on_read(record)

    def find(self, predicate: Callable[[dict[str, Any]], bool]) -> list[dict[str, Any]]:
        return [r for r in self.get_all() if predicate(r)]

    def create(self, data: dict[str, Any]) -> dict[str, Any]:
        record = self._defaults(self._check_fields(data))
        self._check_required(record)
        self._validate(record)
        created = self.store.insert(record)
        logger.debug("Created %s %s", self.entity_name.lower(), created["id"])
        return self._on_read(created)

    def update(self, record_id: Any, patch: dict[str, Any]) -> dict[str, Any]:
        changes = self._check_fields(patch)
        existing = self.get_by_id(record_id)
        merged = self._touch({**existing, **changes})
        self._validate(merged)
        return self._save(merged)

    def delete(self, record_id: Any) -> dict[str, Any]:
        rid = self._id(record_id)
        removed = self.store.delete(rid)
        if removed is None:
            raise self._not_found(rid)
        logger.debug("Deleted %s %s", self.entity_name.lower(), rid)
        return removed

    def _save(self, record: dict[str, Any]) -> dict[str, Any]:
        """Write a full record back. Used by domain operations after a merge."""
        saved = self.store.replace(record["id"], record)
        if saved is None:
            raise self._not_found(record["id"])
        return self._on_read(saved)
