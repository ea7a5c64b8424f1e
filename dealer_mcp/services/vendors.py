"""Vendor directory: parts suppliers, transport, finance partners and so on."""

from __future__ import annotations

from typing import Any

from dealer_mcp.constants import VENDOR_CATEGORIES, VENDOR_STATUSES
from dealer_mcp.errors import ValidationError
from dealer_mcp.services.base import EntityService, check_choice, isoformat, utc_now

_SEARCH_FIELDS = ("name", "contact_person", "email", "category")


class VendorService(EntityService):
    collection = "vendors"
    entity_name = "Vendor"
    fields = frozenset({
        "name", "contact_person", "email", "phone", "address", "city", "state",
        "zip_code", "category", "website", "rating", "status",
        "contract_start_date", "contract_end_date", "payment_terms", "notes",
        "created_at", "updated_at",
    })
    required = ("name", "category")

    def _defaults(self, record: dict[str, Any]) -> dict[str, Any]:
        now = isoformat(utc_now())
        record.setdefault("status", "active")
        record.setdefault("created_at", now)
        record.setdefault("updated_at", now)
        return record

    def _touch(self, record: dict[str, Any]) -> dict[str, Any]:
        record["updated_at"] = isoformat(utc_now())
        return record

    def _validate(self, record: dict[str, Any]) -> None:
        check_choice(record.get("category"), VENDOR_CATEGORIES, label="vendor category")
        check_choice(record.get("status"), VENDOR_STATUSES, label="vendor status")
        rating = record.get("rating")
        if rating is not None and (
            isinstance(rating, bool)
            or not isinstance(rating, (int, float))
            or not 1 <= rating <= 5
        ):
            raise ValidationError(f"Vendor rating must be between 1 and 5, got {rating!r}")

    def get_by_category(self, category: str) -> list[dict[str, Any]]:
        return self.find(lambda v: v.get("category") == category)

    def get_by_status(self, status: str) -> list[dict[str, Any]]:
        return self.find(lambda v: v.get("status") == status)

    def search(self, term: str) -> list[dict[str, Any]]:
        """Case-insensitive substring match over name, contact, email and category."""
        needle = (term or "").strip().lower()
        if not needle:
            return self.get_all()
        return self.find(
            lambda v: any(needle in str(v.get(f) or "").lower() for f in _SEARCH_FIELDS)
        )
