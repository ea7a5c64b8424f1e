"""Dealership branches."""

from __future__ import annotations

from typing import Any

from dealer_mcp.constants import BRANCH_STATUSES
from dealer_mcp.services.base import EntityService, check_choice, isoformat, utc_now


class BranchService(EntityService):
    collection = "branches"
    entity_name = "Branch"
    fields = frozenset({
        "name", "code", "address", "city", "state", "zip_code",
        "phone", "manager", "status", "created_at", "updated_at",
    })
    required = ("name",)

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
        check_choice(record.get("status"), BRANCH_STATUSES, label="branch status")

    def get_active(self) -> list[dict[str, Any]]:
        return self.find(lambda b: b.get("status") == "active")
