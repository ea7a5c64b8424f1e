"""Vehicle inventory, branch assignment, transfers and marketplace publication state."""

from __future__ import annotations

import logging
from typing import Any

from dealer_mcp.constants import (
    AVAILABLE_STATUS,
    LISTING_PLATFORMS,
    PUBLICATION_STATUSES,
    VEHICLE_STATUSES,
    VIN_RE,
)
from dealer_mcp.errors import DomainConflictError, NotFoundError, ValidationError, coerce_id
from dealer_mcp.services.base import EntityService, check_choice, isoformat, utc_now
from dealer_mcp.services.branches import BranchService

logger = logging.getLogger(__name__)

DEFAULT_BRANCH_ID = 1


def normalize_vin(vin: str) -> str:
    normalized = (vin or "").strip().upper()
    if not VIN_RE.fullmatch(normalized):
        raise ValidationError(
            f"Invalid VIN '{vin}'. VIN must be exactly 17 characters "
            "(letters/digits, excluding I/O/Q)."
        )
    return normalized


class VehicleService(EntityService):
    collection = "vehicles"
    entity_name = "Vehicle"
    fields = frozenset({
        "vin", "year", "make", "model", "trim", "mileage", "asking_price", "cost",
        "market_value", "condition", "body_type", "fuel_type", "transmission",
        "color", "features", "description", "images", "status",
        "days_in_inventory", "branch_id", "publications",
    })
    required = ("year", "make", "model")

    def _defaults(self, record: dict[str, Any]) -> dict[str, Any]:
        record.setdefault("status", AVAILABLE_STATUS)
        record.setdefault("days_in_inventory", 0)
        record.setdefault("publications", {})
        if record.get("branch_id") is None:
            record["branch_id"] = DEFAULT_BRANCH_ID
        return record

    def _validate(self, record: dict[str, Any]) -> None:
        check_choice(record.get("status"), VEHICLE_STATUSES, label="vehicle status")
        days = record.get("days_in_inventory")
        if isinstance(days, bool) or not isinstance(days, int) or days < 0:
            raise ValidationError(
                f"days_in_inventory must be a non-negative integer, got {days!r}"
            )
        if record.get("vin"):
            record["vin"] = normalize_vin(record["vin"])
        for field in ("asking_price", "cost", "market_value", "mileage"):
            value = record.get(field)
            if value is not None and (not isinstance(value, (int, float)) or value < 0):
                raise ValidationError(f"{field} must be a non-negative number, got {value!r}")

    def _on_read(self, record: dict[str, Any]) -> dict[str, Any]:
        if record.get("branch_id") is None:
            record["branch_id"] = DEFAULT_BRANCH_ID
        return record

    # ── Inventory queries ──────────────────────────────────────────

    def get_available(self) -> list[dict[str, Any]]:
        return self.find(lambda v: v.get("status") == AVAILABLE_STATUS)

    def get_by_branch(self, branch_id: Any) -> list[dict[str, Any]]:
        bid = coerce_id(branch_id, label="branch id")
        return self.find(lambda v: v["branch_id"] == bid)

    def search_by_vin(self, vin: str) -> dict[str, Any]:
        normalized = normalize_vin(vin)
        for vehicle in self.get_all():
            if str(vehicle.get("vin") or "").upper() == normalized:
                return vehicle
        raise NotFoundError(f"No vehicle with VIN {normalized}", details={"vin": normalized})

    # ── Transfers ──────────────────────────────────────────────────

    def create_transfer_request(
        self,
        vehicle_id: Any,
        to_branch_id: Any,
        *,
        reason: str = "",
        requested_by: str = "",
    ) -> dict[str, Any]:
        """Record a request to move a vehicle to another branch."""
        vehicle = self.get_by_id(vehicle_id)
        branches = BranchService(self._database, self.config)
        from_branch = branches.get_by_id(vehicle["branch_id"])
        to_branch = branches.get_by_id(to_branch_id)
        if to_branch["id"] == from_branch["id"]:
            raise DomainConflictError(
                f"Vehicle {vehicle['id']} is already at branch {from_branch['id']}",
                details={"vehicle_id": vehicle["id"], "branch_id": from_branch["id"]},
            )
        if to_branch.get("status") != "active":
            raise DomainConflictError(f"Branch {to_branch['id']} is not active")

        request = self.database.store("transfers").insert({
            "vehicle_id": vehicle["id"],
            "from_branch_id": from_branch["id"],
            "to_branch_id": to_branch["id"],
            "reason": reason,
            "requested_by": requested_by,
            "status": "Requested",
            "requested_at": isoformat(utc_now()),
        })
        logger.info(
            "Transfer requested for vehicle %s: branch %s -> %s",
            vehicle["id"], from_branch["id"], to_branch["id"],
        )
        return request

    def get_transfer_requests(self, vehicle_id: Any = None) -> list[dict[str, Any]]:
        requests = self.database.store("transfers").all()
        if vehicle_id is None:
            return requests
        vid = coerce_id(vehicle_id, label="vehicle id")
        return [r for r in requests if r["vehicle_id"] == vid]

    # ── Publication state ──────────────────────────────────────────

    def update_publication_status(
        self,
        vehicle_id: Any,
        platform: str,
        status: str,
        listing_id: str | None = None,
        listing_url: str | None = None,
    ) -> dict[str, Any]:
        check_choice(platform, LISTING_PLATFORMS, label="platform")
        check_choice(status, PUBLICATION_STATUSES, label="publication status")
        vehicle = self.get_by_id(vehicle_id)
        now = isoformat(utc_now())
        publications = dict(vehicle.get("publications") or {})
        publications[platform] = {
            "status": status,
            "listing_id": listing_id,
            "listing_url": listing_url,
            "published_at": now if status == "published" else None,
            "last_updated": now,
        }
        vehicle["publications"] = publications
        return self._save(vehicle)

    def get_publication_status(self, vehicle_id: Any) -> dict[str, Any]:
        return self.get_by_id(vehicle_id).get("publications") or {}
