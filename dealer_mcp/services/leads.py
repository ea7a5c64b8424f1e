"""Sales leads: contact history, appointments and vehicle recommendations."""

from __future__ import annotations

import logging
from typing import Any

from dealer_mcp.analytics.recommendations import get_vehicle_recommendations
from dealer_mcp.constants import LEAD_STATUSES
from dealer_mcp.errors import ValidationError
from dealer_mcp.services.base import EntityService, check_choice, isoformat, utc_now

logger = logging.getLogger(__name__)

DEFAULT_LEAD_SCORE = 50


class LeadService(EntityService):
    collection = "leads"
    entity_name = "Lead"
    fields = frozenset({
        "name", "email", "phone", "source", "status", "lead_score", "budget",
        "trade_in", "interested_vehicles", "contact_history", "appointments",
        "last_contact", "assigned_to", "notes", "created_at",
    })
    required = ("name",)

    def _defaults(self, record: dict[str, Any]) -> dict[str, Any]:
        record.setdefault("status", "New")
        record.setdefault("lead_score", DEFAULT_LEAD_SCORE)
        record.setdefault("trade_in", False)
        record.setdefault("interested_vehicles", [])
        record.setdefault("contact_history", [])
        record.setdefault("appointments", [])
        record.setdefault("created_at", isoformat(utc_now()))
        return record

    def _validate(self, record: dict[str, Any]) -> None:
        check_choice(record.get("status"), LEAD_STATUSES, label="lead status")
        score = record.get("lead_score")
        if score is not None and (
            isinstance(score, bool)
            or not isinstance(score, (int, float))
            or not 0 <= score <= 100
        ):
            raise ValidationError(f"lead_score must be between 0 and 100, got {score!r}")
        budget = record.get("budget")
        if budget is not None and (not isinstance(budget, (int, float)) or budget < 0):
            raise ValidationError(f"budget must be a non-negative number, got {budget!r}")

    def get_by_status(self, status: str) -> list[dict[str, Any]]:
        return self.find(lambda lead: lead.get("status") == status)

    def add_contact_history(self, lead_id: Any, contact: dict[str, Any]) -> dict[str, Any]:
        """Prepend a contact event (newest first) and stamp ``last_contact``."""
        if not isinstance(contact, dict):
            raise ValidationError("Contact entry must be an object")
        lead = self.get_by_id(lead_id)
        now = isoformat(utc_now())
        history = list(lead.get("contact_history") or [])
        history.insert(0, {**contact, "date": now})
        lead["contact_history"] = history
        lead["last_contact"] = now
        return self._save(lead)

    def schedule_appointment(self, lead_id: Any, appointment: dict[str, Any]) -> dict[str, Any]:
        if not isinstance(appointment, dict):
            raise ValidationError("Appointment must be an object")
        lead = self.get_by_id(lead_id)
        appointments = list(lead.get("appointments") or [])
        appointments.append({**appointment, "status": "Scheduled"})
        lead["appointments"] = appointments
        saved = self._save(lead)
        logger.info("Scheduled appointment for lead %s", saved["id"])
        return saved

    def get_vehicle_recommendations(
        self,
        lead_id: Any,
        vehicles: list[dict[str, Any]] | None = None,
        deals: list[dict[str, Any]] | None = None,
    ) -> dict[str, Any]:
        """Rank available inventory for a lead. Loads vehicles/deals when not given."""
        lead = self.get_by_id(lead_id)
        if vehicles is None:
            vehicles = self.database.store("vehicles").all()
        if deals is None:
            deals = self.database.store("deals").all()
        return get_vehicle_recommendations(lead, vehicles, deals)
