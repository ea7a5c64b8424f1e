"""Lead follow-up and recommendation tool implementations."""

from __future__ import annotations

from typing import Any

from dealer_mcp.services import get_services
from dealer_mcp.tools.responses import tool_result


def add_contact_history_impl(*, lead_id: Any, contact_type: str, notes: str = "") -> str:
    if not contact_type.strip():
        return "Error: contact type is required."
    return tool_result(
        "add_contact_history",
        lambda: get_services().leads.add_contact_history(
            lead_id, {"type": contact_type.strip(), "notes": notes}
        ),
    )


def schedule_lead_appointment_impl(
    *,
    lead_id: Any,
    appointment_type: str,
    date: str,
    vehicle_id: Any = None,
    notes: str = "",
) -> str:
    if not appointment_type.strip():
        return "Error: appointment type is required."
    if not date.strip():
        return "Error: appointment date is required."
    appointment: dict[str, Any] = {"type": appointment_type.strip(), "date": date.strip()}
    if vehicle_id is not None:
        appointment["vehicle_id"] = vehicle_id
    if notes:
        appointment["notes"] = notes
    return tool_result(
        "schedule_lead_appointment",
        lambda: get_services().leads.schedule_appointment(lead_id, appointment),
    )


def get_vehicle_recommendations_impl(lead_id: Any) -> str:
    """Top six available vehicles for a lead, with scores and payment estimates."""
    return tool_result(
        "get_vehicle_recommendations",
        lambda: get_services().leads.get_vehicle_recommendations(lead_id),
    )
