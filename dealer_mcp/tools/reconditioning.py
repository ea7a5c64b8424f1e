"""Reconditioning scheduling and technician tool implementations."""

from __future__ import annotations

from typing import Any

from dealer_mcp.services import get_services
from dealer_mcp.services.reconditioning import get_service_types
from dealer_mcp.tools.responses import build_response, tool_result


def get_service_types_impl() -> str:
    return build_response("get_service_types", {"service_types": get_service_types()})


def schedule_reconditioning_impl(
    *,
    vehicle_id: Any,
    service_type: str,
    start_date: str,
    technician_id: Any,
    priority: str = "Medium",
    notes: str = "",
) -> str:
    if not service_type.strip():
        return "Error: service type is required."
    if not start_date.strip():
        return "Error: start date is required."
    return tool_result(
        "schedule_reconditioning",
        lambda: get_services().reconditioning.schedule_appointment(
            vehicle_id,
            service_type.strip(),
            start_date.strip(),
            technician_id,
            priority=priority,
            notes=notes,
        ),
    )


def update_reconditioning_status_impl(*, appointment_id: Any, status: str) -> str:
    return tool_result(
        "update_reconditioning_status",
        lambda: get_services().reconditioning.transition_status(appointment_id, status),
    )


def update_checklist_item_impl(*, appointment_id: Any, index: int, completed: bool = True) -> str:
    return tool_result(
        "update_checklist_item",
        lambda: get_services().reconditioning.update_checklist_item(
            appointment_id, index, completed
        ),
    )


def get_reconditioning_for_vehicle_impl(vehicle_id: Any) -> str:
    def _call() -> dict[str, Any]:
        appointments = get_services().reconditioning.get_by_vehicle_id(vehicle_id)
        return {"vehicle_id": vehicle_id, "count": len(appointments), "appointments": appointments}

    return tool_result("get_reconditioning_for_vehicle", _call)


def get_available_technicians_impl() -> str:
    def _call() -> dict[str, Any]:
        technicians = get_services().technicians.get_available()
        return {"count": len(technicians), "technicians": technicians}

    return tool_result("get_available_technicians", _call)


def update_technician_status_impl(*, technician_id: Any, status: str) -> str:
    return tool_result(
        "update_technician_status",
        lambda: get_services().technicians.update_status(technician_id, status),
    )
