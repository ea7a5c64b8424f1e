"""Vehicle inventory tool implementations: branches, VIN lookup, transfers."""

from __future__ import annotations

from typing import Any

from dealer_mcp.services import get_services
from dealer_mcp.tools.responses import tool_result


def get_vehicles_by_branch_impl(branch_id: Any) -> str:
    def _call() -> dict[str, Any]:
        vehicles = get_services().vehicles.get_by_branch(branch_id)
        return {"branch_id": branch_id, "count": len(vehicles), "vehicles": vehicles}

    return tool_result("get_vehicles_by_branch", _call)


def search_by_vin_impl(vin: str) -> str:
    if not vin or not vin.strip():
        return "Error: VIN is required."
    return tool_result("search_by_vin", lambda: get_services().vehicles.search_by_vin(vin))


def create_transfer_request_impl(
    *,
    vehicle_id: Any,
    to_branch_id: Any,
    reason: str = "",
    requested_by: str = "",
) -> str:
    return tool_result(
        "create_transfer_request",
        lambda: get_services().vehicles.create_transfer_request(
            vehicle_id, to_branch_id, reason=reason, requested_by=requested_by
        ),
    )


def get_transfer_requests_impl(vehicle_id: Any = None) -> str:
    def _call() -> dict[str, Any]:
        requests = get_services().vehicles.get_transfer_requests(vehicle_id)
        return {"count": len(requests), "transfer_requests": requests}

    return tool_result("get_transfer_requests", _call)


def get_publication_status_impl(vehicle_id: Any) -> str:
    return tool_result(
        "get_publication_status",
        lambda: {
            "vehicle_id": vehicle_id,
            "publications": get_services().vehicles.get_publication_status(vehicle_id),
        },
    )


def get_floorplan_interest_impl(vehicle_id: Any) -> str:
    return tool_result(
        "get_floorplan_interest",
        lambda: get_services().reports.floorplan_interest(vehicle_id),
    )
