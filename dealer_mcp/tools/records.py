"""Generic CRUD tool implementations over every entity collection."""

from __future__ import annotations

from typing import Any

from dealer_mcp.services import get_services
from dealer_mcp.tools.responses import tool_result

ENTITY_NAMES: tuple[str, ...] = (
    "vehicles",
    "branches",
    "leads",
    "deals",
    "invoices",
    "reconditioning",
    "technicians",
    "vendors",
)


def _check_entity(entity: str) -> str | None:
    if entity not in ENTITY_NAMES:
        return f"Error: unknown entity '{entity}'. Expected one of: {', '.join(ENTITY_NAMES)}."
    return None


def list_records_impl(entity: str, *, status: str = "", limit: int = 0) -> str:
    """Return every record of ``entity``, optionally filtered by exact status."""
    error = _check_entity(entity)
    if error:
        return error
    if limit < 0:
        return "Error: limit must be greater than or equal to 0."

    def _list() -> dict[str, Any]:
        records = get_services().entity(entity).get_all()
        if status:
            records = [r for r in records if r.get("status") == status]
        total = len(records)
        if limit:
            records = records[:limit]
        return {"entity": entity, "count": total, "records": records}

    return tool_result(f"list_{entity}", _list)


def get_record_impl(entity: str, record_id: Any) -> str:
    error = _check_entity(entity)
    if error:
        return error
    return tool_result(f"get_{entity}", lambda: get_services().entity(entity).get_by_id(record_id))


def create_record_impl(entity: str, data: Any) -> str:
    error = _check_entity(entity)
    if error:
        return error
    if not isinstance(data, dict):
        return "Error: record payload must be a dict."
    return tool_result(f"create_{entity}", lambda: get_services().entity(entity).create(data))


def update_record_impl(entity: str, record_id: Any, patch: Any) -> str:
    error = _check_entity(entity)
    if error:
        return error
    if not isinstance(patch, dict) or not patch:
        return "Error: patch must be a non-empty dict."
    return tool_result(
        f"update_{entity}",
        lambda: get_services().entity(entity).update(record_id, patch),
    )


def delete_record_impl(entity: str, record_id: Any) -> str:
    error = _check_entity(entity)
    if error:
        return error
    return tool_result(f"delete_{entity}", lambda: get_services().entity(entity).delete(record_id))
