"""Vendor directory tool implementations."""

from __future__ import annotations

from typing import Any

from dealer_mcp.services import get_services
from dealer_mcp.tools.responses import tool_result


def search_vendors_impl(*, term: str = "", category: str = "", status: str = "") -> str:
    """Free-text search, narrowed by exact category and status when given."""

    def _call() -> dict[str, Any]:
        vendors = get_services().vendors
        results = vendors.search(term)
        if category:
            results = [v for v in results if v.get("category") == category]
        if status:
            results = [v for v in results if v.get("status") == status]
        return {
            "filters": {"term": term, "category": category, "status": status},
            "count": len(results),
            "vendors": results,
        }

    return tool_result("search_vendors", _call)
