"""Marketplace listing tool implementations (async)."""

from __future__ import annotations

from typing import Any

from dealer_mcp.constants import LISTING_PLATFORMS
from dealer_mcp.services import get_services
from dealer_mcp.tools.responses import async_tool_result


def _check_platform(platform: str) -> str | None:
    if platform not in LISTING_PLATFORMS:
        return f"Error: unknown platform '{platform}'. Expected one of: {', '.join(LISTING_PLATFORMS)}."
    return None


async def publish_listing_impl(*, vehicle_id: Any, platform: str) -> str:
    error = _check_platform(platform)
    if error:
        return error
    return await async_tool_result(
        "publish_listing",
        lambda: get_services().listings.publish(vehicle_id, platform),
    )


async def update_listing_impl(*, vehicle_id: Any, platform: str) -> str:
    error = _check_platform(platform)
    if error:
        return error
    return await async_tool_result(
        "update_listing",
        lambda: get_services().listings.update_listing(vehicle_id, platform),
    )


async def remove_listing_impl(*, vehicle_id: Any, platform: str) -> str:
    error = _check_platform(platform)
    if error:
        return error
    return await async_tool_result(
        "remove_listing",
        lambda: get_services().listings.remove(vehicle_id, platform),
    )


async def publish_to_all_impl(vehicle_id: Any) -> str:
    async def _call() -> dict[str, Any]:
        results = await get_services().listings.publish_to_all(vehicle_id)
        return {
            "vehicle_id": vehicle_id,
            "published": sum(1 for r in results if r["success"]),
            "failed": sum(1 for r in results if not r["success"]),
            "results": results,
        }

    return await async_tool_result("publish_to_all", _call)


async def get_listing_analytics_impl(vehicle_id: Any) -> str:
    async def _call() -> dict[str, Any]:
        analytics = await get_services().listings.get_listing_analytics(vehicle_id)
        return {"vehicle_id": vehicle_id, "platforms": analytics}

    return await async_tool_result("get_listing_analytics", _call)
