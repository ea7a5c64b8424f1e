"""Publishing vehicles to marketplaces and tracking the result on the vehicle."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from dealer_mcp.clients.listings import ListingPublisher, build_publisher
from dealer_mcp.config import DealerConfig
from dealer_mcp.constants import AUTOTRADER_PLATFORM, CARS_COM_PLATFORM, LISTING_PLATFORMS
from dealer_mcp.data.database import Database
from dealer_mcp.errors import DomainConflictError
from dealer_mcp.services.base import check_choice
from dealer_mcp.services.vehicles import VehicleService

logger = logging.getLogger(__name__)

PLATFORM_NAMES = {CARS_COM_PLATFORM: "Cars.com", AUTOTRADER_PLATFORM: "AutoTrader"}

PublisherFactory = Callable[[str], ListingPublisher]


class ListingService:
    def __init__(
        self,
        database: Database | None = None,
        config: DealerConfig | None = None,
        publisher_factory: PublisherFactory | None = None,
    ) -> None:
        self.config = config or DealerConfig()
        self.vehicles = VehicleService(database, self.config)
        self._publisher_factory = publisher_factory or (
            lambda platform: build_publisher(platform, self.config)
        )

    def _listing_id(self, vehicle_id: Any, platform: str) -> str:
        publication = self.vehicles.get_publication_status(vehicle_id).get(platform) or {}
        listing_id = publication.get("listing_id")
        if not listing_id:
            raise DomainConflictError(
                f"No {PLATFORM_NAMES[platform]} listing found for vehicle {vehicle_id}",
                details={"vehicle_id": vehicle_id, "platform": platform},
            )
        return listing_id

    async def publish(self, vehicle_id: Any, platform: str) -> dict[str, Any]:
        """pending -> published, or failed if the marketplace call raises."""
        check_choice(platform, LISTING_PLATFORMS, label="platform")
        vehicle = self.vehicles.get_by_id(vehicle_id)
        self.vehicles.update_publication_status(vehicle["id"], platform, "pending")
        try:
            async with self._publisher_factory(platform) as publisher:
                result = await publisher.publish(vehicle)
        except Exception as exc:
            logger.warning(
                "Publishing vehicle %s to %s failed: %s",
                vehicle["id"], PLATFORM_NAMES[platform], exc,
            )
            self.vehicles.update_publication_status(vehicle["id"], platform, "failed")
            raise

        self.vehicles.update_publication_status(
            vehicle["id"],
            platform,
            "published",
            listing_id=result["listing_id"],
            listing_url=result.get("url"),
        )
        logger.info(
            "Published vehicle %s to %s as %s",
            vehicle["id"], PLATFORM_NAMES[platform], result["listing_id"],
        )
        return {
            "success": True,
            "platform": platform,
            "listing_id": result["listing_id"],
            "listing_url": result.get("url"),
        }

    async def update_listing(self, vehicle_id: Any, platform: str) -> dict[str, Any]:
        """Push the vehicle's current details to an existing listing."""
        check_choice(platform, LISTING_PLATFORMS, label="platform")
        vehicle = self.vehicles.get_by_id(vehicle_id)
        listing_id = self._listing_id(vehicle["id"], platform)
        listing_url = vehicle["publications"][platform].get("listing_url")
        async with self._publisher_factory(platform) as publisher:
            await publisher.update(listing_id, vehicle)
        self.vehicles.update_publication_status(
            vehicle["id"], platform, "published", listing_id=listing_id, listing_url=listing_url,
        )
        return {"success": True, "platform": platform, "listing_id": listing_id}

    async def remove(self, vehicle_id: Any, platform: str) -> dict[str, Any]:
        check_choice(platform, LISTING_PLATFORMS, label="platform")
        listing_id = self._listing_id(vehicle_id, platform)
        async with self._publisher_factory(platform) as publisher:
            await publisher.remove(listing_id)
        self.vehicles.update_publication_status(vehicle_id, platform, "removed")
        logger.info("Removed %s listing %s", PLATFORM_NAMES[platform], listing_id)
        return {"success": True, "platform": platform, "listing_id": listing_id}

    async def publish_to_all(self, vehicle_id: Any) -> list[dict[str, Any]]:
        """Publish to every platform; one failure does not stop the others."""
        results = []
        for platform in LISTING_PLATFORMS:
            try:
                results.append(await self.publish(vehicle_id, platform))
            except Exception as exc:
                results.append({"success": False, "platform": platform, "error": str(exc)})
        return results

    async def get_listing_analytics(self, vehicle_id: Any) -> dict[str, Any]:
        analytics: dict[str, Any] = {}
        publications = self.vehicles.get_publication_status(vehicle_id)
        for platform in LISTING_PLATFORMS:
            listing_id = (publications.get(platform) or {}).get("listing_id")
            if not listing_id:
                continue
            async with self._publisher_factory(platform) as publisher:
                analytics[platform] = await publisher.stats(listing_id)
        return analytics
