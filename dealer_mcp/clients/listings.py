"""Marketplace listing publishers (Cars.com, AutoTrader).

Every publisher is an async context manager exposing ``publish``, ``update``,
``remove`` and ``stats``. The simulated publisher is used unless the
platform's API key is configured, in which case the aiohttp client is used.
"""

from __future__ import annotations

import itertools
import json
import logging
import random
import time
from typing import Any, Protocol, runtime_checkable

import aiohttp

from dealer_mcp.config import DealerConfig
from dealer_mcp.constants import AUTOTRADER_PLATFORM, CARS_COM_PLATFORM
from dealer_mcp.errors import DealerError, ValidationError

logger = logging.getLogger(__name__)

_REQUEST_TIMEOUT = aiohttp.ClientTimeout(total=12)


class ListingClientError(DealerError):
    """Raised for marketplace request/config errors, with the HTTP status when known."""

    code = "LISTING_CLIENT_ERROR"

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        status: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code=code, details=details)
        self.status = status

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "status": self.status}


@runtime_checkable
class ListingPublisher(Protocol):
    platform: str

    async def __aenter__(self) -> ListingPublisher: ...
    async def __aexit__(self, *args: Any) -> None: ...
    async def publish(self, vehicle: dict[str, Any]) -> dict[str, Any]: ...
    async def update(self, listing_id: str, vehicle: dict[str, Any]) -> dict[str, Any]: ...
    async def remove(self, listing_id: str) -> dict[str, Any]: ...
    async def stats(self, listing_id: str) -> dict[str, Any]: ...


# ── Platform payloads ───────────────────────────────────────────────


def cars_com_payload(vehicle: dict[str, Any], dealer_id: str = "") -> dict[str, Any]:
    return {
        "vin": vehicle.get("vin"),
        "year": vehicle.get("year"),
        "make": vehicle.get("make"),
        "model": vehicle.get("model"),
        "trim": vehicle.get("trim"),
        "mileage": vehicle.get("mileage"),
        "price": vehicle.get("asking_price"),
        "bodyType": vehicle.get("body_type"),
        "transmission": vehicle.get("transmission"),
        "fuelType": vehicle.get("fuel_type"),
        "color": vehicle.get("color"),
        "condition": vehicle.get("condition"),
        "description": vehicle.get("description"),
        "features": vehicle.get("features") or [],
        "dealerId": dealer_id,
        "images": vehicle.get("images") or [],
    }


def autotrader_payload(vehicle: dict[str, Any], dealer_id: str = "") -> dict[str, Any]:
    return {
        "vin": vehicle.get("vin"),
        "year": vehicle.get("year"),
        "make": vehicle.get("make"),
        "model": vehicle.get("model"),
        "trim": vehicle.get("trim"),
        "mileage": vehicle.get("mileage"),
        "askingPrice": vehicle.get("asking_price"),
        "bodyStyle": vehicle.get("body_type"),
        "transmission": vehicle.get("transmission"),
        "fuelType": vehicle.get("fuel_type"),
        "exteriorColor": vehicle.get("color"),
        "vehicleCondition": vehicle.get("condition"),
        "description": vehicle.get("description"),
        "options": vehicle.get("features") or [],
        "dealerId": dealer_id,
        "photos": vehicle.get("images") or [],
    }


_LISTING_PREFIX = {CARS_COM_PLATFORM: "CARS", AUTOTRADER_PLATFORM: "AT"}
_LISTING_URL = {
    CARS_COM_PLATFORM: "https://www.cars.com/vehicledetail/{vin}",
    AUTOTRADER_PLATFORM: "https://www.autotrader.com/cars-for-sale/vehicledetails/{vin}",
}


# ── Simulated ───────────────────────────────────────────────────────


class SimulatedListingPublisher:
    """In-process stand-in: synthetic listing ids and randomized metrics."""

    _sequence = itertools.count(1)

    def __init__(self, platform: str, *, rng: random.Random | None = None) -> None:
        if platform not in _LISTING_PREFIX:
            raise ValidationError(f"Unknown listing platform '{platform}'")
        self.platform = platform
        self._rng = rng or random.Random()

    async def __aenter__(self) -> SimulatedListingPublisher:
        return self

    async def __aexit__(self, *args: Any) -> None:
        return None

    def _listing_id(self) -> str:
        millis = int(time.time() * 1000)
        return f"{_LISTING_PREFIX[self.platform]}_{millis}{next(self._sequence):04d}"

    async def publish(self, vehicle: dict[str, Any]) -> dict[str, Any]:
        return {
            "listing_id": self._listing_id(),
            "url": _LISTING_URL[self.platform].format(vin=vehicle.get("vin") or vehicle.get("id")),
            "status": "published",
        }

    async def update(self, listing_id: str, vehicle: dict[str, Any]) -> dict[str, Any]:
        return {"listing_id": listing_id, "status": "published"}

    async def remove(self, listing_id: str) -> dict[str, Any]:
        return {"listing_id": listing_id, "status": "removed"}

    async def stats(self, listing_id: str) -> dict[str, Any]:
        if self.platform == CARS_COM_PLATFORM:
            return {
                "listing_id": listing_id,
                "status": "published",
                "views": self._rng.randrange(1000),
                "leads": self._rng.randrange(20),
            }
        return {
            "listing_id": listing_id,
            "status": "published",
            "impressions": self._rng.randrange(5000),
            "clicks": self._rng.randrange(100),
            "leads": self._rng.randrange(15),
        }


# ── HTTP ────────────────────────────────────────────────────────────


class MarketplaceClient:
    """Async client for a marketplace's dealer listing API."""

    BASE_URL = ""
    platform = ""
    display_name = ""

    def __init__(self, api_key: str, dealer_id: str = "") -> None:
        self.api_key = api_key.strip()
        self.dealer_id = dealer_id.strip()
        self.session: aiohttp.ClientSession | None = None

    def _payload(self, vehicle: dict[str, Any]) -> dict[str, Any]:
        raise NotImplementedError

    async def __aenter__(self) -> MarketplaceClient:
        if not self.api_key:
            raise ListingClientError(
                f"{self.display_name} API key is not configured.",
                code="MISSING_API_KEY",
            )
        self.session = aiohttp.ClientSession(
            headers={"Authorization": f"Bearer {self.api_key}"},
        )
        return self

    async def __aexit__(self, *args: Any) -> None:
        if self.session:
            await self.session.close()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        payload: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        if not self.session:
            raise RuntimeError("Client not entered as context manager")

        url = f"{self.BASE_URL}{path}"
        try:
            async with self.session.request(
                method,
                url,
                json=payload,
                timeout=_REQUEST_TIMEOUT,
            ) as resp:
                raw_text = await resp.text()
                body: Any = {}
                if raw_text:
                    try:
                        body = json.loads(raw_text)
                    except json.JSONDecodeError:
                        body = {"raw": raw_text}

                if resp.status >= 400:
                    message = f"{self.display_name} request failed with HTTP {resp.status}."
                    if isinstance(body, dict):
                        message = str(body.get("error") or body.get("message") or message)
                    raise ListingClientError(
                        message,
                        code="HTTP_ERROR",
                        status=resp.status,
                        details=body if isinstance(body, dict) else {"response": body},
                    )
                return body if isinstance(body, dict) else {"data": body}
        except ListingClientError:
            raise
        except TimeoutError as exc:
            raise ListingClientError(
                f"{self.display_name} request timed out.",
                code="TIMEOUT",
                details={"path": path},
            ) from exc
        except aiohttp.ClientError as exc:
            logger.error("%s client error (%s): %s", self.display_name, path, exc)
            raise ListingClientError(
                f"{self.display_name} request failed due to a network/client error.",
                code="NETWORK_ERROR",
                details={"path": path, "error": str(exc)},
            ) from exc

    async def publish(self, vehicle: dict[str, Any]) -> dict[str, Any]:
        data = await self._request("POST", "/listings", payload=self._payload(vehicle))
        listing_id = data.get("listingId") or data.get("id")
        if not listing_id:
            raise ListingClientError(
                f"{self.display_name} did not return a listing id.",
                code="BAD_RESPONSE",
                details=data,
            )
        return {
            "listing_id": str(listing_id),
            "url": data.get("listingUrl") or data.get("url"),
            "status": data.get("status", "published"),
        }

    async def update(self, listing_id: str, vehicle: dict[str, Any]) -> dict[str, Any]:
        data = await self._request("PUT", f"/listings/{listing_id}", payload=self._payload(vehicle))
        return {"listing_id": listing_id, "status": data.get("status", "published")}

    async def remove(self, listing_id: str) -> dict[str, Any]:
        data = await self._request("DELETE", f"/listings/{listing_id}")
        return {"listing_id": listing_id, "status": data.get("status", "removed")}

    async def stats(self, listing_id: str) -> dict[str, Any]:
        data = await self._request("GET", f"/listings/{listing_id}/stats")
        return {"listing_id": listing_id, **data}


class CarsComClient(MarketplaceClient):
    BASE_URL = "https://api.cars.com/dealer/v1"
    platform = CARS_COM_PLATFORM
    display_name = "Cars.com"

    def _payload(self, vehicle: dict[str, Any]) -> dict[str, Any]:
        return cars_com_payload(vehicle, self.dealer_id)


class AutoTraderClient(MarketplaceClient):
    BASE_URL = "https://api.autotrader.com/dealer/v1"
    platform = AUTOTRADER_PLATFORM
    display_name = "AutoTrader"

    def _payload(self, vehicle: dict[str, Any]) -> dict[str, Any]:
        return autotrader_payload(vehicle, self.dealer_id)


def build_publisher(platform: str, config: DealerConfig) -> ListingPublisher:
    """HTTP client when the platform key is configured, simulated publisher otherwise."""
    if platform == CARS_COM_PLATFORM and config.cars_com_api_key:
        return CarsComClient(config.cars_com_api_key, config.cars_com_dealer_id)
    if platform == AUTOTRADER_PLATFORM and config.autotrader_api_key:
        return AutoTraderClient(config.autotrader_api_key, config.autotrader_dealer_id)
    return SimulatedListingPublisher(platform)
