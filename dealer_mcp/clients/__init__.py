"""External marketplace clients."""

from dealer_mcp.clients.listings import (
    AutoTraderClient,
    CarsComClient,
    ListingClientError,
    ListingPublisher,
    SimulatedListingPublisher,
    build_publisher,
)

__all__ = [
    "AutoTraderClient",
    "CarsComClient",
    "ListingClientError",
    "ListingPublisher",
    "SimulatedListingPublisher",
    "build_publisher",
]
