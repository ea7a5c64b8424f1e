"""Entity services bound to the active database.

``get_services()`` returns the process-wide bundle; services resolve the
database on every call, so ``set_database`` in tests takes effect at once.
"""

from __future__ import annotations

from dataclasses import dataclass

from dealer_mcp.config import DealerConfig, load_config
from dealer_mcp.data.database import Database
from dealer_mcp.services.base import EntityService
from dealer_mcp.services.branches import BranchService
from dealer_mcp.services.deals import DealService
from dealer_mcp.services.invoices import InvoiceService
from dealer_mcp.services.leads import LeadService
from dealer_mcp.services.listings import ListingService
from dealer_mcp.services.reconditioning import ReconditioningService, TechnicianService
from dealer_mcp.services.reports import ReportService
from dealer_mcp.services.vehicles import VehicleService
from dealer_mcp.services.vendors import VendorService


@dataclass
class DealerServices:
    config: DealerConfig
    vehicles: VehicleService
    branches: BranchService
    leads: LeadService
    deals: DealService
    invoices: InvoiceService
    reconditioning: ReconditioningService
    technicians: TechnicianService
    vendors: VendorService
    listings: ListingService
    reports: ReportService

    @classmethod
    def build(
        cls,
        config: DealerConfig | None = None,
        database: Database | None = None,
    ) -> DealerServices:
        config = config or DealerConfig()
        return cls(
            config=config,
            vehicles=VehicleService(database, config),
            branches=BranchService(database, config),
            leads=LeadService(database, config),
            deals=DealService(database, config),
            invoices=InvoiceService(database, config),
            reconditioning=ReconditioningService(database, config),
            technicians=TechnicianService(database, config),
            vendors=VendorService(database, config),
            listings=ListingService(database, config),
            reports=ReportService(database, config),
        )

    def entity(self, name: str) -> EntityService:
        """CRUD service for a collection name such as ``"vehicles"``."""
        service = getattr(self, name, None)
        if not isinstance(service, EntityService):
            raise KeyError(f"Unknown entity '{name}'")
        return service


_services: DealerServices | None = None


def get_services() -> DealerServices:
    global _services  # noqa: PLW0603
    if _services is None:
        _services = DealerServices.build(load_config())
    return _services


def set_services(services: DealerServices | None) -> None:
    """Inject a services bundle, or ``None`` to rebuild from config on next use."""
    global _services  # noqa: PLW0603
    _services = services


__all__ = [
    "BranchService",
    "DealService",
    "DealerServices",
    "EntityService",
    "InvoiceService",
    "LeadService",
    "ListingService",
    "ReconditioningService",
    "ReportService",
    "TechnicianService",
    "VehicleService",
    "VendorService",
    "get_services",
    "set_services",
]
