"""Reports assembled from the current repositories."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from dealer_mcp.analytics import reports
from dealer_mcp.analytics.finance import calculate_floorplan_interest, get_floorplan_analysis
from dealer_mcp.analytics.loyalty import get_loyalty_program
from dealer_mcp.config import DealerConfig
from dealer_mcp.data.database import Database
from dealer_mcp.services.deals import DealService
from dealer_mcp.services.leads import LeadService
from dealer_mcp.services.vehicles import VehicleService


class ReportService:
    def __init__(
        self,
        database: Database | None = None,
        config: DealerConfig | None = None,
    ) -> None:
        self.config = config or DealerConfig()
        self.vehicles = VehicleService(database, self.config)
        self.leads = LeadService(database, self.config)
        self.deals = DealService(database, self.config)

    def inventory_summary(self) -> dict[str, Any]:
        return reports.inventory_summary(self.vehicles.get_all(), self.config.floorplan_rate)

    def sales_summary(self) -> dict[str, Any]:
        return reports.sales_summary(
            self.deals.get_all(),
            self.vehicles.get_all(),
            self.leads.get_all(),
            self.config.floorplan_rate,
        )

    def leads_by_source(self) -> dict[str, Any]:
        return reports.leads_by_source(self.leads.get_all())

    def dashboard_summary(self, now: datetime | None = None) -> dict[str, Any]:
        return reports.dashboard_summary(
            self.vehicles.get_all(), self.leads.get_all(), self.deals.get_all(), now
        )

    def floorplan_analysis(self) -> dict[str, Any]:
        return get_floorplan_analysis(
            self.vehicles.get_all(), self.deals.get_all(), self.config.floorplan_rate
        )

    def floorplan_interest(self, vehicle_id: Any) -> dict[str, Any]:
        return calculate_floorplan_interest(
            self.vehicles.get_by_id(vehicle_id), self.config.floorplan_rate
        )

    def loyalty_program(self, now: datetime | None = None) -> dict[str, Any]:
        return get_loyalty_program(self.deals.get_all(), now)
