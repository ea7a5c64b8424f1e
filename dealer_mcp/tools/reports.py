"""Reporting and dashboard tool implementations."""

from __future__ import annotations

from dealer_mcp.services import get_services
from dealer_mcp.tools.responses import tool_result


def get_inventory_summary_impl() -> str:
    return tool_result("get_inventory_summary", lambda: get_services().reports.inventory_summary())


def get_sales_summary_impl() -> str:
    return tool_result("get_sales_summary", lambda: get_services().reports.sales_summary())


def get_leads_by_source_impl() -> str:
    return tool_result("get_leads_by_source", lambda: get_services().reports.leads_by_source())


def get_dashboard_summary_impl() -> str:
    return tool_result("get_dashboard_summary", lambda: get_services().reports.dashboard_summary())


def get_floorplan_analysis_impl() -> str:
    return tool_result("get_floorplan_analysis", lambda: get_services().reports.floorplan_analysis())


def get_loyalty_program_impl() -> str:
    return tool_result("get_loyalty_program", lambda: get_services().reports.loyalty_program())
