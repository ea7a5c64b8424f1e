"""Dealer back office MCP server. FastMCP entry point."""

from __future__ import annotations

import logging
from typing import Any

from mcp.server.fastmcp import FastMCP

from dealer_mcp.config import configure_logging, load_config
from dealer_mcp.tools.deals import (
    add_deal_document_impl,
    calculate_financing_impl,
    get_customer_loyalty_impl,
    get_margin_waterfall_impl,
    remove_deal_document_impl,
)
from dealer_mcp.tools.inventory import (
    create_transfer_request_impl,
    get_floorplan_interest_impl,
    get_publication_status_impl,
    get_transfer_requests_impl,
    get_vehicles_by_branch_impl,
    search_by_vin_impl,
)
from dealer_mcp.tools.invoices import (
    check_overdue_invoices_impl,
    generate_invoice_from_deal_impl,
    generate_invoice_pdf_impl,
    get_invoice_stats_impl,
    mark_invoice_overdue_impl,
    record_payment_impl,
    send_invoice_impl,
)
from dealer_mcp.tools.leads import (
    add_contact_history_impl,
    get_vehicle_recommendations_impl,
    schedule_lead_appointment_impl,
)
from dealer_mcp.tools.listings import (
    get_listing_analytics_impl,
    publish_listing_impl,
    publish_to_all_impl,
    remove_listing_impl,
    update_listing_impl,
)
from dealer_mcp.tools.reconditioning import (
    get_available_technicians_impl,
    get_reconditioning_for_vehicle_impl,
    get_service_types_impl,
    schedule_reconditioning_impl,
    update_checklist_item_impl,
    update_reconditioning_status_impl,
    update_technician_status_impl,
)
from dealer_mcp.tools.records import (
    create_record_impl,
    delete_record_impl,
    get_record_impl,
    list_records_impl,
    update_record_impl,
)
from dealer_mcp.tools.reports import (
    get_dashboard_summary_impl,
    get_floorplan_analysis_impl,
    get_inventory_summary_impl,
    get_leads_by_source_impl,
    get_loyalty_program_impl,
    get_sales_summary_impl,
)
from dealer_mcp.tools.responses import (
    log_and_return_tool_error as _log_and_return_tool_error,
)
from dealer_mcp.tools.vendors import search_vendors_impl

mcp = FastMCP("DealerOffice")
logger = logging.getLogger(__name__)


def _retry_message(action: str) -> str:
    return f"I am having trouble {action} right now. Please try again in a moment."


# ── Records ─────────────────────────────────────────────────────────


@mcp.tool()
def list_records(entity: str, status: str = "", limit: int = 0) -> str:
    """List vehicles, branches, leads, deals, invoices, reconditioning, technicians or vendors."""
    try:
        return list_records_impl(entity, status=status, limit=limit)
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="list_records",
            exc=exc,
            user_message=_retry_message(f"listing {entity}"),
        )


@mcp.tool()
def get_record(entity: str, record_id: int) -> str:
    """Fetch one record by id from an entity collection."""
    try:
        return get_record_impl(entity, record_id)
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="get_record",
            exc=exc,
            user_message=_retry_message("loading that record"),
        )


@mcp.tool()
def create_record(entity: str, data: dict[str, Any]) -> str:
    """Create a record. Unknown fields are rejected; ids are assigned automatically."""
    try:
        return create_record_impl(entity, data)
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="create_record",
            exc=exc,
            user_message=_retry_message("saving that record"),
        )


@mcp.tool()
def update_record(entity: str, record_id: int, patch: dict[str, Any]) -> str:
    """Shallow-merge ``patch`` onto an existing record. The id cannot change."""
    try:
        return update_record_impl(entity, record_id, patch)
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="update_record",
            exc=exc,
            user_message=_retry_message("updating that record"),
        )


@mcp.tool()
def delete_record(entity: str, record_id: int) -> str:
    """Delete a record and return it. Related records are not touched."""
    try:
        return delete_record_impl(entity, record_id)
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="delete_record",
            exc=exc,
            user_message=_retry_message("deleting that record"),
        )


# ── Inventory ───────────────────────────────────────────────────────


@mcp.tool()
def get_vehicles_by_branch(branch_id: int) -> str:
    """List the vehicles held at a branch."""
    try:
        return get_vehicles_by_branch_impl(branch_id)
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="get_vehicles_by_branch",
            exc=exc,
            user_message=_retry_message("loading branch inventory"),
        )


@mcp.tool()
def search_by_vin(vin: str) -> str:
    """Find an inventory vehicle by its 17-character VIN."""
    try:
        return search_by_vin_impl(vin)
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="search_by_vin",
            exc=exc,
            user_message=_retry_message("searching by VIN"),
        )


@mcp.tool()
def create_transfer_request(
    vehicle_id: int,
    to_branch_id: int,
    reason: str = "",
    requested_by: str = "",
) -> str:
    """Request moving a vehicle to another active branch."""
    try:
        return create_transfer_request_impl(
            vehicle_id=vehicle_id,
            to_branch_id=to_branch_id,
            reason=reason,
            requested_by=requested_by,
        )
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="create_transfer_request",
            exc=exc,
            user_message=_retry_message("creating that transfer request"),
        )


@mcp.tool()
def get_transfer_requests(vehicle_id: int | None = None) -> str:
    """List inter-branch transfer requests, optionally for one vehicle."""
    try:
        return get_transfer_requests_impl(vehicle_id)
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="get_transfer_requests",
            exc=exc,
            user_message=_retry_message("loading transfer requests"),
        )


@mcp.tool()
def get_publication_status(vehicle_id: int) -> str:
    """Show where a vehicle is listed and the state of each listing."""
    try:
        return get_publication_status_impl(vehicle_id)
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="get_publication_status",
            exc=exc,
            user_message=_retry_message("loading publication status"),
        )


@mcp.tool()
def get_floorplan_interest(vehicle_id: int) -> str:
    """Floorplan interest carried on one vehicle so far."""
    try:
        return get_floorplan_interest_impl(vehicle_id)
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="get_floorplan_interest",
            exc=exc,
            user_message=_retry_message("calculating floorplan interest"),
        )


# ── Leads ───────────────────────────────────────────────────────────


@mcp.tool()
def add_contact_history(lead_id: int, contact_type: str, notes: str = "") -> str:
    """Log a contact with a lead (newest first) and update its last-contact time."""
    try:
        return add_contact_history_impl(lead_id=lead_id, contact_type=contact_type, notes=notes)
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="add_contact_history",
            exc=exc,
            user_message=_retry_message("logging that contact"),
        )


@mcp.tool()
def schedule_lead_appointment(
    lead_id: int,
    appointment_type: str,
    date: str,
    vehicle_id: int | None = None,
    notes: str = "",
) -> str:
    """Schedule a test drive, appraisal or other appointment for a lead."""
    try:
        return schedule_lead_appointment_impl(
            lead_id=lead_id,
            appointment_type=appointment_type,
            date=date,
            vehicle_id=vehicle_id,
            notes=notes,
        )
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="schedule_lead_appointment",
            exc=exc,
            user_message=_retry_message("scheduling that appointment"),
        )


@mcp.tool()
def get_vehicle_recommendations(lead_id: int) -> str:
    """Rank available vehicles for a lead with match reasons and payment estimates."""
    try:
        return get_vehicle_recommendations_impl(lead_id)
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="get_vehicle_recommendations",
            exc=exc,
            user_message=_retry_message("building recommendations"),
        )


# ── Deals & finance ─────────────────────────────────────────────────


@mcp.tool()
def add_deal_document(deal_id: int, name: str, document_type: str = "", url: str = "") -> str:
    """Attach a document reference to a deal."""
    try:
        return add_deal_document_impl(
            deal_id=deal_id, name=name, document_type=document_type, url=url
        )
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="add_deal_document",
            exc=exc,
            user_message=_retry_message("attaching that document"),
        )


@mcp.tool()
def remove_deal_document(deal_id: int, document_id: int) -> str:
    """Detach a document from a deal."""
    try:
        return remove_deal_document_impl(deal_id=deal_id, document_id=document_id)
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="remove_deal_document",
            exc=exc,
            user_message=_retry_message("removing that document"),
        )


@mcp.tool()
def get_customer_loyalty(customer_id: int) -> str:
    """Loyalty points, tier, benefits and activity for a customer."""
    try:
        return get_customer_loyalty_impl(customer_id)
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="get_customer_loyalty",
            exc=exc,
            user_message=_retry_message("calculating loyalty"),
        )


@mcp.tool()
def get_margin_waterfall(deal_id: int) -> str:
    """Gross to net margin for a deal after floorplan, reconditioning and other costs."""
    try:
        return get_margin_waterfall_impl(deal_id)
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="get_margin_waterfall",
            exc=exc,
            user_message=_retry_message("calculating the margin waterfall"),
        )


@mcp.tool()
def calculate_financing(
    principal: float,
    down_payment: float = 0.0,
    interest_rate: float = 6.5,
    term_months: int = 60,
) -> str:
    """Monthly payment, total interest and total paid for a vehicle loan."""
    try:
        return calculate_financing_impl(
            principal=principal,
            down_payment=down_payment,
            interest_rate=interest_rate,
            term_months=term_months,
        )
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="calculate_financing",
            exc=exc,
            user_message=_retry_message("calculating financing"),
        )


# ── Invoices ────────────────────────────────────────────────────────


@mcp.tool()
def generate_invoice_from_deal(deal_id: int) -> str:
    """Create the invoice for a completed deal (one per deal)."""
    try:
        return generate_invoice_from_deal_impl(deal_id)
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="generate_invoice_from_deal",
            exc=exc,
            user_message=_retry_message("generating that invoice"),
        )


@mcp.tool()
def send_invoice(invoice_id: int, email: str = "") -> str:
    """Send an invoice. Drafts move to Sent; other states are unchanged."""
    try:
        return send_invoice_impl(invoice_id=invoice_id, email=email)
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="send_invoice",
            exc=exc,
            user_message=_retry_message("sending that invoice"),
        )


@mcp.tool()
def generate_invoice_pdf(invoice_id: int) -> str:
    """Produce the (simulated) PDF file name and download link for an invoice."""
    try:
        return generate_invoice_pdf_impl(invoice_id)
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="generate_invoice_pdf",
            exc=exc,
            user_message=_retry_message("preparing that invoice PDF"),
        )


@mcp.tool()
def record_payment(invoice_id: int, amount: float, payment_method: str = "") -> str:
    """Apply a payment to an invoice and recompute its balance."""
    try:
        return record_payment_impl(
            invoice_id=invoice_id, amount=amount, payment_method=payment_method
        )
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="record_payment",
            exc=exc,
            user_message=_retry_message("recording that payment"),
        )


@mcp.tool()
def mark_invoice_overdue(invoice_id: int) -> str:
    """Mark an unpaid invoice as overdue."""
    try:
        return mark_invoice_overdue_impl(invoice_id)
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="mark_invoice_overdue",
            exc=exc,
            user_message=_retry_message("updating that invoice"),
        )


@mcp.tool()
def check_overdue_invoices() -> str:
    """Mark past-due unpaid invoices as overdue and list all overdue invoices."""
    try:
        return check_overdue_invoices_impl()
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="check_overdue_invoices",
            exc=exc,
            user_message=_retry_message("checking overdue invoices"),
        )


@mcp.tool()
def get_invoice_stats() -> str:
    """Invoice totals with status and payment-status breakdowns."""
    try:
        return get_invoice_stats_impl()
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="get_invoice_stats",
            exc=exc,
            user_message=_retry_message("loading invoice statistics"),
        )


# ── Reconditioning ──────────────────────────────────────────────────


@mcp.tool()
def get_service_types() -> str:
    """List the reconditioning service catalog with estimated hours."""
    try:
        return get_service_types_impl()
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="get_service_types",
            exc=exc,
            user_message=_retry_message("loading service types"),
        )


@mcp.tool()
def schedule_reconditioning(
    vehicle_id: int,
    service_type: str,
    start_date: str,
    technician_id: int,
    priority: str = "Medium",
    notes: str = "",
) -> str:
    """Book a reconditioning service for a vehicle with a technician."""
    try:
        return schedule_reconditioning_impl(
            vehicle_id=vehicle_id,
            service_type=service_type,
            start_date=start_date,
            technician_id=technician_id,
            priority=priority,
            notes=notes,
        )
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="schedule_reconditioning",
            exc=exc,
            user_message=_retry_message("scheduling that service"),
        )


@mcp.tool()
def update_reconditioning_status(appointment_id: int, status: str) -> str:
    """Move an appointment along Scheduled -> In Progress -> Complete, or cancel it."""
    try:
        return update_reconditioning_status_impl(appointment_id=appointment_id, status=status)
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="update_reconditioning_status",
            exc=exc,
            user_message=_retry_message("updating that appointment"),
        )


@mcp.tool()
def update_checklist_item(appointment_id: int, index: int, completed: bool = True) -> str:
    """Tick or untick one checklist item on an appointment (0-based index)."""
    try:
        return update_checklist_item_impl(
            appointment_id=appointment_id, index=index, completed=completed
        )
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="update_checklist_item",
            exc=exc,
            user_message=_retry_message("updating that checklist"),
        )


@mcp.tool()
def get_reconditioning_for_vehicle(vehicle_id: int) -> str:
    """List reconditioning appointments for a vehicle."""
    try:
        return get_reconditioning_for_vehicle_impl(vehicle_id)
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="get_reconditioning_for_vehicle",
            exc=exc,
            user_message=_retry_message("loading reconditioning history"),
        )


@mcp.tool()
def get_available_technicians() -> str:
    """List technicians currently marked Available."""
    try:
        return get_available_technicians_impl()
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="get_available_technicians",
            exc=exc,
            user_message=_retry_message("loading technicians"),
        )


@mcp.tool()
def update_technician_status(technician_id: int, status: str) -> str:
    """Set a technician to Available, Busy or Off."""
    try:
        return update_technician_status_impl(technician_id=technician_id, status=status)
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="update_technician_status",
            exc=exc,
            user_message=_retry_message("updating that technician"),
        )


# ── Vendors ─────────────────────────────────────────────────────────


@mcp.tool()
def search_vendors(term: str = "", category: str = "", status: str = "") -> str:
    """Search vendors by name, contact, email or category."""
    try:
        return search_vendors_impl(term=term, category=category, status=status)
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="search_vendors",
            exc=exc,
            user_message=_retry_message("searching vendors"),
        )


# ── Listings ────────────────────────────────────────────────────────


@mcp.tool()
async def publish_listing(vehicle_id: int, platform: str) -> str:
    """Publish a vehicle to one marketplace: carscom or autotrader."""
    try:
        return await publish_listing_impl(vehicle_id=vehicle_id, platform=platform)
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="publish_listing",
            exc=exc,
            user_message=_retry_message("publishing that listing"),
        )


@mcp.tool()
async def update_listing(vehicle_id: int, platform: str) -> str:
    """Push a vehicle's current details to its existing marketplace listing."""
    try:
        return await update_listing_impl(vehicle_id=vehicle_id, platform=platform)
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="update_listing",
            exc=exc,
            user_message=_retry_message("updating that listing"),
        )


@mcp.tool()
async def remove_listing(vehicle_id: int, platform: str) -> str:
    """Take a vehicle's listing down from one marketplace."""
    try:
        return await remove_listing_impl(vehicle_id=vehicle_id, platform=platform)
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="remove_listing",
            exc=exc,
            user_message=_retry_message("removing that listing"),
        )


@mcp.tool()
async def publish_to_all(vehicle_id: int) -> str:
    """Publish a vehicle to every marketplace, reporting each result separately."""
    try:
        return await publish_to_all_impl(vehicle_id)
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="publish_to_all",
            exc=exc,
            user_message=_retry_message("publishing that vehicle"),
        )


@mcp.tool()
async def get_listing_analytics(vehicle_id: int) -> str:
    """Views, clicks and leads for each live listing of a vehicle."""
    try:
        return await get_listing_analytics_impl(vehicle_id)
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="get_listing_analytics",
            exc=exc,
            user_message=_retry_message("loading listing analytics"),
        )


# ── Reports ─────────────────────────────────────────────────────────


@mcp.tool()
def get_inventory_summary() -> str:
    """Inventory value, status counts, aging buckets and floorplan carrying cost."""
    try:
        return get_inventory_summary_impl()
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="get_inventory_summary",
            exc=exc,
            user_message=_retry_message("building the inventory report"),
        )


@mcp.tool()
def get_sales_summary() -> str:
    """Completed sales, margins net of floorplan, conversion rate and top deals."""
    try:
        return get_sales_summary_impl()
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="get_sales_summary",
            exc=exc,
            user_message=_retry_message("building the sales report"),
        )


@mcp.tool()
def get_leads_by_source() -> str:
    """Lead counts and shares by source."""
    try:
        return get_leads_by_source_impl()
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="get_leads_by_source",
            exc=exc,
            user_message=_retry_message("building the lead source report"),
        )


@mcp.tool()
def get_dashboard_summary() -> str:
    """Inventory, lead, loyalty and recommendation headline numbers."""
    try:
        return get_dashboard_summary_impl()
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="get_dashboard_summary",
            exc=exc,
            user_message=_retry_message("building the dashboard"),
        )


@mcp.tool()
def get_floorplan_analysis() -> str:
    """Floorplan cost across inventory by aging bucket and its impact on sales."""
    try:
        return get_floorplan_analysis_impl()
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="get_floorplan_analysis",
            exc=exc,
            user_message=_retry_message("analysing floorplan costs"),
        )


@mcp.tool()
def get_loyalty_program() -> str:
    """Every customer's loyalty profile with tier counts and average points."""
    try:
        return get_loyalty_program_impl()
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="get_loyalty_program",
            exc=exc,
            user_message=_retry_message("loading the loyalty program"),
        )


def main() -> None:
    configure_logging(load_config())
    mcp.run()


if __name__ == "__main__":
    main()
