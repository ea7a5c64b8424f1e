"""Server integration tests: MCP tool wrappers and their error guard."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, patch

import dealer_mcp.server as server_mod
from dealer_mcp.server import (
    calculate_financing,
    create_record,
    generate_invoice_from_deal,
    generate_invoice_pdf,
    get_dashboard_summary,
    get_inventory_summary,
    get_record,
    list_records,
    publish_listing,
    publish_to_all,
    record_payment,
    schedule_reconditioning,
    search_vendors,
)

# ── MCP tool wrapper tests ──────────────────────────────────────


class TestMCPToolWrappers:
    """Verify that MCP-registered functions return strings and work end-to-end."""

    def test_list_records_returns_envelope(self):
        payload = json.loads(list_records("leads"))
        assert payload["_tool"] == "list_leads"
        assert payload["data"]["count"] == 6

    def test_get_record_not_found_is_plain_error(self):
        assert get_record("vehicles", 404) == "Error: Vehicle 404 not found"

    def test_create_record(self):
        payload = json.loads(create_record("branches", {"name": "Lakeway Motors"}))
        assert payload["data"]["id"] == 4

    def test_calculate_financing(self):
        payload = json.loads(calculate_financing(20000, 2000, 5, 60))
        assert payload["data"]["loan_amount"] == 18000

    def test_invoice_flow(self):
        invoice = json.loads(generate_invoice_from_deal(8))["data"]
        paid = json.loads(record_payment(invoice["id"], invoice["total_amount"], "Wire"))["data"]
        assert paid["status"] == "Paid"

    def test_invoice_pdf(self):
        payload = json.loads(generate_invoice_pdf(2))
        assert payload["_tool"] == "generate_invoice_pdf"
        assert payload["data"]["url"] == "#pdf-download-INV-2026-002"

    def test_schedule_reconditioning(self):
        payload = json.loads(
            schedule_reconditioning(7, "Interior Repair", "2026-10-23T09:00:00+00:00", 4, "Low")
        )
        assert payload["data"]["priority"] == "Low"

    def test_search_vendors(self):
        payload = json.loads(search_vendors(term="detail"))
        assert [v["id"] for v in payload["data"]["vendors"]] == [2]

    def test_dashboard_returns_string(self):
        assert isinstance(get_dashboard_summary(), str)

    async def test_publish_listing(self):
        payload = json.loads(await publish_listing(10, "carscom"))
        assert payload["data"]["success"] is True


# ── Unexpected failures ─────────────────────────────────────────


class TestErrorGuard:
    def test_sync_tool_returns_retry_message(self, caplog):
        with patch.object(
            server_mod, "get_inventory_summary_impl", side_effect=RuntimeError("disk on fire")
        ):
            result = get_inventory_summary()
        assert result == (
            "I am having trouble building the inventory report right now. "
            "Please try again in a moment."
        )
        assert "disk on fire" in caplog.text

    async def test_async_tool_returns_retry_message(self):
        with patch.object(
            server_mod, "publish_to_all_impl", AsyncMock(side_effect=RuntimeError("boom"))
        ):
            result = await publish_to_all(1)
        assert result.startswith("I am having trouble publishing that vehicle")

    def test_domain_errors_do_not_trip_guard(self):
        assert list_records("spaceships").startswith("Error: unknown entity")


class TestMain:
    def test_main_configures_logging_and_runs(self):
        with patch.object(server_mod.mcp, "run") as run, \
                patch.object(server_mod, "configure_logging") as configure:
            server_mod.main()
        run.assert_called_once_with()
        configure.assert_called_once()
