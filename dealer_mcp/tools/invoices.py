"""Invoice lifecycle tool implementations."""

from __future__ import annotations

import math
from typing import Any

from dealer_mcp.money import round_money
from dealer_mcp.services import get_services
from dealer_mcp.tools.responses import tool_result


def generate_invoice_from_deal_impl(deal_id: Any) -> str:
    return tool_result(
        "generate_invoice_from_deal",
        lambda: get_services().invoices.generate_from_deal(deal_id),
    )


def send_invoice_impl(*, invoice_id: Any, email: str = "") -> str:
    return tool_result(
        "send_invoice",
        lambda: get_services().invoices.send_invoice(invoice_id, email.strip() or None),
    )


def record_payment_impl(*, invoice_id: Any, amount: float, payment_method: str = "") -> str:
    if not math.isfinite(amount) or amount <= 0:
        return "Error: payment amount must be a finite number greater than 0."
    return tool_result(
        "record_payment",
        lambda: get_services().invoices.record_payment(
            invoice_id, amount, payment_method.strip() or None
        ),
    )


def generate_invoice_pdf_impl(invoice_id: Any) -> str:
    return tool_result(
        "generate_invoice_pdf",
        lambda: get_services().invoices.generate_pdf(invoice_id),
    )


def mark_invoice_overdue_impl(invoice_id: Any) -> str:
    return tool_result(
        "mark_invoice_overdue",
        lambda: get_services().invoices.mark_as_overdue(invoice_id),
    )


def check_overdue_invoices_impl() -> str:
    """Run the overdue sweep now and list every overdue invoice."""

    def _call() -> dict[str, Any]:
        overdue = get_services().invoices.check_overdue()
        return {
            "count": len(overdue),
            "total_balance_due": round_money(sum(inv.get("balance_due") or 0 for inv in overdue)),
            "invoices": overdue,
        }

    return tool_result("check_overdue_invoices", _call)


def get_invoice_stats_impl() -> str:
    return tool_result("get_invoice_stats", lambda: get_services().invoices.get_invoice_stats())
