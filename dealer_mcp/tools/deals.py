"""Deal document, loyalty and finance tool implementations."""

from __future__ import annotations

from typing import Any

from dealer_mcp.analytics.finance import calculate_financing
from dealer_mcp.services import get_services
from dealer_mcp.tools.responses import build_response, tool_result


def add_deal_document_impl(*, deal_id: Any, name: str, document_type: str = "", url: str = "") -> str:
    if not name.strip():
        return "Error: document name is required."
    document = {"name": name.strip(), "type": document_type, "url": url}
    return tool_result(
        "add_deal_document",
        lambda: get_services().deals.add_document(deal_id, document),
    )


def remove_deal_document_impl(*, deal_id: Any, document_id: Any) -> str:
    return tool_result(
        "remove_deal_document",
        lambda: get_services().deals.remove_document(deal_id, document_id),
    )


def get_customer_loyalty_impl(customer_id: Any) -> str:
    return tool_result(
        "get_customer_loyalty",
        lambda: get_services().deals.get_customer_loyalty(customer_id),
    )


def get_margin_waterfall_impl(deal_id: Any) -> str:
    return tool_result(
        "get_margin_waterfall",
        lambda: get_services().deals.get_margin_waterfall(deal_id),
    )


def calculate_financing_impl(
    *,
    principal: float,
    down_payment: float = 0.0,
    interest_rate: float = 6.5,
    term_months: int = 60,
) -> str:
    """Amortized payment for a loan of ``principal - down_payment``."""
    if principal < 0:
        return "Error: principal must be greater than or equal to 0."
    if down_payment < 0:
        return "Error: down payment must be greater than or equal to 0."
    if interest_rate < 0:
        return "Error: interest rate must be greater than or equal to 0."
    if term_months <= 0:
        return "Error: term must be greater than 0 months."

    result = calculate_financing(principal, down_payment, interest_rate, term_months)
    return build_response(
        "calculate_financing",
        {
            "principal": principal,
            "down_payment": down_payment,
            "interest_rate": interest_rate,
            "term_months": term_months,
            **result,
        },
    )
