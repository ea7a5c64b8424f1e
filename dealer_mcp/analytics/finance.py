"""Financing, floorplan interest and margin calculations.

All functions are pure. Money is rounded half away from zero to cents at the
output boundary only; intermediate values keep full precision.
"""

from __future__ import annotations

from typing import Any

from dealer_mcp.constants import (
    AGING_BUCKETS,
    COMPLETED_DEAL_STATUS,
    COST_TO_PRICE_RATIO,
    DEFAULT_FLOORPLAN_RATE,
)
from dealer_mcp.money import round_money


def monthly_payment(loan_amount: float, annual_rate: float, term_months: int) -> float:
    """Unrounded annuity payment. ``annual_rate`` is a percentage (4.9 = 4.9%)."""
    if term_months <= 0:
        raise ValueError("Term must be greater than 0 months.")
    monthly_rate = annual_rate / 100 / 12
    if monthly_rate == 0:
        return loan_amount / term_months
    # Standard amortization formula: M = L * [r(1+r)^n] / [(1+r)^n - 1]
    factor = (1 + monthly_rate) ** term_months
    return loan_amount * (monthly_rate * factor) / (factor - 1)


def calculate_financing(
    principal: float,
    down_payment: float,
    rate: float,
    term_months: int,
) -> dict[str, float]:
    """Loan amount, monthly payment, total interest and total paid (down payment included)."""
    if principal < 0:
        raise ValueError("Principal must be greater than or equal to 0.")
    if down_payment < 0:
        raise ValueError("Down payment must be greater than or equal to 0.")
    if rate < 0:
        raise ValueError("Interest rate must be greater than or equal to 0.")
    if term_months <= 0:
        raise ValueError("Term must be greater than 0 months.")

    loan_amount = principal - down_payment
    if loan_amount <= 0:
        return {
            "loan_amount": 0.0,
            "monthly_payment": 0.0,
            "total_interest": 0.0,
            "total_payment": round_money(down_payment),
        }

    payment = monthly_payment(loan_amount, rate, term_months)
    total_payment = payment * term_months + down_payment
    total_interest = total_payment - principal
    return {
        "loan_amount": round_money(loan_amount),
        "monthly_payment": round_money(payment),
        "total_interest": round_money(total_interest),
        "total_payment": round_money(total_payment),
    }


def vehicle_cost(vehicle: dict[str, Any]) -> float:
    """Recorded cost, or 80% of the asking price when no cost is on file."""
    cost = vehicle.get("cost")
    if cost:
        return float(cost)
    return float(vehicle.get("asking_price") or 0) * COST_TO_PRICE_RATIO


def _carrying_cost(vehicle: dict[str, Any], rate: float) -> float:
    days = int(vehicle.get("days_in_inventory") or 0)
    return vehicle_cost(vehicle) * (rate / 365) * days


def calculate_floorplan_interest(
    vehicle: dict[str, Any],
    rate: float = DEFAULT_FLOORPLAN_RATE,
) -> dict[str, Any]:
    """Simple interest carried on one vehicle for its days in inventory."""
    days = int(vehicle.get("days_in_inventory") or 0)
    total = _carrying_cost(vehicle, rate)
    return {
        "vehicle_id": vehicle.get("id"),
        "daily_rate": round_money(rate / 365, 4),
        "days_in_inventory": days,
        "vehicle_cost": round_money(vehicle_cost(vehicle)),
        "total_interest": round_money(total),
        "monthly_interest": round_money(total / days * 30) if days else 0.0,
    }


def calculate_margin_waterfall(deal: dict[str, Any]) -> dict[str, Any]:
    gross = float(deal.get("margin") or 0)
    floorplan = float(deal.get("floorplan_cost") or 0)
    reconditioning = float(deal.get("reconditioning_cost") or 0)
    other = float(deal.get("other_costs") or 0)
    net = gross - floorplan - reconditioning - other
    sale_price = float(deal.get("sale_price") or 0)
    return {
        "deal_id": deal.get("id"),
        "gross_margin": round_money(gross),
        "floorplan_cost": round_money(floorplan),
        "reconditioning_cost": round_money(reconditioning),
        "other_costs": round_money(other),
        "net_margin": round_money(net),
        "margin_percentage": round_money(net / sale_price * 100) if sale_price > 0 else 0.0,
    }


def aging_bucket(days: int) -> str:
    for label, upper in AGING_BUCKETS:
        if upper is None or days <= upper:
            return label
    return AGING_BUCKETS[-1][0]


def get_floorplan_analysis(
    vehicles: list[dict[str, Any]],
    deals: list[dict[str, Any]],
    rate: float = DEFAULT_FLOORPLAN_RATE,
) -> dict[str, Any]:
    """Floorplan cost across inventory, bucketed by age, relative to completed sales."""
    buckets: dict[str, dict[str, float]] = {
        label: {"count": 0, "total_cost": 0.0} for label, _ in AGING_BUCKETS
    }
    total = 0.0
    for vehicle in vehicles:
        cost = _carrying_cost(vehicle, rate)
        total += cost
        bucket = buckets[aging_bucket(int(vehicle.get("days_in_inventory") or 0))]
        bucket["count"] += 1
        bucket["total_cost"] += cost

    total_sales = sum(
        float(d.get("sale_price") or 0)
        for d in deals
        if d.get("status") == COMPLETED_DEAL_STATUS
    )
    return {
        "total_floorplan_cost": round_money(total),
        "average_daily_rate": rate / 365,
        "cost_by_aging": {
            label: {"count": int(b["count"]), "total_cost": round_money(b["total_cost"])}
            for label, b in buckets.items()
        },
        "margin_impact": round_money(total / total_sales * 100) if total_sales > 0 else 0.0,
    }
