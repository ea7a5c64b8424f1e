"""Lead-to-vehicle matching.

Each available vehicle gets an additive score (budget fit, prior interest,
market position, inventory age), scaled by the lead's score, plus flat
condition and fuel bonuses. Deterministic arithmetic, no model.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from dealer_mcp.analytics.finance import monthly_payment
from dealer_mcp.constants import (
    AVAILABLE_STATUS,
    COMPLETED_DEAL_STATUS,
    MAX_RECOMMENDATIONS,
    RECOMMENDATION_APR,
    RECOMMENDATION_TERM_MONTHS,
)
from dealer_mcp.money import round_whole

DEFAULT_LEAD_SCORE = 50

_BUDGET_WEIGHT = 35
_NO_BUDGET_SCORE = 15
_INTEREST_SCORE = 30
_FAIR_PRICE_SCORE = 20
_OVERPRICED_PENALTY = 5
_AGED_STOCK_SCORE = 15
_FRESH_STOCK_SCORE = 10
_EXCELLENT_CONDITION_SCORE = 5
_HYBRID_SCORE = 10
_HYBRID_BUDGET_CEILING = 30_000


def _lead_score(lead: dict[str, Any]) -> float:
    score = lead.get("lead_score")
    return DEFAULT_LEAD_SCORE if score is None else float(score)


def estimate_monthly_payment(price: float, budget: float | None, has_trade_in: bool) -> int:
    """Whole-dollar payment at 4.9% / 60 months after estimated trade and down payment."""
    budget = float(budget or 0)
    trade_value = min(budget * 0.3, 8000) if has_trade_in else 0.0
    down_payment = min(budget * 0.1, 3000)
    loan = float(price or 0) - trade_value - down_payment
    if loan <= 0:
        return 0
    return round_whole(monthly_payment(loan, RECOMMENDATION_APR, RECOMMENDATION_TERM_MONTHS))


def engagement_score(lead: dict[str, Any]) -> int:
    """Contact activity plus profile completeness. A zero lead score counts as unscored."""
    raw = (
        len(lead.get("contact_history") or []) * 10
        + len(lead.get("appointments") or []) * 15
        + float(lead.get("lead_score") or DEFAULT_LEAD_SCORE) * 0.3
        + (10 if lead.get("trade_in") else 0)
        + (10 if lead.get("budget") else 0)
    )
    return round_whole(raw)


def score_vehicle(lead: dict[str, Any], vehicle: dict[str, Any]) -> tuple[float, list[str]]:
    """Unrounded score and the human-readable reasons behind it."""
    score = 0.0
    reasons: list[str] = []
    budget = lead.get("budget")
    price = float(vehicle.get("asking_price") or 0)

    if budget and price <= budget:
        score += (1 - price / budget) * _BUDGET_WEIGHT
        reasons.append(f"Within ${budget:,.0f} budget")
    elif not budget:
        score += _NO_BUDGET_SCORE

    if vehicle.get("id") in (lead.get("interested_vehicles") or []):
        score += _INTEREST_SCORE
        reasons.append("Previously expressed interest")

    market_value = float(vehicle.get("market_value") or 0)
    ratio = price / market_value if market_value > 0 else 1.0
    if ratio < 1.1:
        score += _FAIR_PRICE_SCORE
        reasons.append("Great market value")
    elif ratio > 1.2:
        score -= _OVERPRICED_PENALTY

    days = int(vehicle.get("days_in_inventory") or 0)
    if days > 90:
        score += _AGED_STOCK_SCORE
        reasons.append("Potential for negotiation")
    elif days < 30:
        score += _FRESH_STOCK_SCORE
        reasons.append("Recently acquired")

    score *= _lead_score(lead) / 100

    if vehicle.get("condition") == "Excellent":
        score += _EXCELLENT_CONDITION_SCORE
        reasons.append("Excellent condition")
    if vehicle.get("fuel_type") == "Hybrid" and budget and budget < _HYBRID_BUDGET_CEILING:
        score += _HYBRID_SCORE
        reasons.append("Fuel-efficient hybrid")

    return score, reasons


def get_vehicle_recommendations(
    lead: dict[str, Any],
    vehicles: list[dict[str, Any]],
    deals: list[dict[str, Any]],
) -> dict[str, Any]:
    """Top matches for ``lead`` among available vehicles not already sold on a deal."""
    sold_ids = {d.get("vehicle_id") for d in deals if d.get("status") == COMPLETED_DEAL_STATUS}
    candidates = [
        v for v in vehicles
        if v.get("status") == AVAILABLE_STATUS and v.get("id") not in sold_ids
    ]
    generated_at = datetime.now(timezone.utc).isoformat()

    scored = []
    for vehicle in candidates:
        score, reasons = score_vehicle(lead, vehicle)
        scored.append({
            "vehicle_id": vehicle.get("id"),
            "vehicle": vehicle,
            "ai_score": round_whole(score),
            "match_reasons": reasons,
            "estimated_monthly_payment": estimate_monthly_payment(
                vehicle.get("asking_price") or 0,
                lead.get("budget"),
                bool(lead.get("trade_in")),
            ),
            "generated_at": generated_at,
        })

    # sorted() is stable, so equal scores keep inventory order.
    ranked = sorted(scored, key=lambda r: r["ai_score"], reverse=True)[:MAX_RECOMMENDATIONS]
    for rank, rec in enumerate(ranked, start=1):
        rec["recommendation_rank"] = rank

    return {
        "lead_id": lead.get("id"),
        "lead": lead,
        "engagement_score": engagement_score(lead),
        "recommendations": ranked,
        "total_vehicles_analyzed": len(candidates),
        "generated_at": generated_at,
    }
