"""Inventory, sales, lead and dashboard summaries over plain record lists."""

from __future__ import annotations

from collections import Counter
from datetime import datetime
from typing import Any

from dealer_mcp.analytics.finance import aging_bucket, vehicle_cost
from dealer_mcp.analytics.loyalty import get_loyalty_program
from dealer_mcp.analytics.recommendations import get_vehicle_recommendations
from dealer_mcp.constants import (
    AGING_BUCKETS,
    AVAILABLE_STATUS,
    COMPLETED_DEAL_STATUS,
    COST_TO_PRICE_RATIO,
    DEFAULT_FLOORPLAN_RATE,
)
from dealer_mcp.money import round_money, round_whole

HIGH_ENGAGEMENT_THRESHOLD = 80
_TOP_N = 5
_MAX_HOT_LEADS = 10


def _average_days(vehicles: list[dict[str, Any]]) -> int:
    if not vehicles:
        return 0
    return round_whole(sum(int(v.get("days_in_inventory") or 0) for v in vehicles) / len(vehicles))


def inventory_summary(
    vehicles: list[dict[str, Any]],
    rate: float = DEFAULT_FLOORPLAN_RATE,
) -> dict[str, Any]:
    status_counts = Counter(v.get("status") for v in vehicles)
    aging = {label: 0 for label, _ in AGING_BUCKETS}
    floorplan_total = 0.0
    for vehicle in vehicles:
        days = int(vehicle.get("days_in_inventory") or 0)
        aging[aging_bucket(days)] += 1
        floorplan_total += vehicle_cost(vehicle) * (rate / 365) * days

    oldest = sorted(
        (v for v in vehicles if v.get("status") == AVAILABLE_STATUS),
        key=lambda v: int(v.get("days_in_inventory") or 0),
        reverse=True,
    )[:_TOP_N]
    return {
        "total_vehicles": len(vehicles),
        "status_counts": dict(status_counts),
        "total_inventory_value": round_money(sum(float(v.get("asking_price") or 0) for v in vehicles)),
        "average_days_in_inventory": _average_days(vehicles),
        "aging_buckets": aging,
        "total_floorplan_interest": round_money(floorplan_total),
        "average_floorplan_cost": round_money(floorplan_total / len(vehicles)) if vehicles else 0.0,
        "oldest_available": [
            {
                "id": v.get("id"),
                "label": f"{v.get('year')} {v.get('make')} {v.get('model')}",
                "days_in_inventory": v.get("days_in_inventory"),
                "asking_price": v.get("asking_price"),
            }
            for v in oldest
        ],
    }


def sales_summary(
    deals: list[dict[str, Any]],
    vehicles: list[dict[str, Any]],
    leads: list[dict[str, Any]],
    rate: float = DEFAULT_FLOORPLAN_RATE,
) -> dict[str, Any]:
    """Completed-sale totals, with margin net of the floorplan carried on each vehicle."""
    by_id = {v.get("id"): v for v in vehicles}
    completed = [d for d in deals if d.get("status") == COMPLETED_DEAL_STATUS]

    analysis = []
    for deal in completed:
        vehicle = by_id.get(deal.get("vehicle_id"))
        floorplan = 0.0
        if vehicle is not None:
            cost = vehicle.get("cost") or float(deal.get("sale_price") or 0) * COST_TO_PRICE_RATIO
            floorplan = float(cost) * (rate / 365) * int(vehicle.get("days_in_inventory") or 0)
        margin = float(deal.get("margin") or 0)
        analysis.append({
            "deal_id": deal.get("id"),
            "customer_name": deal.get("customer_name"),
            "vehicle_id": deal.get("vehicle_id"),
            "sale_price": deal.get("sale_price"),
            "margin": margin,
            "floorplan_cost": floorplan,
            "net_margin": margin - floorplan,
        })

    top = sorted(analysis, key=lambda a: a["net_margin"], reverse=True)[:_TOP_N]
    return {
        "completed_deals": len(completed),
        "total_sales": round_money(sum(float(d.get("sale_price") or 0) for d in completed)),
        "total_margin": round_money(sum(a["margin"] for a in analysis)),
        "total_net_margin": round_money(sum(a["net_margin"] for a in analysis)),
        "conversion_rate": round_money(len(deals) / len(leads) * 100, 1) if leads else 0.0,
        "top_deals": [
            {
                **a,
                "floorplan_cost": round_money(a["floorplan_cost"]),
                "net_margin": round_money(a["net_margin"]),
            }
            for a in top
        ],
    }


def leads_by_source(leads: list[dict[str, Any]]) -> dict[str, Any]:
    counts = Counter(lead.get("source") or "Unknown" for lead in leads)
    total = len(leads)
    return {
        "total_leads": total,
        "sources": [
            {
                "source": source,
                "count": count,
                "percentage": round_money(count / total * 100, 1) if total else 0.0,
            }
            for source, count in counts.most_common()
        ],
    }


def recommendation_stats(
    leads: list[dict[str, Any]],
    vehicles: list[dict[str, Any]],
    deals: list[dict[str, Any]],
) -> dict[str, Any]:
    """Engagement across the first ten Hot leads and how many matches they produced."""
    hot = [lead for lead in leads if lead.get("status") == "Hot"][:_MAX_HOT_LEADS]
    results = [get_vehicle_recommendations(lead, vehicles, deals) for lead in hot]
    average = (
        round_whole(sum(r["engagement_score"] for r in results) / len(results)) if results else 0
    )
    return {
        "hot_leads_analyzed": len(results),
        "total_recommendations": sum(len(r["recommendations"]) for r in results),
        "avg_engagement_score": average,
        "high_engagement_leads": sum(
            1 for r in results if r["engagement_score"] > HIGH_ENGAGEMENT_THRESHOLD
        ),
    }


def dashboard_summary(
    vehicles: list[dict[str, Any]],
    leads: list[dict[str, Any]],
    deals: list[dict[str, Any]],
    now: datetime | None = None,
) -> dict[str, Any]:
    loyalty = get_loyalty_program(deals, now)
    top_leads = sorted(leads, key=lambda lead: lead.get("lead_score") or 0, reverse=True)[:_TOP_N]
    return {
        "inventory": {
            "total": len(vehicles),
            "available": sum(1 for v in vehicles if v.get("status") == AVAILABLE_STATUS),
            "sold": sum(1 for v in vehicles if v.get("status") == "Sold"),
            "total_value": round_money(sum(float(v.get("asking_price") or 0) for v in vehicles)),
            "average_days_in_inventory": _average_days(vehicles),
        },
        "leads": {
            "total": len(leads),
            "hot": sum(1 for lead in leads if lead.get("status") == "Hot"),
            "top": [
                {"id": lead.get("id"), "name": lead.get("name"), "lead_score": lead.get("lead_score")}
                for lead in top_leads
            ],
        },
        "loyalty": {
            "total_customers": loyalty["customer_count"],
            "loyal_customers": sum(1 for c in loyalty["customers"] if c["tier"] != "Bronze"),
            "avg_loyalty_points": loyalty["average_points"],
            "top_customers": loyalty["customers"][:_TOP_N],
        },
        "recommendations": recommendation_stats(leads, vehicles, deals),
    }
