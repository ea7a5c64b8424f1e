"""Customer loyalty points and tiers derived from completed deals."""

from __future__ import annotations

import math
from collections.abc import Iterable
from datetime import datetime, timedelta, timezone
from typing import Any

from dealer_mcp.constants import (
    COMPLETED_DEAL_STATUS,
    LOYALTY_ACTIVE_DAYS,
    LOYALTY_REPEAT_BONUS,
    LOYALTY_THIRD_PURCHASE_BONUS,
    LOYALTY_TIERS,
    TIER_BENEFITS,
)
from dealer_mcp.money import round_whole


def _parse(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, str) and value:
        try:
            moment = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    return moment if moment.tzinfo else moment.replace(tzinfo=timezone.utc)


def loyalty_points(total_spent: float, deal_count: int) -> int:
    """One point per $100 spent, plus repeat-purchase bonuses.

    The two bonuses stack: a third purchase earns both.
    """
    points = math.floor(total_spent / 100)
    if deal_count >= 2:
        points += LOYALTY_REPEAT_BONUS
    if deal_count >= 3:
        points += LOYALTY_THIRD_PURCHASE_BONUS
    return points


def loyalty_tier(points: int) -> str:
    for threshold, tier in LOYALTY_TIERS:
        if points >= threshold:
            return tier
    return LOYALTY_TIERS[-1][1]


def calculate_customer_loyalty(
    customer_id: int,
    deals: Iterable[dict[str, Any]],
    now: datetime | None = None,
) -> dict[str, Any]:
    now = now or datetime.now(timezone.utc)
    completed = [
        d for d in deals
        if d.get("customer_id") == customer_id and d.get("status") == COMPLETED_DEAL_STATUS
    ]
    total_spent = sum(float(d.get("sale_price") or 0) for d in completed)
    points = loyalty_points(total_spent, len(completed))
    tier = loyalty_tier(points)

    purchase_dates = [p for p in (_parse(d.get("deal_date")) for d in completed) if p]
    last_purchase = max(purchase_dates) if purchase_dates else None
    is_active = (
        last_purchase is not None
        and now - last_purchase <= timedelta(days=LOYALTY_ACTIVE_DAYS)
    )

    customer_name = next((d.get("customer_name") for d in completed if d.get("customer_name")), None)
    return {
        "customer_id": customer_id,
        "customer_name": customer_name,
        "deal_count": len(completed),
        "total_spent": total_spent,
        "loyalty_points": points,
        "tier": tier,
        "benefits": list(TIER_BENEFITS[tier]),
        "last_purchase_date": last_purchase.isoformat() if last_purchase else None,
        "is_active": is_active,
    }


def get_loyalty_program(
    deals: list[dict[str, Any]],
    now: datetime | None = None,
) -> dict[str, Any]:
    """Loyalty profile for every customer with a deal, highest points first."""
    customer_ids: list[int] = []
    for deal in deals:
        cid = deal.get("customer_id")
        if cid is not None and cid not in customer_ids:
            customer_ids.append(cid)

    customers = [calculate_customer_loyalty(cid, deals, now) for cid in customer_ids]
    customers.sort(key=lambda c: c["loyalty_points"], reverse=True)
    tier_counts = {tier: 0 for _, tier in LOYALTY_TIERS}
    for customer in customers:
        tier_counts[customer["tier"]] += 1
    average = 0
    if customers:
        average = round_whole(sum(c["loyalty_points"] for c in customers) / len(customers))
    return {
        "customer_count": len(customers),
        "tier_counts": tier_counts,
        "average_points": average,
        "customers": customers,
    }
