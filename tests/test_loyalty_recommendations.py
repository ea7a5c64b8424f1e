"""Loyalty tiers and lead-to-vehicle recommendations."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from dealer_mcp.analytics.loyalty import (
    calculate_customer_loyalty,
    get_loyalty_program,
    loyalty_points,
    loyalty_tier,
)
from dealer_mcp.analytics.recommendations import (
    engagement_score,
    estimate_monthly_payment,
    get_vehicle_recommendations,
    score_vehicle,
)
from dealer_mcp.services import DealerServices

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def _deal(customer_id: int, price: float, date: str, status: str = "Completed") -> dict:
    return {
        "customer_id": customer_id,
        "customer_name": "Pat Doe",
        "sale_price": price,
        "deal_date": date,
        "status": status,
    }


# ── Loyalty ────────────────────────────────────────────────────


class TestLoyaltyPoints:
    def test_one_point_per_hundred(self):
        assert loyalty_points(24999, 1) == 249

    def test_repeat_bonus(self):
        assert loyalty_points(20000, 2) == 700

    def test_third_purchase_bonuses_stack(self):
        assert loyalty_points(30000, 3) == 300 + 500 + 1000

    @pytest.mark.parametrize(
        ("points", "tier"),
        [(0, "Bronze"), (2499, "Bronze"), (2500, "Silver"), (4999, "Silver"), (5000, "Gold")],
    )
    def test_tier_thresholds(self, points: int, tier: str):
        assert loyalty_tier(points) == tier


class TestCustomerLoyalty:
    def test_three_purchase_customer(self, services: DealerServices):
        deals = services.deals.get_all()
        result = calculate_customer_loyalty(103, deals, NOW)
        assert result["deal_count"] == 3
        assert result["total_spent"] == 30000
        assert result["loyalty_points"] == 1800
        assert result["tier"] == "Bronze"
        assert result["is_active"] is False
        assert result["last_purchase_date"].startswith("2024-01-20")

    def test_recent_repeat_customer_is_active(self, services: DealerServices):
        result = calculate_customer_loyalty(104, services.deals.get_all(), NOW)
        assert result["loyalty_points"] == 1500
        assert result["is_active"] is True
        assert result["customer_name"] == "Christopher Lee"

    def test_pending_deals_do_not_count(self, services: DealerServices):
        result = calculate_customer_loyalty(102, services.deals.get_all(), NOW)
        assert result["deal_count"] == 0
        assert result["loyalty_points"] == 0
        assert result["last_purchase_date"] is None
        assert result["is_active"] is False

    def test_gold_benefits(self):
        deals = [
            _deal(7, 250000, "2026-01-01T00:00:00+00:00"),
            _deal(7, 200000, "2026-06-01T00:00:00+00:00"),
        ]
        result = calculate_customer_loyalty(7, deals, NOW)
        assert result["tier"] == "Gold"
        assert "Complimentary loaner vehicle" in result["benefits"]

    def test_service_uses_customer_id(self, services: DealerServices):
        assert services.deals.get_customer_loyalty("101")["loyalty_points"] == 960


class TestLoyaltyProgram:
    def test_sorted_by_points(self, services: DealerServices):
        program = get_loyalty_program(services.deals.get_all(), NOW)
        assert [c["customer_id"] for c in program["customers"]] == [103, 104, 101, 102, 105]
        assert program["customer_count"] == 5
        assert program["tier_counts"] == {"Gold": 0, "Silver": 0, "Bronze": 5}
        assert program["average_points"] == 852

    def test_empty(self):
        program = get_loyalty_program([], NOW)
        assert program["customer_count"] == 0
        assert program["average_points"] == 0

    def test_average_rounds_half_up(self):
        deals = [_deal(1, 10000, "2026-09-01"), _deal(2, 10100, "2026-09-02")]
        assert get_loyalty_program(deals, NOW)["average_points"] == 101


# ── Recommendations ────────────────────────────────────────────


class TestScoring:
    def test_budget_fit_and_interest(self):
        lead = {"budget": 30000, "lead_score": 100, "interested_vehicles": [1]}
        vehicle = {"id": 1, "asking_price": 15000, "market_value": 15000, "days_in_inventory": 45}
        score, reasons = score_vehicle(lead, vehicle)
        assert score == pytest.approx(17.5 + 30 + 20)
        assert "Within $30,000 budget" in reasons
        assert "Previously expressed interest" in reasons

    def test_overpriced_penalty(self):
        lead = {"budget": None, "lead_score": 100}
        vehicle = {"id": 2, "asking_price": 13000, "market_value": 10000, "days_in_inventory": 45}
        score, reasons = score_vehicle(lead, vehicle)
        assert score == pytest.approx(15 - 5)
        assert reasons == []

    def test_hybrid_bonus_needs_small_budget(self):
        vehicle = {"id": 3, "asking_price": 40000, "market_value": 40000,
                   "days_in_inventory": 45, "fuel_type": "Hybrid"}
        _, small = score_vehicle({"budget": 25000, "lead_score": 50}, vehicle)
        _, large = score_vehicle({"budget": 45000, "lead_score": 50}, vehicle)
        assert "Fuel-efficient hybrid" in small
        assert "Fuel-efficient hybrid" not in large

    def test_missing_lead_score_defaults_to_fifty(self):
        vehicle = {"id": 4, "asking_price": 10000, "market_value": 10000, "days_in_inventory": 45}
        with_default, _ = score_vehicle({"budget": None}, vehicle)
        explicit, _ = score_vehicle({"budget": None, "lead_score": 50}, vehicle)
        assert with_default == explicit

    def test_monthly_payment_without_trade(self):
        assert estimate_monthly_payment(0, 30000, False) == 0
        with_trade = estimate_monthly_payment(30000, 30000, True)
        without = estimate_monthly_payment(30000, 30000, False)
        assert with_trade < without

    def test_engagement_score(self, services: DealerServices):
        assert engagement_score(services.leads.get_by_id(3)) == 15
        assert engagement_score(services.leads.get_by_id(4)) == 92

    def test_zero_lead_score_counts_as_unscored_for_engagement(self):
        assert engagement_score({"lead_score": 0}) == 15
        assert engagement_score({"lead_score": 0}) == engagement_score({})


class TestRecommendations:
    def test_top_six_ranked(self, services: DealerServices):
        result = services.leads.get_vehicle_recommendations(1)
        recs = result["recommendations"]
        assert len(recs) == 6
        assert [r["recommendation_rank"] for r in recs] == [1, 2, 3, 4, 5, 6]
        scores = [r["ai_score"] for r in recs]
        assert scores == sorted(scores, reverse=True)
        assert result["total_vehicles_analyzed"] == 9

    def test_best_match_for_lead(self, services: DealerServices):
        top = services.leads.get_vehicle_recommendations(1)["recommendations"][0]
        assert top["vehicle_id"] == 1
        assert "Previously expressed interest" in top["match_reasons"]
        assert isinstance(top["estimated_monthly_payment"], int)

    def test_only_available_vehicles(self, services: DealerServices):
        result = services.leads.get_vehicle_recommendations(2)
        ids = {r["vehicle_id"] for r in result["recommendations"]}
        assert not ids & {6, 8, 11}

    def test_completed_deal_excludes_vehicle(self, services: DealerServices):
        lead = services.leads.get_by_id(1)
        vehicles = services.vehicles.get_all()
        deals = [{"vehicle_id": 1, "status": "Completed"}]
        result = get_vehicle_recommendations(lead, vehicles, deals)
        assert 1 not in {r["vehicle_id"] for r in result["recommendations"]}
        assert result["total_vehicles_analyzed"] == 8

    def test_ties_keep_inventory_order(self):
        lead = {"id": 9, "budget": None, "lead_score": 50}
        vehicles = [
            {"id": i, "status": "Available", "asking_price": 20000,
             "market_value": 20000, "days_in_inventory": 45}
            for i in (5, 3, 8)
        ]
        result = get_vehicle_recommendations(lead, vehicles, [])
        assert [r["vehicle_id"] for r in result["recommendations"]] == [5, 3, 8]

    def test_no_inventory(self):
        result = get_vehicle_recommendations({"id": 1}, [], [])
        assert result["recommendations"] == []
        assert result["total_vehicles_analyzed"] == 0
