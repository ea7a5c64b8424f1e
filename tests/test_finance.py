"""Financing, floorplan and margin calculations."""

from __future__ import annotations

import pytest

from dealer_mcp.analytics.finance import (
    aging_bucket,
    calculate_financing,
    calculate_floorplan_interest,
    calculate_margin_waterfall,
    get_floorplan_analysis,
    monthly_payment,
    vehicle_cost,
)
from dealer_mcp.money import round_money, round_whole
from dealer_mcp.services import DealerServices


class TestRounding:
    def test_half_cent_rounds_away_from_zero(self):
        assert round_money(2.675) == 2.68
        assert round_money(-1.005) == -1.01

    def test_whole_half_rounds_up(self):
        assert round_whole(2.5) == 3
        assert round_whole(3.5) == 4

    def test_other_precision(self):
        assert round_money(0.00021917, 4) == 0.0002


# ── Financing ──────────────────────────────────────────────────


class TestFinancing:
    def test_standard_loan(self):
        result = calculate_financing(20000, 2000, 5, 60)
        assert result["loan_amount"] == 18000
        assert result["monthly_payment"] == pytest.approx(339.68, abs=0.05)
        assert 2380 <= result["total_interest"] <= 2383
        assert result["total_payment"] == pytest.approx(
            result["monthly_payment"] * 60 + 2000, abs=1
        )

    def test_zero_rate_is_straight_division(self):
        result = calculate_financing(12000, 0, 0, 48)
        assert result["monthly_payment"] == 250.0
        assert result["total_interest"] == 0.0

    def test_down_payment_covers_price(self):
        result = calculate_financing(15000, 15000, 6.5, 60)
        assert result == {
            "loan_amount": 0.0,
            "monthly_payment": 0.0,
            "total_interest": 0.0,
            "total_payment": 15000.0,
        }

    def test_negative_inputs_rejected(self):
        with pytest.raises(ValueError, match="Principal"):
            calculate_financing(-1, 0, 5, 60)
        with pytest.raises(ValueError, match="Down payment"):
            calculate_financing(10000, -1, 5, 60)
        with pytest.raises(ValueError, match="Interest rate"):
            calculate_financing(10000, 0, -1, 60)

    def test_zero_term_rejected(self):
        with pytest.raises(ValueError, match="Term"):
            calculate_financing(10000, 0, 5, 0)
        with pytest.raises(ValueError):
            monthly_payment(10000, 5, 0)

    def test_higher_rate_costs_more(self):
        low = calculate_financing(30000, 0, 3.9, 60)
        high = calculate_financing(30000, 0, 9.9, 60)
        assert high["monthly_payment"] > low["monthly_payment"]
        assert high["total_interest"] > low["total_interest"]


# ── Floorplan ──────────────────────────────────────────────────


class TestFloorplan:
    def test_vehicle_cost_falls_back_to_80_percent(self):
        assert vehicle_cost({"asking_price": 17995}) == pytest.approx(14396)
        assert vehicle_cost({"asking_price": 17995, "cost": 15000}) == 15000

    def test_interest_for_one_vehicle(self, services: DealerServices):
        vehicle = services.vehicles.get_by_id(1)
        result = calculate_floorplan_interest(vehicle, 0.08)
        assert result["vehicle_id"] == 1
        assert result["days_in_inventory"] == 15
        assert result["total_interest"] == 69.04
        assert result["monthly_interest"] == 138.08
        assert result["daily_rate"] == 0.0002

    def test_interest_without_recorded_cost(self, services: DealerServices):
        result = calculate_floorplan_interest(services.vehicles.get_by_id(5), 0.08)
        assert result["vehicle_cost"] == 14396.0
        assert result["total_interest"] == 378.63

    def test_zero_days(self):
        result = calculate_floorplan_interest({"id": 9, "cost": 10000, "days_in_inventory": 0})
        assert result["total_interest"] == 0.0
        assert result["monthly_interest"] == 0.0

    @pytest.mark.parametrize(
        ("days", "bucket"),
        [(0, "0-30"), (30, "0-30"), (31, "31-60"), (60, "31-60"), (90, "61-90"), (91, "90+")],
    )
    def test_aging_bucket_edges(self, days: int, bucket: str):
        assert aging_bucket(days) == bucket

    def test_analysis_buckets(self, services: DealerServices):
        analysis = get_floorplan_analysis(
            services.vehicles.get_all(), services.deals.get_all(), 0.08
        )
        counts = {label: b["count"] for label, b in analysis["cost_by_aging"].items()}
        assert counts == {"0-30": 3, "31-60": 4, "61-90": 3, "90+": 2}
        assert sum(counts.values()) == 12
        assert analysis["total_floorplan_cost"] > 0
        assert analysis["margin_impact"] > 0

    def test_analysis_without_sales(self):
        analysis = get_floorplan_analysis([{"cost": 10000, "days_in_inventory": 10}], [], 0.08)
        assert analysis["margin_impact"] == 0.0
        assert analysis["total_floorplan_cost"] == 21.92


# ── Margin waterfall ───────────────────────────────────────────


class TestMarginWaterfall:
    def test_seeded_deal(self, services: DealerServices):
        result = services.deals.get_margin_waterfall(1)
        assert result["gross_margin"] == 4500
        assert result["net_margin"] == 3170
        assert result["margin_percentage"] == 10.75

    def test_missing_costs_count_as_zero(self):
        result = calculate_margin_waterfall({"id": 1, "margin": 1000, "sale_price": 10000})
        assert result["net_margin"] == 1000
        assert result["margin_percentage"] == 10.0

    def test_zero_sale_price(self):
        result = calculate_margin_waterfall({"id": 1, "margin": 500, "sale_price": 0})
        assert result["margin_percentage"] == 0.0

    def test_negative_net_margin(self):
        result = calculate_margin_waterfall(
            {"margin": 500, "floorplan_cost": 300, "reconditioning_cost": 400, "sale_price": 10000}
        )
        assert result["net_margin"] == -200
