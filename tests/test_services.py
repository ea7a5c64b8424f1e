"""Entity service tests: CRUD behaviour, defaults, validation and domain helpers."""

from __future__ import annotations

import pytest

from dealer_mcp.errors import (
    DomainConflictError,
    InvalidArgumentError,
    NotFoundError,
    ValidationError,
)
from dealer_mcp.services import DealerServices
from dealer_mcp.services.vehicles import normalize_vin

NEW_VEHICLE = {
    "vin": "1hgcm82633a004352",
    "year": 2024,
    "make": "Honda",
    "model": "Accord",
    "trim": "Sport",
    "mileage": 1200,
    "asking_price": 31500,
    "cost": 28000,
    "market_value": 32000,
    "condition": "Excellent",
    "fuel_type": "Gasoline",
}


# ── Generic CRUD ───────────────────────────────────────────────


class TestCrud:
    def test_get_all_returns_seeded_records(self, services: DealerServices):
        assert len(services.vehicles.get_all()) == 12
        assert len(services.vendors.get_all()) == 6

    def test_create_then_get(self, services: DealerServices):
        created = services.vehicles.create(NEW_VEHICLE)
        assert created["id"] == 13
        assert services.vehicles.get_by_id(13)["model"] == "Accord"

    def test_create_ignores_caller_id(self, services: DealerServices):
        created = services.branches.create({"id": 1, "name": "Lakeway"})
        assert created["id"] == 4

    def test_string_id_accepted(self, services: DealerServices):
        assert services.vehicles.get_by_id("3")["model"] == "RAV4 Hybrid"

    @pytest.mark.parametrize("value", ["abc", "--5", "1.5", "", "-"])
    def test_invalid_id(self, services: DealerServices, value: str):
        with pytest.raises(InvalidArgumentError):
            services.vehicles.get_by_id(value)

    def test_missing_record(self, services: DealerServices):
        with pytest.raises(NotFoundError, match="Vehicle 99 not found"):
            services.vehicles.get_by_id(99)

    def test_unknown_field_rejected(self, services: DealerServices):
        with pytest.raises(ValidationError, match="horsepower"):
            services.vehicles.create({**NEW_VEHICLE, "horsepower": 250})

    def test_missing_required_field(self, services: DealerServices):
        with pytest.raises(ValidationError, match="make"):
            services.vehicles.create({"year": 2024, "model": "Accord"})

    def test_update_merges_and_keeps_id(self, services: DealerServices):
        updated = services.vehicles.update(2, {"asking_price": 26900, "id": 77})
        assert updated["id"] == 2
        assert updated["asking_price"] == 26900
        assert updated["make"] == "Honda"

    def test_update_missing_record(self, services: DealerServices):
        with pytest.raises(NotFoundError):
            services.leads.update(42, {"status": "Hot"})

    def test_delete_returns_record_and_ids_not_reused(self, services: DealerServices):
        removed = services.vehicles.delete(12)
        assert removed["model"] == "Altima"
        with pytest.raises(NotFoundError):
            services.vehicles.get_by_id(12)
        assert services.vehicles.create(NEW_VEHICLE)["id"] == 13

    def test_delete_missing(self, services: DealerServices):
        with pytest.raises(NotFoundError):
            services.deals.delete(500)

    def test_entity_lookup(self, services: DealerServices):
        assert services.entity("vendors") is services.vendors
        with pytest.raises(KeyError):
            services.entity("listings")


# ── Vehicles ───────────────────────────────────────────────────


class TestVehicles:
    def test_defaults_on_create(self, services: DealerServices):
        created = services.vehicles.create(NEW_VEHICLE)
        assert created["status"] == "Available"
        assert created["days_in_inventory"] == 0
        assert created["publications"] == {}
        assert created["branch_id"] == 1

    def test_vin_normalized(self, services: DealerServices):
        created = services.vehicles.create(NEW_VEHICLE)
        assert created["vin"] == "1HGCM82633A004352"

    def test_invalid_vin(self, services: DealerServices):
        with pytest.raises(ValidationError, match="VIN"):
            services.vehicles.create({**NEW_VEHICLE, "vin": "SHORTVIN"})

    def test_normalize_vin_rejects_letter_o(self):
        with pytest.raises(ValidationError):
            normalize_vin("1HGCM82633A00435O")

    def test_invalid_status(self, services: DealerServices):
        with pytest.raises(ValidationError, match="vehicle status"):
            services.vehicles.update(1, {"status": "Lost"})

    def test_negative_days_rejected(self, services: DealerServices):
        with pytest.raises(ValidationError, match="days_in_inventory"):
            services.vehicles.update(1, {"days_in_inventory": -1})

    def test_negative_price_rejected(self, services: DealerServices):
        with pytest.raises(ValidationError, match="asking_price"):
            services.vehicles.update(1, {"asking_price": -5})

    def test_missing_branch_reads_as_default(self, services: DealerServices):
        services.vehicles.update(4, {"branch_id": None})
        assert services.vehicles.get_by_id(4)["branch_id"] == 1

    def test_get_available(self, services: DealerServices):
        ids = {v["id"] for v in services.vehicles.get_available()}
        assert ids == {1, 2, 3, 4, 5, 7, 9, 10, 12}

    def test_get_by_branch(self, services: DealerServices):
        ids = [v["id"] for v in services.vehicles.get_by_branch(2)]
        assert ids == [3, 5, 9, 11]

    def test_search_by_vin(self, services: DealerServices):
        assert services.vehicles.search_by_vin(" 5j6rw2h58ml000002 ")["id"] == 2

    def test_search_by_vin_not_in_stock(self, services: DealerServices):
        with pytest.raises(NotFoundError):
            services.vehicles.search_by_vin("1HGCM82633A004352")


class TestTransfers:
    def test_create_transfer(self, services: DealerServices):
        request = services.vehicles.create_transfer_request(
            2, 3, reason="Customer in Round Rock", requested_by="Angela Brooks"
        )
        assert request["from_branch_id"] == 1
        assert request["to_branch_id"] == 3
        assert request["status"] == "Requested"
        assert services.vehicles.get_transfer_requests(2) == [request]

    def test_transfer_does_not_move_vehicle(self, services: DealerServices):
        services.vehicles.create_transfer_request(2, 3)
        assert services.vehicles.get_by_id(2)["branch_id"] == 1

    def test_same_branch_conflict(self, services: DealerServices):
        with pytest.raises(DomainConflictError, match="already at branch"):
            services.vehicles.create_transfer_request(2, 1)

    def test_inactive_branch_conflict(self, services: DealerServices):
        services.branches.update(3, {"status": "inactive"})
        with pytest.raises(DomainConflictError, match="not active"):
            services.vehicles.create_transfer_request(2, 3)

    def test_unknown_branch(self, services: DealerServices):
        with pytest.raises(NotFoundError):
            services.vehicles.create_transfer_request(2, 9)

    def test_list_all_and_filtered(self, services: DealerServices):
        services.vehicles.create_transfer_request(2, 3)
        services.vehicles.create_transfer_request(3, 1)
        assert len(services.vehicles.get_transfer_requests()) == 2
        assert services.vehicles.get_transfer_requests(5) == []


class TestPublicationStatus:
    def test_update_publication_status(self, services: DealerServices):
        vehicle = services.vehicles.update_publication_status(
            2, "autotrader", "published", listing_id="AT_1", listing_url="https://example.test/at/1"
        )
        entry = vehicle["publications"]["autotrader"]
        assert entry["status"] == "published"
        assert entry["listing_id"] == "AT_1"
        assert entry["published_at"] is not None

    def test_other_platform_untouched(self, services: DealerServices):
        services.vehicles.update_publication_status(1, "autotrader", "pending")
        publications = services.vehicles.get_publication_status(1)
        assert publications["carscom"]["listing_id"] == "CARS_1758380400001"
        assert publications["autotrader"]["published_at"] is None

    def test_unknown_platform(self, services: DealerServices):
        with pytest.raises(ValidationError, match="platform"):
            services.vehicles.update_publication_status(1, "craigslist", "pending")

    def test_unknown_publication_status(self, services: DealerServices):
        with pytest.raises(ValidationError):
            services.vehicles.update_publication_status(1, "carscom", "live")


# ── Branches & vendors ─────────────────────────────────────────


class TestBranches:
    def test_defaults(self, services: DealerServices):
        created = services.branches.create({"name": "Lakeway Motors"})
        assert created["status"] == "active"
        assert created["created_at"] == created["updated_at"]

    def test_update_touches_timestamp(self, services: DealerServices):
        updated = services.branches.update(1, {"manager": "Chris Paul"})
        assert updated["updated_at"] != "2024-01-15T00:00:00+00:00"
        assert updated["created_at"] == "2024-01-15T00:00:00+00:00"

    def test_invalid_status(self, services: DealerServices):
        with pytest.raises(ValidationError):
            services.branches.update(1, {"status": "closed"})

    def test_get_active(self, services: DealerServices):
        services.branches.update(2, {"status": "inactive"})
        assert [b["id"] for b in services.branches.get_active()] == [1, 3]


class TestVendors:
    def test_search_by_name(self, services: DealerServices):
        assert [v["id"] for v in services.vendors.search("shine")] == [2]

    def test_search_matches_contact_and_email(self, services: DealerServices):
        assert [v["id"] for v in services.vendors.search("Hannah")] == [6]
        assert [v["id"] for v in services.vendors.search("guardianins")] == [5]

    def test_empty_search_returns_all(self, services: DealerServices):
        assert len(services.vendors.search("  ")) == 6

    def test_by_category_and_status(self, services: DealerServices):
        assert [v["id"] for v in services.vendors.get_by_category("finance")] == [4]
        assert [v["id"] for v in services.vendors.get_by_status("pending")] == [6]

    def test_rating_out_of_range(self, services: DealerServices):
        with pytest.raises(ValidationError, match="rating"):
            services.vendors.update(1, {"rating": 6})

    def test_invalid_category(self, services: DealerServices):
        with pytest.raises(ValidationError, match="category"):
            services.vendors.create({"name": "Acme", "category": "catering"})

    def test_create_defaults_to_active(self, services: DealerServices):
        created = services.vendors.create({"name": "Acme Glass", "category": "service"})
        assert created["status"] == "active"


# ── Leads ──────────────────────────────────────────────────────


class TestLeads:
    def test_defaults(self, services: DealerServices):
        created = services.leads.create({"name": "Sam Rivers"})
        assert created["status"] == "New"
        assert created["lead_score"] == 50
        assert created["contact_history"] == []
        assert created["appointments"] == []
        assert created["trade_in"] is False

    def test_score_out_of_range(self, services: DealerServices):
        with pytest.raises(ValidationError, match="lead_score"):
            services.leads.update(1, {"lead_score": 120})

    def test_invalid_status(self, services: DealerServices):
        with pytest.raises(ValidationError):
            services.leads.update(1, {"status": "Lukewarm"})

    def test_contact_history_newest_first(self, services: DealerServices):
        lead = services.leads.add_contact_history(1, {"type": "SMS", "notes": "Running late"})
        assert lead["contact_history"][0]["type"] == "SMS"
        assert len(lead["contact_history"]) == 3
        assert lead["last_contact"] == lead["contact_history"][0]["date"]

    def test_schedule_appointment_appends(self, services: DealerServices):
        lead = services.leads.schedule_appointment(
            1, {"type": "Delivery", "date": "2026-10-25T10:00:00+00:00", "status": "Done"}
        )
        assert len(lead["appointments"]) == 2
        assert lead["appointments"][-1]["type"] == "Delivery"
        assert lead["appointments"][-1]["status"] == "Scheduled"

    def test_get_by_status(self, services: DealerServices):
        assert [lead["id"] for lead in services.leads.get_by_status("Hot")] == [1, 4]


# ── Deals ──────────────────────────────────────────────────────


class TestDeals:
    def test_defaults(self, services: DealerServices):
        created = services.deals.create({"vehicle_id": 2, "customer_id": 106, "sale_price": 27000})
        assert created["status"] == "Draft"
        assert created["documents"] == []
        assert created["deal_date"]

    def test_invalid_status(self, services: DealerServices):
        with pytest.raises(ValidationError, match="deal status"):
            services.deals.update(9, {"status": "Signed"})

    def test_add_documents_get_increasing_ids(self, services: DealerServices):
        first = services.deals.add_document(9, {"name": "Bill of sale", "type": "contract"})
        second = services.deals.add_document(9, {"name": "Title", "type": "title"})
        assert (first["id"], second["id"]) == (1, 2)
        assert first["upload_date"]
        assert len(services.deals.get_by_id(9)["documents"]) == 2

    def test_document_id_follows_highest(self, services: DealerServices):
        services.deals.add_document(9, {"name": "a"})
        services.deals.add_document(9, {"name": "b"})
        services.deals.remove_document(9, 1)
        assert services.deals.add_document(9, {"name": "c"})["id"] == 3

    def test_remove_document(self, services: DealerServices):
        services.deals.add_document(9, {"name": "Bill of sale"})
        removed = services.deals.remove_document(9, 1)
        assert removed["name"] == "Bill of sale"
        assert services.deals.get_by_id(9)["documents"] == []

    def test_remove_missing_document(self, services: DealerServices):
        with pytest.raises(NotFoundError, match="Document 4"):
            services.deals.remove_document(9, 4)

    def test_completed_and_by_customer(self, services: DealerServices):
        assert len(services.deals.get_completed()) == 7
        assert [d["id"] for d in services.deals.get_by_customer(103)] == [4, 5, 6]
