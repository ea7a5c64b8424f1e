"""Deals (sales), their documents, loyalty and margin analytics."""

from __future__ import annotations

import logging
from typing import Any

from dealer_mcp.analytics.finance import calculate_margin_waterfall
from dealer_mcp.analytics.loyalty import calculate_customer_loyalty
from dealer_mcp.constants import COMPLETED_DEAL_STATUS, DEAL_STATUSES
from dealer_mcp.errors import NotFoundError, ValidationError, coerce_id
from dealer_mcp.services.base import EntityService, check_choice, isoformat, utc_now

logger = logging.getLogger(__name__)


class DealService(EntityService):
    collection = "deals"
    entity_name = "Deal"
    fields = frozenset({
        "customer_id", "customer_name", "customer_email", "customer_address",
        "vehicle_id", "vehicle", "sale_price", "margin", "trade_in_value",
        "floorplan_cost", "reconditioning_cost", "other_costs", "status",
        "deal_date", "salesperson", "documents", "notes",
    })
    required = ("vehicle_id",)

    def _defaults(self, record: dict[str, Any]) -> dict[str, Any]:
        record.setdefault("status", "Draft")
        record.setdefault("deal_date", isoformat(utc_now()))
        record.setdefault("documents", [])
        return record

    def _validate(self, record: dict[str, Any]) -> None:
        check_choice(record.get("status"), DEAL_STATUSES, label="deal status")
        price = record.get("sale_price")
        if price is not None and (not isinstance(price, (int, float)) or price < 0):
            raise ValidationError(f"sale_price must be a non-negative number, got {price!r}")

    def get_completed(self) -> list[dict[str, Any]]:
        return self.find(lambda d: d.get("status") == COMPLETED_DEAL_STATUS)

    def get_by_customer(self, customer_id: Any) -> list[dict[str, Any]]:
        cid = coerce_id(customer_id, label="customer id")
        return self.find(lambda d: d.get("customer_id") == cid)

    # ── Documents ──────────────────────────────────────────────────

    def add_document(self, deal_id: Any, document: dict[str, Any]) -> dict[str, Any]:
        """Attach a document to a deal; returns the stored document."""
        if not isinstance(document, dict):
            raise ValidationError("Document must be an object")
        deal = self.get_by_id(deal_id)
        documents = list(deal.get("documents") or [])
        next_id = max((int(d.get("id") or 0) for d in documents), default=0) + 1
        stored = {**document, "id": next_id, "upload_date": isoformat(utc_now())}
        documents.append(stored)
        deal["documents"] = documents
        self._save(deal)
        logger.info("Added document %s to deal %s", next_id, deal["id"])
        return stored

    def remove_document(self, deal_id: Any, document_id: Any) -> dict[str, Any]:
        deal = self.get_by_id(deal_id)
        doc_id = coerce_id(document_id, label="document id")
        documents = list(deal.get("documents") or [])
        for idx, doc in enumerate(documents):
            if doc.get("id") == doc_id:
                removed = documents.pop(idx)
                deal["documents"] = documents
                self._save(deal)
                return removed
        raise NotFoundError(
            f"Document {doc_id} not found on deal {deal['id']}",
            details={"deal_id": deal["id"], "document_id": doc_id},
        )

    # ── Analytics ──────────────────────────────────────────────────

    def get_customer_loyalty(self, customer_id: Any) -> dict[str, Any]:
        cid = coerce_id(customer_id, label="customer id")
        return calculate_customer_loyalty(cid, self.get_all())

    def get_margin_waterfall(self, deal_id: Any) -> dict[str, Any]:
        return calculate_margin_waterfall(self.get_by_id(deal_id))
