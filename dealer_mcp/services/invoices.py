"""Invoices and their payment state machine.

    Draft --send--> Sent --payment--> Partially Paid --payment--> Paid
      \\              \\                  \\
       +--------------+------------------+--> Overdue (explicit check)

``balance_due`` is always ``max(0, total_amount - amount_paid)``.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta
from typing import Any

from dealer_mcp.constants import (
    COMPLETED_DEAL_STATUS,
    INVOICE_STATUSES,
    PAYMENT_STATUSES,
)
from dealer_mcp.errors import DomainConflictError, ValidationError, coerce_id
from dealer_mcp.money import round_money
from dealer_mcp.services.base import (
    EntityService,
    check_choice,
    isoformat,
    parse_datetime,
    utc_now,
)
from dealer_mcp.services.deals import DealService

logger = logging.getLogger(__name__)

DEFAULT_TERMS = "Payment due within 30 days. Late payments subject to 1.5% monthly service charge."
GENERATED_NOTES = "Invoice generated from completed deal. Thank you for your business!"
PLACEHOLDER_ADDRESS = {
    "street": "Address not provided",
    "city": "City",
    "state": "State",
    "zip_code": "00000",
}


def invoice_number(issued: datetime, invoice_id: int) -> str:
    return f"INV-{issued.year}-{invoice_id:03d}"


def balance_due(total_amount: float, amount_paid: float) -> float:
    return round_money(max(0.0, float(total_amount) - float(amount_paid)))


def fallback_email(customer_name: str) -> str:
    """``Jane Q Doe`` -> ``jane.q doe@email.com``: only the first space becomes a dot."""
    return f"{customer_name.lower().replace(' ', '.', 1)}@email.com"


def _number(value: Any, label: str) -> float:
    if isinstance(value, bool):
        raise ValidationError(f"{label} must be a number, got {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{label} must be a number, got {value!r}") from None
    if not math.isfinite(number):
        raise ValidationError(f"{label} must be a finite number, got {value!r}")
    return number


class InvoiceService(EntityService):
    collection = "invoices"
    entity_name = "Invoice"
    fields = frozenset({
        "invoice_number", "deal_id", "customer_id", "customer_name",
        "customer_email", "customer_address", "issue_date", "due_date", "status",
        "payment_status", "payment_date", "payment_method", "vehicle",
        "line_items", "subtotal", "tax_rate", "tax_amount", "total_amount",
        "amount_paid", "balance_due", "notes", "terms", "created_by",
        "created_at", "updated_at",
    })
    required = ("customer_name",)

    # ── Construction ───────────────────────────────────────────────

    def _line_items(self, items: Any) -> list[dict[str, Any]]:
        if not isinstance(items, list) or not items:
            raise ValidationError("Invoice requires at least one line item")
        normalized = []
        for idx, item in enumerate(items, start=1):
            if not isinstance(item, dict) or not str(item.get("description") or "").strip():
                raise ValidationError(f"Line item {idx} requires a description")
            quantity = _number(item.get("quantity", 1), f"Line item {idx} quantity")
            unit_price = _number(item.get("unit_price", 0), f"Line item {idx} unit_price")
            total = item.get("total")
            normalized.append({
                **item,
                "id": item.get("id", idx),
                "quantity": quantity,
                "unit_price": unit_price,
                "total": round_money(
                    quantity * unit_price if total is None else _number(total, f"Line item {idx} total")
                ),
            })
        return normalized

    def _defaults(self, record: dict[str, Any]) -> dict[str, Any]:
        self._check_required(record)
        items = self._line_items(record.get("line_items"))
        record["line_items"] = items

        subtotal = record.get("subtotal")
        if subtotal is None:
            subtotal = sum(item["total"] for item in items)
        subtotal = round_money(_number(subtotal, "subtotal"))
        tax_rate = _number(record.get("tax_rate", self.config.tax_rate), "tax_rate")
        tax_amount = record.get("tax_amount")
        if tax_amount is None:
            tax_amount = subtotal * tax_rate / 100
        tax_amount = round_money(_number(tax_amount, "tax_amount"))
        total_amount = record.get("total_amount")
        if total_amount is None:
            total_amount = subtotal + tax_amount
        total_amount = round_money(_number(total_amount, "total_amount"))

        now = utc_now()
        issued = parse_datetime(record.get("issue_date") or now, label="issue_date")
        record.update({
            "subtotal": subtotal,
            "tax_rate": tax_rate,
            "tax_amount": tax_amount,
            "total_amount": total_amount,
            "issue_date": isoformat(issued),
            "status": "Draft",
            "payment_status": "Not Sent",
            "payment_date": None,
            "payment_method": None,
            "amount_paid": 0.0,
            "balance_due": total_amount,
            "created_at": isoformat(now),
            "updated_at": isoformat(now),
        })
        if not record.get("due_date"):
            record["due_date"] = isoformat(
                issued + timedelta(days=self.config.payment_terms_days)
            )
        record.setdefault("deal_id", None)
        record.setdefault("notes", "")
        record.setdefault("terms", DEFAULT_TERMS)
        return record

    def _touch(self, record: dict[str, Any]) -> dict[str, Any]:
        record["balance_due"] = balance_due(
            record.get("total_amount") or 0, record.get("amount_paid") or 0
        )
        record["updated_at"] = isoformat(utc_now())
        return record

    def _validate(self, record: dict[str, Any]) -> None:
        check_choice(record.get("status"), INVOICE_STATUSES, label="invoice status")
        check_choice(record.get("payment_status"), PAYMENT_STATUSES, label="payment status")

    def _insert_numbered(self, record: dict[str, Any]) -> dict[str, Any]:
        created = self.store.insert(record)
        created["invoice_number"] = invoice_number(
            parse_datetime(created["issue_date"]), created["id"]
        )
        return self._save(created)

    def create(self, data: dict[str, Any]) -> dict[str, Any]:
        record = self._defaults(self._check_fields(data))
        self._validate(record)
        created = self._insert_numbered(record)
        logger.info("Created invoice %s", created["invoice_number"])
        return created

    def get_by_deal(self, deal_id: Any) -> dict[str, Any] | None:
        did = coerce_id(deal_id, label="deal id")
        return next((inv for inv in self.get_all() if inv.get("deal_id") == did), None)

    def generate_from_deal(self, deal_id: Any) -> dict[str, Any]:
        """Build the invoice for a completed deal. One invoice per deal."""
        deal = DealService(self._database, self.config).get_by_id(deal_id)
        if deal.get("status") != COMPLETED_DEAL_STATUS:
            raise DomainConflictError(
                "Can only generate invoices for completed deals",
                details={"deal_id": deal["id"], "status": deal.get("status")},
            )
        if self.get_by_deal(deal["id"]) is not None:
            raise DomainConflictError(
                f"Invoice already exists for deal {deal['id']}",
                details={"deal_id": deal["id"]},
            )

        sale_price = float(deal.get("sale_price") or 0)
        vehicle = deal.get("vehicle")
        items: list[dict[str, Any]] = []
        if vehicle:
            items.append({
                "description": f"{vehicle.get('year')} {vehicle.get('make')} {vehicle.get('model')} - Vehicle Sale",
                "quantity": 1,
                "unit_price": sale_price,
            })
        trade_in = float(deal.get("trade_in_value") or 0)
        if trade_in > 0:
            items.append({
                "description": "Trade-in Vehicle Credit",
                "quantity": 1,
                "unit_price": -trade_in,
            })
        items.append({
            "description": "Documentation Fee",
            "quantity": 1,
            "unit_price": self.config.documentation_fee,
        })

        customer_name = deal.get("customer_name") or "Customer"
        record = self._defaults({
            "deal_id": deal["id"],
            "customer_id": deal.get("customer_id"),
            "customer_name": customer_name,
            "customer_email": deal.get("customer_email") or fallback_email(customer_name),
            "customer_address": deal.get("customer_address") or dict(PLACEHOLDER_ADDRESS),
            "vehicle": {
                "year": vehicle.get("year"),
                "make": vehicle.get("make"),
                "model": vehicle.get("model"),
                "vin": vehicle.get("vin"),
                "mileage": vehicle.get("mileage"),
            } if vehicle else None,
            "line_items": items,
            "notes": GENERATED_NOTES,
            "terms": DEFAULT_TERMS,
            "created_by": "System",
        })
        created = self._insert_numbered(record)
        logger.info("Generated invoice %s from deal %s", created["invoice_number"], deal["id"])
        return created

    # ── State transitions ──────────────────────────────────────────

    def send_invoice(self, invoice_id: Any, email: str | None = None) -> dict[str, Any]:
        """Move a Draft to Sent/Pending. Other states are left alone."""
        invoice = self.get_by_id(invoice_id)
        if invoice["status"] == "Draft":
            invoice["status"] = "Sent"
            invoice["payment_status"] = "Pending"
            invoice = self._save(self._touch(invoice))
        sent_to = email or invoice.get("customer_email")
        logger.info("Sent invoice %s to %s", invoice["invoice_number"], sent_to)
        return {
            "success": True,
            "sent_to": sent_to,
            "sent_at": isoformat(utc_now()),
            "message": "Invoice sent successfully",
            "invoice": invoice,
        }

    def generate_pdf(self, invoice_id: Any) -> dict[str, Any]:
        """Simulated PDF render: names the file and a download anchor, writes nothing."""
        invoice = self.get_by_id(invoice_id)
        number = invoice["invoice_number"]
        logger.info("Generated PDF for invoice %s", number)
        return {
            "success": True,
            "invoice_id": invoice["id"],
            "file_name": f"{number}.pdf",
            "url": f"#pdf-download-{number}",
            "generated_at": isoformat(utc_now()),
        }

    def record_payment(
        self,
        invoice_id: Any,
        amount: Any,
        payment_method: str | None = None,
    ) -> dict[str, Any]:
        value = _number(amount, "Payment amount")
        if value <= 0:
            raise ValidationError(f"Payment amount must be greater than 0, got {amount!r}")
        invoice = self.get_by_id(invoice_id)
        if invoice["status"] == "Paid":
            raise DomainConflictError(
                f"Invoice {invoice['invoice_number']} is already paid",
                details={"invoice_id": invoice["id"]},
            )

        now = utc_now()
        paid = round_money(float(invoice.get("amount_paid") or 0) + value)
        remaining = balance_due(invoice.get("total_amount") or 0, paid)
        if remaining == 0:
            invoice["status"], invoice["payment_status"] = "Paid", "Completed"
        else:
            invoice["status"], invoice["payment_status"] = "Partially Paid", "Partial"
        invoice["amount_paid"] = paid
        invoice["payment_date"] = isoformat(now)
        invoice["payment_method"] = payment_method
        note = f"Payment of ${value:,.2f} received on {now.date().isoformat()}."
        invoice["notes"] = f"{invoice.get('notes') or ''} {note}".strip()
        saved = self._save(self._touch(invoice))
        logger.info(
            "Recorded payment of %.2f on invoice %s (balance %.2f)",
            value, saved["invoice_number"], saved["balance_due"],
        )
        return saved

    def mark_as_overdue(self, invoice_id: Any) -> dict[str, Any]:
        invoice = self.get_by_id(invoice_id)
        if invoice["status"] == "Paid":
            raise DomainConflictError(
                f"Invoice {invoice['invoice_number']} is paid and cannot be overdue",
                details={"invoice_id": invoice["id"]},
            )
        invoice["status"] = "Overdue"
        invoice["payment_status"] = "Overdue"
        return self._save(self._touch(invoice))

    def check_overdue(self, now: datetime | None = None) -> list[dict[str, Any]]:
        """Mark past-due unpaid invoices as Overdue and return every overdue invoice."""
        now = now or utc_now()
        for invoice in self.get_all():
            if (
                invoice.get("status") != "Overdue"
                and float(invoice.get("balance_due") or 0) > 0
                and invoice.get("due_date")
                and parse_datetime(invoice["due_date"], label="due_date") < now
            ):
                self.mark_as_overdue(invoice["id"])
                logger.info("Invoice %s is overdue", invoice["invoice_number"])
        return [inv for inv in self.get_all() if inv.get("status") == "Overdue"]

    # ── Reporting ──────────────────────────────────────────────────

    def get_invoice_stats(self) -> dict[str, Any]:
        invoices = self.get_all()
        status_breakdown = {status: 0 for status in INVOICE_STATUSES}
        payment_breakdown = {status: 0 for status in PAYMENT_STATUSES}
        total = paid = pending = overdue = 0.0
        for invoice in invoices:
            total += float(invoice.get("total_amount") or 0)
            paid += float(invoice.get("amount_paid") or 0)
            if invoice.get("status") == "Overdue":
                overdue += float(invoice.get("balance_due") or 0)
            elif invoice.get("payment_status") in ("Pending", "Partial"):
                pending += float(invoice.get("balance_due") or 0)
            status_breakdown[invoice["status"]] = status_breakdown.get(invoice["status"], 0) + 1
            payment_breakdown[invoice["payment_status"]] = (
                payment_breakdown.get(invoice["payment_status"], 0) + 1
            )
        return {
            "total_invoices": len(invoices),
            "total_amount": round_money(total),
            "paid_amount": round_money(paid),
            "pending_amount": round_money(pending),
            "overdue_amount": round_money(overdue),
            "status_breakdown": status_breakdown,
            "payment_status_breakdown": payment_breakdown,
        }
