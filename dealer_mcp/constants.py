"""Shared constants used across services, analytics and tools.

Single source of truth for status vocabularies and the fixed lookup tables
(service catalog, checklists, loyalty benefits).
"""

from __future__ import annotations

import re
from dataclasses import dataclass

VIN_RE = re.compile(r"^[A-HJ-NPR-Z0-9]{17}$", re.IGNORECASE)

# ── Status vocabularies ─────────────────────────────────────────────

VEHICLE_STATUSES: tuple[str, ...] = ("Available", "Pending", "Sold")
AVAILABLE_STATUS = "Available"

PUBLICATION_STATUSES: tuple[str, ...] = ("pending", "published", "failed", "removed")

LEAD_STATUSES: tuple[str, ...] = ("New", "Hot", "Warm", "Cold", "Follow-up")

DEAL_STATUSES: tuple[str, ...] = ("Draft", "Pending", "Completed", "Cancelled")
COMPLETED_DEAL_STATUS = "Completed"

INVOICE_STATUSES: tuple[str, ...] = ("Draft", "Sent", "Partially Paid", "Paid", "Overdue")
PAYMENT_STATUSES: tuple[str, ...] = ("Not Sent", "Pending", "Partial", "Completed", "Overdue")

RECON_STATUSES: tuple[str, ...] = ("Scheduled", "In Progress", "Complete", "Cancelled")
RECON_PRIORITIES: tuple[str, ...] = ("Low", "Medium", "High")

# Allowed target states per current state. Terminal states map to nothing.
RECON_TRANSITIONS: dict[str, frozenset[str]] = {
    "Scheduled": frozenset({"In Progress", "Cancelled"}),
    "In Progress": frozenset({"Complete", "Cancelled"}),
    "Complete": frozenset(),
    "Cancelled": frozenset(),
}

TECHNICIAN_STATUSES: tuple[str, ...] = ("Available", "Busy", "Off")

VENDOR_CATEGORIES: tuple[str, ...] = (
    "parts",
    "service",
    "reconditioning",
    "transport",
    "finance",
    "insurance",
    "marketing",
)
VENDOR_STATUSES: tuple[str, ...] = ("active", "inactive", "pending")

BRANCH_STATUSES: tuple[str, ...] = ("active", "inactive")

# ── Money and rates ─────────────────────────────────────────────────

DEFAULT_FLOORPLAN_RATE = 0.08
DEFAULT_TAX_RATE = 8.25
DOCUMENTATION_FEE = 299.00
PAYMENT_TERMS_DAYS = 30
COST_TO_PRICE_RATIO = 0.8

RECOMMENDATION_APR = 4.9
RECOMMENDATION_TERM_MONTHS = 60
MAX_RECOMMENDATIONS = 6

AGING_BUCKETS: tuple[tuple[str, int | None], ...] = (
    ("0-30", 30),
    ("31-60", 60),
    ("61-90", 90),
    ("90+", None),
)

# ── Loyalty program ─────────────────────────────────────────────────

LOYALTY_ACTIVE_DAYS = 24 * 30
LOYALTY_REPEAT_BONUS = 500
LOYALTY_THIRD_PURCHASE_BONUS = 1000

# Highest threshold first.
LOYALTY_TIERS: tuple[tuple[int, str], ...] = (
    (5000, "Gold"),
    (2500, "Silver"),
    (0, "Bronze"),
)

TIER_BENEFITS: dict[str, tuple[str, ...]] = {
    "Gold": (
        "Priority service scheduling",
        "Complimentary loaner vehicle",
        "Free annual full detail",
        "2% discount on next purchase",
    ),
    "Silver": (
        "Priority service scheduling",
        "Free oil changes for one year",
        "1% discount on next purchase",
    ),
    "Bronze": (
        "Member service discounts",
        "Exclusive event invitations",
    ),
}

# ── Reconditioning catalog ──────────────────────────────────────────


@dataclass(frozen=True)
class ServiceType:
    """A reconditioning service offered by the shop."""
    name: str
    estimated_hours: int
    description: str
    category: str

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "estimated_hours": self.estimated_hours,
            "description": self.description,
            "category": self.category,
        }


SERVICE_TYPES: tuple[ServiceType, ...] = (
    ServiceType("Full Detail", 6, "Complete interior and exterior cleaning and detailing", "Detailing"),
    ServiceType("Express Detail", 3, "Quick exterior wash and interior vacuum", "Detailing"),
    ServiceType("Mechanical Inspection", 4, "Comprehensive mechanical systems check", "Mechanical"),
    ServiceType("Engine Diagnostic", 2, "Computer diagnostic and engine analysis", "Mechanical"),
    ServiceType("Body Work", 8, "Bodywork repairs and paint touch-ups", "Body"),
    ServiceType("Paint Correction", 5, "Paint defect removal and correction", "Body"),
    ServiceType("Interior Repair", 4, "Interior component repair and restoration", "Interior"),
    ServiceType("Tire Service", 2, "Tire inspection, rotation, and replacement", "Mechanical"),
)

SERVICE_TYPES_BY_NAME: dict[str, ServiceType] = {s.name: s for s in SERVICE_TYPES}

SERVICE_CHECKLISTS: dict[str, tuple[str, ...]] = {
    "Full Detail": (
        "Exterior wash",
        "Interior vacuum",
        "Dashboard cleaning",
        "Window cleaning",
        "Tire shine",
        "Final inspection",
    ),
    "Mechanical Inspection": (
        "Engine diagnostic",
        "Brake inspection",
        "Fluid levels check",
        "Tire condition",
        "Battery test",
        "Final report",
    ),
    "Body Work": (
        "Damage assessment",
        "Sand affected area",
        "Apply primer",
        "Paint application",
        "Clear coat finish",
        "Quality inspection",
    ),
}

DEFAULT_CHECKLIST: tuple[str, ...] = (
    "Initial assessment",
    "Service completion",
    "Quality check",
    "Final inspection",
)

# ── Marketplaces ────────────────────────────────────────────────────

CARS_COM_PLATFORM = "carscom"
AUTOTRADER_PLATFORM = "autotrader"
LISTING_PLATFORMS: tuple[str, ...] = (CARS_COM_PLATFORM, AUTOTRADER_PLATFORM)
