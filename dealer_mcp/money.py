"""Half-away-from-zero rounding for money values."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

_CENT = Decimal("0.01")


def round_money(value: float, places: int = 2) -> float:
    """Round ``value`` to ``places`` decimals, halves away from zero."""
    quantum = _CENT if places == 2 else Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def round_whole(value: float) -> int:
    """Round ``value`` to an integer, halves away from zero."""
    return int(Decimal(str(value)).quantize(Decimal(1), rounding=ROUND_HALF_UP))
