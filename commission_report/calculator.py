"""Commission calculation logic for Dealership Commission Reports

Business Logic:
===============

Base commission is driven by the deal's true down payment:
- No down payment (0 or less): no commission
- Up to $3,000: flat $100
- Above $3,000: 5% of the down payment (not rounded here)

A row's note can override the computed commission:
- Ratio "60/40": pays 60 / (60 + 40) of the commission
- Percentage "75%": pays 75% of the commission
- Fixed "override $250" / "payout 250": pays exactly that amount

Final amounts are rounded to cents and never negative.
"""
import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from .override_parser import OverrideKind, OverrideParser, format_number
from config import BASE_COMMISSION_FLAT, BASE_COMMISSION_FLAT_LIMIT, BASE_COMMISSION_RATE


@dataclass(frozen=True)
class OverrideResult:
    """Commission after applying a note override"""
    amount: float
    override_applied: bool
    details: Optional[str]


_parser = OverrideParser()


def round_half_up(value: float, places: int = 2) -> float:
    """Round halves away from zero (150.125 -> 150.13), unlike round()."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(repr(float(value))).quantize(quantum, rounding=ROUND_HALF_UP))


def clamp_currency(value: float) -> float:
    """Round to cents, floor at zero. Non-finite values become 0."""
    if not math.isfinite(value):
        return 0.0
    return max(0.0, round_half_up(value, 2))


def calculate_base_commission(true_down_payment: float) -> float:
    if true_down_payment <= 0:
        return 0
    if true_down_payment <= BASE_COMMISSION_FLAT_LIMIT:
        return BASE_COMMISSION_FLAT
    return true_down_payment * BASE_COMMISSION_RATE


def apply_commission_override(base_amount: float, note: Optional[str]) -> OverrideResult:
    """
    Apply any override found in ``note`` to ``base_amount``.

    Args:
        base_amount: Commission before the override (already share adjusted)
        note: Free-text row note, may be empty

    Returns:
        OverrideResult; notes without a recognized override leave the
        base amount unchanged.
    """
    parsed = _parser.parse(note)
    if parsed is None:
        return OverrideResult(amount=clamp_currency(base_amount), override_applied=False, details=None)

    if parsed.kind is OverrideKind.RATIO:
        return OverrideResult(
            amount=clamp_currency(base_amount * parsed.value),
            override_applied=True,
            details=f"Applied {format_number(parsed.value * 100)}% from ratio {parsed.source}",
        )

    if parsed.kind is OverrideKind.PERCENTAGE:
        return OverrideResult(
            amount=clamp_currency(base_amount * parsed.value),
            override_applied=True,
            details=f"Applied {format_number(float(parsed.source))}% override",
        )

    # Fixed amount replaces the commission outright
    return OverrideResult(
        amount=clamp_currency(parsed.value),
        override_applied=True,
        details=f"Override amount {format_number(parsed.value)}",
    )
