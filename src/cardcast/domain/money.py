"""Money and rate primitives shared by the simulator and reports."""

from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_UP, Decimal

Money = Decimal

CENT = Decimal("0.01")
ZERO = Decimal("0")
PAID_OFF_THRESHOLD = Decimal("0.01")


def to_money(value: object) -> Decimal:
    """Convert stored numbers to ``Decimal`` without inheriting float noise."""

    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)  # type: ignore[arg-type]


def round_money(value: Decimal) -> Decimal:
    """Round to cents using half-up rounding (emission time only)."""

    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def is_paid_off(balance: Decimal) -> bool:
    return balance <= PAID_OFF_THRESHOLD


def normalize_apr(apr: object) -> Decimal:
    """Return *apr* as a fraction.

    Values above 1 were typed as percentage points (``20`` for 20%) and are
    divided by 100; missing rates count as zero.
    """

    rate = to_money(apr)
    if rate > 1:
        rate = rate / 100
    return rate


def first_of_month(value: date) -> date:
    return value.replace(day=1)


def add_months(value: date, months: int) -> date:
    """Shift a first-of-month date by *months* (negative values allowed)."""

    index = value.year * 12 + (value.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


__all__ = [
    "CENT",
    "Money",
    "PAID_OFF_THRESHOLD",
    "ZERO",
    "add_months",
    "first_of_month",
    "is_paid_off",
    "normalize_apr",
    "round_money",
    "to_money",
]
