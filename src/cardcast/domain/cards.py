"""Credit card and bucket records plus their rate and minimum-payment rules."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional, Protocol, Sequence

from .money import ZERO, normalize_apr, to_money

DEFAULT_MIN_PERCENTAGE = Decimal("0.02")
DEFAULT_MIN_FLOOR = Decimal("25")


class BucketKind(str, Enum):
    """What a bucket's balance came from."""

    PURCHASES = "purchases"
    TRANSFER = "transfer"


class RatedBucket(Protocol):
    """Anything carrying a balance and an optional promotional rate."""

    balance: Decimal
    promo_apr: Optional[Decimal]
    promo_end_date: Optional[date]


class RatedCard(Protocol):
    """Anything carrying the card-level rate and minimum-payment terms."""

    standard_apr: Optional[Decimal]
    min_percentage: Optional[Decimal]
    min_floor: Optional[Decimal]


@dataclass(frozen=True, slots=True)
class BucketSnapshot:
    """A bucket as loaded from storage, before any simulation touches it."""

    id: int
    card_id: int
    name: str
    balance: Decimal
    kind: BucketKind = BucketKind.PURCHASES
    promo_apr: Optional[Decimal] = None
    promo_end_date: Optional[date] = None


@dataclass(frozen=True, slots=True)
class CardSnapshot:
    """A card with its buckets in declaration order."""

    id: int
    name: str
    standard_apr: Optional[Decimal] = None
    min_percentage: Optional[Decimal] = None
    min_floor: Optional[Decimal] = None
    buckets: tuple[BucketSnapshot, ...] = field(default_factory=tuple)

    @property
    def total_balance(self) -> Decimal:
        return card_balance(self.buckets)


def card_balance(buckets: Sequence[RatedBucket]) -> Decimal:
    """Sum bucket balances, ignoring negative dust."""

    return sum((max(ZERO, bucket.balance) for bucket in buckets), ZERO)


def effective_apr(bucket: RatedBucket, card: RatedCard, month: date) -> Decimal:
    """Return the APR that applies to *bucket* during *month*.

    A dated promotion holds through its end date inclusive; an undated one is
    permanent. Everything else accrues at the card's standard rate.
    """

    if bucket.balance <= 0:
        return ZERO

    if bucket.promo_apr is not None and bucket.promo_end_date is not None:
        apr = bucket.promo_apr if month <= bucket.promo_end_date else card.standard_apr
    elif bucket.promo_apr is not None:
        apr = bucket.promo_apr
    else:
        apr = card.standard_apr

    return normalize_apr(apr)


def minimum_payment(card: RatedCard, balance: Decimal) -> Decimal:
    """Contractual minimum: the larger of percentage and floor, capped at the balance."""

    if balance <= 0:
        return ZERO
    percentage = (
        to_money(card.min_percentage) if card.min_percentage is not None else DEFAULT_MIN_PERCENTAGE
    )
    floor = to_money(card.min_floor) if card.min_floor is not None else DEFAULT_MIN_FLOOR
    return min(balance, max(balance * percentage, floor))


__all__ = [
    "BucketKind",
    "BucketSnapshot",
    "CardSnapshot",
    "DEFAULT_MIN_FLOOR",
    "DEFAULT_MIN_PERCENTAGE",
    "card_balance",
    "effective_apr",
    "minimum_payment",
]
