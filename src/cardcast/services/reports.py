"""Read-side reports computed from the live card snapshot.

These answer "right now" questions and never consult stored forecast rows.
The cliff lookahead here assumes balances stay where they are; the cliffs a
forecast run reports account for paydown before the promotion ends, so the
two can legitimately disagree.
"""

from __future__ import annotations

from calendar import monthrange
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from ..domain.cards import CardSnapshot, effective_apr, minimum_payment
from ..domain.money import ZERO, add_months, first_of_month, normalize_apr, round_money

MONTHS_PER_YEAR = 12


@dataclass(slots=True)
class BucketRate:
    bucket_id: int
    name: str
    kind: str
    balance: Decimal
    promo_apr: Optional[Decimal]
    promo_end_date: Optional[date]
    effective_apr: Decimal


@dataclass(slots=True)
class CardPriority:
    """One card's place in today's avalanche order."""

    card_id: int
    card_name: str
    standard_apr: Decimal
    max_effective_apr: Decimal
    total_balance: Decimal
    minimum_payment: Decimal
    buckets: list[BucketRate] = field(default_factory=list)


@dataclass(slots=True)
class StrategyOrderReport:
    cards: list[CardPriority]
    total_debt: Decimal
    total_min_payments: Decimal
    strategy: str = "avalanche"
    description: str = "Pay highest APR first to minimize total interest"


@dataclass(slots=True)
class CliffWarning:
    """A promotion ending inside the lookahead window."""

    card_id: int
    card_name: str
    bucket_id: int
    bucket_name: str
    promo_end_date: date
    promo_apr: Decimal
    standard_apr: Decimal
    balance: Decimal
    monthly_interest_increase: Decimal


def strategy_order(cards: Iterable[CardSnapshot], *, today: date | None = None) -> StrategyOrderReport:
    """Rank cards with a balance by the highest rate any of their buckets pays today."""

    today = today or date.today()
    ranked: list[CardPriority] = []
    for card in cards:
        balance = card.total_balance
        if balance <= 0:
            continue
        rates = [
            BucketRate(
                bucket_id=bucket.id,
                name=bucket.name,
                kind=bucket.kind.value,
                balance=round_money(bucket.balance),
                promo_apr=bucket.promo_apr,
                promo_end_date=bucket.promo_end_date,
                effective_apr=effective_apr(bucket, card, today),
            )
            for bucket in card.buckets
        ]
        ranked.append(
            CardPriority(
                card_id=card.id,
                card_name=card.name,
                standard_apr=normalize_apr(card.standard_apr),
                max_effective_apr=max((rate.effective_apr for rate in rates), default=ZERO),
                total_balance=round_money(balance),
                minimum_payment=round_money(minimum_payment(card, balance)),
                buckets=rates,
            )
        )

    ranked.sort(key=lambda priority: priority.max_effective_apr, reverse=True)
    return StrategyOrderReport(
        cards=ranked,
        total_debt=sum((priority.total_balance for priority in ranked), ZERO),
        total_min_payments=sum((priority.minimum_payment for priority in ranked), ZERO),
    )


def cliff_lookahead(
    cards: Iterable[CardSnapshot], *, lookahead_months: int, today: date | None = None
) -> list[CliffWarning]:
    """List promotions ending between today and ``lookahead_months`` from now.

    The monthly increase is a static projection: the current balance times
    the jump from promotional to standard rate, spread over twelve months.
    """

    if lookahead_months < 0:
        raise ValueError("lookahead_months cannot be negative")

    today = today or date.today()
    window_end = _shift_date(today, lookahead_months)
    warnings: list[CliffWarning] = []
    for card in cards:
        standard = normalize_apr(card.standard_apr)
        for bucket in card.buckets:
            end = bucket.promo_end_date
            if end is None or not today <= end <= window_end:
                continue
            promo = normalize_apr(bucket.promo_apr)
            warnings.append(
                CliffWarning(
                    card_id=card.id,
                    card_name=card.name,
                    bucket_id=bucket.id,
                    bucket_name=bucket.name,
                    promo_end_date=end,
                    promo_apr=promo,
                    standard_apr=standard,
                    balance=round_money(bucket.balance),
                    monthly_interest_increase=round_money(
                        bucket.balance * (standard - promo) / MONTHS_PER_YEAR
                    ),
                )
            )
    warnings.sort(key=lambda warning: warning.promo_end_date)
    return warnings


def _shift_date(value: date, months: int) -> date:
    """Move *value* forward by whole months, clamping the day to the target month."""

    target = add_months(first_of_month(value), months)
    last_day = monthrange(target.year, target.month)[1]
    return target.replace(day=min(value.day, last_day))


__all__ = [
    "BucketRate",
    "CardPriority",
    "CliffWarning",
    "StrategyOrderReport",
    "cliff_lookahead",
    "strategy_order",
]
