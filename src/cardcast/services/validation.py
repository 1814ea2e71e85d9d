"""Input checks run before the simulator sees a request or snapshot."""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Optional

from ..domain.cards import CardSnapshot
from ..domain.errors import ForecastInputError
from ..domain.money import to_money


def require_money(name: str, value: object, *, allow_none: bool = False) -> Optional[Decimal]:
    """Return *value* as a finite, non-negative ``Decimal``."""

    if value is None:
        if allow_none:
            return None
        raise ForecastInputError(f"{name} is required")
    try:
        amount = to_money(value)
    except (ArithmeticError, TypeError, ValueError) as exc:
        raise ForecastInputError(f"{name} must be a number, got {value!r}") from exc
    if not amount.is_finite():
        raise ForecastInputError(f"{name} must be finite, got {value!r}")
    if amount < 0:
        raise ForecastInputError(f"{name} cannot be negative, got {value!r}")
    return amount


def require_finite(name: str, value: object) -> Decimal:
    """Return *value* as a finite ``Decimal``; negative amounts are allowed."""

    try:
        amount = to_money(value)
    except (ArithmeticError, TypeError, ValueError) as exc:
        raise ForecastInputError(f"{name} must be a number, got {value!r}") from exc
    if not amount.is_finite():
        raise ForecastInputError(f"{name} must be finite, got {value!r}")
    return amount


def require_months(value: object, *, maximum: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ForecastInputError(f"months must be an integer, got {value!r}")
    if not 1 <= value <= maximum:
        raise ForecastInputError(f"months must be between 1 and {maximum}, got {value}")
    return value


def validate_snapshot(cards: Iterable[CardSnapshot]) -> list[CardSnapshot]:
    """Reject snapshots the simulator must never see.

    Returns the cards as a list so callers can validate and consume a
    generator in one pass.
    """

    checked: list[CardSnapshot] = []
    seen_cards: set[int] = set()
    for card in cards:
        if card.id in seen_cards:
            raise ForecastInputError(f"Duplicate card id {card.id}")
        seen_cards.add(card.id)
        label = f"card {card.name!r}"
        require_money(f"{label} standard_apr", card.standard_apr, allow_none=True)
        require_money(f"{label} min_percentage", card.min_percentage, allow_none=True)
        require_money(f"{label} min_floor", card.min_floor, allow_none=True)
        for bucket in card.buckets:
            bucket_label = f"{label} bucket {bucket.name!r}"
            if bucket.card_id != card.id:
                raise ForecastInputError(f"{bucket_label} belongs to card {bucket.card_id}")
            require_money(f"{bucket_label} balance", bucket.balance)
            require_money(f"{bucket_label} promo_apr", bucket.promo_apr, allow_none=True)
        checked.append(card)
    return checked


__all__ = ["require_finite", "require_money", "require_months", "validate_snapshot"]
