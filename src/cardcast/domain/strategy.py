"""Extra-payment priority scoring for avalanche and snowball."""

from __future__ import annotations

from decimal import Decimal
from enum import Enum

from .errors import ForecastInputError

APR_WEIGHT = Decimal(1_000_000)
POSITION_SPAN = 30
POSITION_DIVISOR = Decimal(1000)


class Strategy(str, Enum):
    """Global ordering used to spend the extra-payment pool."""

    AVALANCHE = "avalanche"
    SNOWBALL = "snowball"

    @classmethod
    def parse(cls, value: "Strategy | str") -> "Strategy":
        if isinstance(value, Strategy):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            raise ForecastInputError(
                f"Invalid debt payoff strategy {value!r}; expected 'avalanche' or 'snowball'."
            ) from exc


def avalanche_score(apr: Decimal, position: int) -> Decimal:
    """Higher APR first; the position term only separates exact APR ties."""

    return apr * APR_WEIGHT + Decimal(POSITION_SPAN - position) / POSITION_DIVISOR


def priority_score(
    strategy: Strategy, *, apr: Decimal, position: int, remaining: Decimal
) -> Decimal:
    """Score a bucket for extra payments; callers sort descending."""

    if strategy is Strategy.AVALANCHE:
        return avalanche_score(apr, position)
    return -remaining


__all__ = ["Strategy", "avalanche_score", "priority_score"]
