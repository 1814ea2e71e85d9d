"""Pure domain layer: money primitives, card model and payoff strategies."""

from .errors import ForecastInputError
from .strategy import Strategy

__all__ = ["ForecastInputError", "Strategy"]
