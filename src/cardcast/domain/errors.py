"""Domain exceptions."""

from __future__ import annotations


class ForecastInputError(ValueError):
    """Raised when a forecast request or card snapshot is malformed.

    Degenerate-but-valid situations (no cards, a budget below the minimums,
    a horizon too short to reach zero) are results, never this error.
    """
