"""Forecast results repository protocol."""

from __future__ import annotations

from datetime import date
from typing import Optional, Protocol

from ...models.forecast import ForecastResult, PayoffSchedule
from ...services.forecast import ForecastOutcome


class ForecastRepository(Protocol):
    """Stores the latest forecast run, replacing whatever came before."""

    def replace_results(self, outcome: ForecastOutcome) -> None:
        """Delete all stored rows, then insert the outcome's rows."""
        ...

    def clear(self) -> None:
        """Delete all stored forecast and payoff rows."""
        ...

    def list_rows(self, *, month: Optional[date] = None) -> list[ForecastResult]:
        """List stored forecast rows ordered by month."""
        ...

    def list_payoffs(self) -> list[PayoffSchedule]:
        """List stored payoff entries ordered by payoff month."""
        ...
