"""Load, simulate and persist: the forecast use case end to end."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from ..domain.money import to_money
from ..domain.repositories import (
    CreditCardRepository,
    DebtConfigRepository,
    ForecastRepository,
    LedgerRepository,
)
from ..domain.strategy import Strategy
from .available import compute_available
from .forecast import DEFAULT_MONTHS, ForecastOutcome, ForecastRequest, run_forecast
from .reports import CliffWarning, StrategyOrderReport, cliff_lookahead, strategy_order

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ForecastService:
    """Application service wiring repositories to the simulator.

    Recalculations are serialized per service instance: the load, simulate
    and replace sequence of one request never interleaves with another's.
    """

    cards: CreditCardRepository
    results: ForecastRepository
    configs: Optional[DebtConfigRepository] = None
    ledger: Optional[LedgerRepository] = None
    default_months: int = DEFAULT_MONTHS
    default_strategy: str = Strategy.AVALANCHE.value
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def resolve_request(
        self,
        *,
        start_month: date | None = None,
        months: int | None = None,
        monthly_budget: object = None,
        strategy: str | None = None,
        use_available: bool = False,
        today: date | None = None,
    ) -> ForecastRequest:
        """Fill gaps in caller input from saved config and the ledger, then validate."""

        saved = self.configs.latest() if self.configs is not None else None
        if strategy is None:
            strategy = saved.strategy if saved is not None else self.default_strategy

        cash_flow = None
        if use_available:
            if self.ledger is None:
                raise ValueError("Available-funds budgeting needs a ledger repository")
            funds = compute_available(
                ledger=self.ledger,
                cards=self.cards.load_snapshot(),
                month=start_month or today,
            )
            cash_flow = funds.as_cash_flow()
            if monthly_budget is None:
                monthly_budget = funds.card_payment_budget
            logger.info(
                "Budget from available funds",
                extra={
                    "month": funds.month.isoformat(),
                    "available_for_debt": str(funds.available_for_debt),
                    "monthly_budget": str(funds.card_payment_budget),
                },
            )
        elif monthly_budget is None and saved is not None:
            monthly_budget = saved.monthly_payment_budget

        return ForecastRequest.build(
            start_month=start_month,
            months=months if months is not None else self.default_months,
            monthly_budget=None if monthly_budget is None else to_money(monthly_budget),
            strategy=strategy,
            cash_flow=cash_flow,
            today=today,
        )

    def calculate(self, request: ForecastRequest, *, save: bool = True) -> ForecastOutcome:
        """Run the simulator on the live snapshot and optionally replace stored results."""

        with self._lock:
            snapshot = self.cards.load_snapshot()
            outcome = run_forecast(snapshot, request)
            if save:
                self.results.replace_results(outcome)
        return outcome

    def strategy_report(self, *, today: date | None = None) -> StrategyOrderReport:
        return strategy_order(self.cards.load_snapshot(), today=today)

    def cliff_report(self, *, lookahead_months: int, today: date | None = None) -> list[CliffWarning]:
        return cliff_lookahead(
            self.cards.load_snapshot(), lookahead_months=lookahead_months, today=today
        )


__all__ = ["ForecastService"]
