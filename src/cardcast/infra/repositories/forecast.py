"""SQLModel implementation of the forecast results repository."""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Callable, ContextManager, Optional

from sqlmodel import Session, select

from ...models.forecast import ForecastResult, PayoffSchedule
from ...services.forecast import CardMonthRow, ForecastOutcome, ForecastRow, PayoffEntry

logger = logging.getLogger(__name__)


def _as_float(value: Optional[Decimal]) -> Optional[float]:
    return None if value is None else float(value)


def row_to_record(row: ForecastRow) -> ForecastResult:
    """Flatten an engine row into the shared forecast table layout."""

    if isinstance(row, CardMonthRow):
        return ForecastResult(
            month=row.month,
            card_id=row.card_id,
            card_beginning_balance=float(row.beginning_balance),
            card_interest=float(row.interest),
            card_minimum_payment=float(row.minimum_payment),
            card_extra_payment=float(row.extra_payment),
            card_payment_allocation=float(row.payment),
            card_ending_balance=float(row.ending_balance),
            card_payoff_date=row.payoff_date,
        )
    return ForecastResult(
        month=row.month,
        card_id=None,
        total_beginning_debt=float(row.total_beginning_debt),
        total_interest=float(row.total_interest),
        total_minimum_payments=float(row.total_minimum_payments),
        total_extra_payments=float(row.total_extra_payments),
        total_ending_debt=float(row.total_ending_debt),
        debt_free_date=row.debt_free_date,
        has_cliff=row.has_cliff,
        cliff_details=[cliff.to_dict() for cliff in row.cliff_details] or None,
        account_balance=_as_float(row.account_balance),
        recurring_bills=_as_float(row.recurring_bills),
        budgeted_spending=_as_float(row.budgeted_spending),
        available_for_debt=_as_float(row.available_for_debt),
    )


def payoff_to_record(entry: PayoffEntry) -> PayoffSchedule:
    return PayoffSchedule(
        card_id=entry.card_id,
        payoff_month=entry.payoff_month,
        total_interest_on_card=float(entry.total_interest),
    )


class SQLModelForecastRepository:
    """Keeps only the most recent forecast run."""

    def __init__(self, session_factory: Callable[[], ContextManager[Session]]):
        self.session_factory = session_factory

    def replace_results(self, outcome: ForecastOutcome) -> None:
        """Delete all stored rows, then bulk-insert the outcome's rows.

        Both steps share one session, so a failure during the insert rolls the
        delete back as well.
        """
        with self.session_factory() as session:
            removed = self._delete_all(session)
            session.add_all([row_to_record(row) for row in outcome.forecast_rows])
            session.add_all([payoff_to_record(entry) for entry in outcome.payoff_schedule])
            session.commit()
        logger.info(
            "Forecast results replaced",
            extra={
                "removed": removed,
                "rows": len(outcome.forecast_rows),
                "payoffs": len(outcome.payoff_schedule),
            },
        )

    def clear(self) -> None:
        with self.session_factory() as session:
            self._delete_all(session)
            session.commit()

    def list_rows(self, *, month: Optional[date] = None) -> list[ForecastResult]:
        """List stored forecast rows, summaries after card rows within a month."""
        with self.session_factory() as session:
            statement = select(ForecastResult)
            if month is not None:
                statement = statement.where(ForecastResult.month == month)
            statement = statement.order_by(ForecastResult.month, ForecastResult.id)  # type: ignore[arg-type]
            return list(session.exec(statement).all())

    def list_payoffs(self) -> list[PayoffSchedule]:
        with self.session_factory() as session:
            statement = select(PayoffSchedule).order_by(
                PayoffSchedule.payoff_month, PayoffSchedule.id  # type: ignore[arg-type]
            )
            return list(session.exec(statement).all())

    @staticmethod
    def _delete_all(session: Session) -> int:
        removed = 0
        for model in (ForecastResult, PayoffSchedule):
            for record in session.exec(select(model)).all():
                session.delete(record)
                removed += 1
        session.flush()
        return removed
