"""Persisted forecast output: monthly rows and the payoff schedule."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, ClassVar, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel


class ForecastResult(SQLModel, table=True):
    """One simulated month for one card, or the month's summary when ``card_id`` is NULL."""

    __tablename__: ClassVar[str] = "forecast_result"

    id: Optional[int] = Field(default=None, primary_key=True)
    month: date = Field(nullable=False, index=True)
    card_id: Optional[int] = Field(
        default=None, foreign_key="credit_card.id", ondelete="CASCADE", index=True
    )
    calculated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    # Per-card columns
    card_beginning_balance: Optional[float] = Field(default=None)
    card_interest: Optional[float] = Field(default=None)
    card_minimum_payment: Optional[float] = Field(default=None)
    card_extra_payment: Optional[float] = Field(default=None)
    card_payment_allocation: Optional[float] = Field(default=None)
    card_ending_balance: Optional[float] = Field(default=None)
    card_payoff_date: Optional[date] = Field(default=None)

    # Summary columns
    total_beginning_debt: Optional[float] = Field(default=None)
    total_interest: Optional[float] = Field(default=None)
    total_minimum_payments: Optional[float] = Field(default=None)
    total_extra_payments: Optional[float] = Field(default=None)
    total_ending_debt: Optional[float] = Field(default=None)
    debt_free_date: Optional[date] = Field(default=None)
    has_cliff: bool = Field(default=False, nullable=False)
    cliff_details: Optional[list[dict[str, Any]]] = Field(default=None, sa_column=Column(JSON))

    # Cash flow columns (summary rows only)
    account_balance: Optional[float] = Field(default=None)
    recurring_bills: Optional[float] = Field(default=None)
    budgeted_spending: Optional[float] = Field(default=None)
    available_for_debt: Optional[float] = Field(default=None)


class PayoffSchedule(SQLModel, table=True):
    """The month a card reaches zero and the interest it cost along the way."""

    __tablename__: ClassVar[str] = "payoff_schedule"

    id: Optional[int] = Field(default=None, primary_key=True)
    card_id: int = Field(foreign_key="credit_card.id", ondelete="CASCADE", nullable=False, index=True)
    payoff_month: date = Field(nullable=False)
    total_interest_on_card: float = Field(default=0.0, nullable=False)
    calculated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
