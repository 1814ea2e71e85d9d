"""Saved payoff preferences per month."""

from __future__ import annotations

from datetime import date
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel


class DebtConfig(SQLModel, table=True):
    """Monthly payment budget and strategy the user settled on."""

    __tablename__: ClassVar[str] = "debt_config"

    id: Optional[int] = Field(default=None, primary_key=True)
    month: date = Field(nullable=False, index=True)
    monthly_payment_budget: Optional[float] = Field(default=None, ge=0)
    strategy: str = Field(default="avalanche", max_length=16)
    auto_calculate: bool = Field(default=True, nullable=False)
    notes: Optional[str] = Field(default=None)
