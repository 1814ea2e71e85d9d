"""Monthly spending allocations."""

from __future__ import annotations

from datetime import date
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel


class MonthlyBudget(SQLModel, table=True):
    """Planned spending for one category in one month."""

    __tablename__: ClassVar[str] = "monthly_budget"

    id: Optional[int] = Field(default=None, primary_key=True)
    month: date = Field(nullable=False, index=True)
    budget_category: str = Field(nullable=False, max_length=64)
    allocated_amount: float = Field(default=0.0, ge=0)
