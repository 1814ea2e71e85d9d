"""Ledger entries, including the recurring bills that reserve cash each month."""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING, ClassVar, Optional

from sqlalchemy.orm import relationship
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:  # pragma: no cover
    from .account import Account


class Transaction(SQLModel, table=True):
    """Money in or out of an account.

    Rows flagged ``is_recurring_bill`` are treated as committed outflows,
    whatever the sign of their amount, when working out how much cash is
    free for cards.
    """

    __tablename__: ClassVar[str] = "transaction"

    id: Optional[int] = Field(default=None, primary_key=True)
    occurred_on: date = Field(nullable=False, index=True)
    amount: float = Field(nullable=False, description="Inflows positive, bills and spending negative")
    description: str = Field(default="", max_length=255)
    category: Optional[str] = Field(default=None, max_length=64, index=True)
    is_recurring_bill: bool = Field(default=False, nullable=False, index=True)

    account_id: Optional[int] = Field(default=None, foreign_key="account.id", index=True)
    account: Optional["Account"] = Relationship(
        sa_relationship=relationship("Account", back_populates="transactions"),
    )
