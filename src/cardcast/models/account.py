"""Cash accounts whose balances feed the available-funds calculation."""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar, Optional

from sqlalchemy.orm import relationship
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:  # pragma: no cover
    from .transaction import Transaction


class Account(SQLModel, table=True):
    """A checking or savings account that can be spent toward card payments."""

    __tablename__: ClassVar[str] = "account"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(nullable=False, max_length=128, unique=True)
    account_type: str = Field(default="checking", max_length=32, description="checking or savings")
    balance: float = Field(default=0.0, nullable=False, description="Current cash on hand")

    transactions: list["Transaction"] = Relationship(
        sa_relationship=relationship("Transaction", back_populates="account"),
    )
