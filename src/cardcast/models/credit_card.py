"""Credit cards and their independently rated buckets."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import ClassVar, Optional

from sqlalchemy.orm import relationship
from sqlmodel import Field, Relationship, SQLModel


class CreditCard(SQLModel, table=True):
    """A revolving debt instrument made up of one or more buckets."""

    __tablename__: ClassVar[str] = "credit_card"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(nullable=False, max_length=100, index=True)
    standard_apr: Optional[float] = Field(default=None, ge=0)
    min_percentage: float = Field(default=0.02, ge=0)
    min_floor: float = Field(default=25.0, ge=0)
    credit_limit: Optional[float] = Field(default=None)
    statement_day: Optional[int] = Field(default=None, ge=1, le=31)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    buckets: list["CardBucket"] = Relationship(
        back_populates="card",
        sa_relationship=relationship(
            "CardBucket",
            back_populates="card",
            cascade="all, delete-orphan",
            order_by="CardBucket.id",
        ),
    )


class CardBucket(SQLModel, table=True):
    """A sub-balance of a card with its own promotional terms."""

    __tablename__: ClassVar[str] = "card_bucket"

    id: Optional[int] = Field(default=None, primary_key=True)
    card_id: int = Field(foreign_key="credit_card.id", ondelete="CASCADE", nullable=False, index=True)
    bucket_name: str = Field(nullable=False, max_length=100)
    bucket_type: str = Field(default="purchases", max_length=16)
    current_balance: float = Field(default=0.0, ge=0)
    # NULL promo_apr means the bucket always accrues at the card's standard rate.
    promo_apr: Optional[float] = Field(default=None, ge=0)
    promo_end_date: Optional[date] = Field(default=None)

    card: "CreditCard" = Relationship(
        sa_relationship=relationship("CreditCard", back_populates="buckets")
    )
