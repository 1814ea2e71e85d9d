"""SQLModel implementation of the credit card repository."""

from __future__ import annotations

import logging
from typing import Callable, ContextManager, Optional

from sqlalchemy.orm import selectinload
from sqlmodel import Session, select

from ...domain.cards import BucketKind, BucketSnapshot, CardSnapshot
from ...domain.errors import ForecastInputError
from ...domain.money import to_money
from ...models.credit_card import CardBucket, CreditCard
from ...services.validation import validate_snapshot

logger = logging.getLogger(__name__)


def _optional_money(value: Optional[float]):
    return None if value is None else to_money(value)


def to_snapshot(card: CreditCard) -> CardSnapshot:
    """Copy a loaded card and its buckets into immutable simulator input."""

    if card.id is None:
        raise ForecastInputError(f"Card {card.name!r} has not been saved")
    buckets = []
    for bucket in sorted(card.buckets, key=lambda b: b.id or 0):
        try:
            kind = BucketKind(bucket.bucket_type)
        except ValueError as exc:
            raise ForecastInputError(
                f"Bucket {bucket.bucket_name!r} has unknown type {bucket.bucket_type!r}"
            ) from exc
        buckets.append(
            BucketSnapshot(
                id=bucket.id,
                card_id=card.id,
                name=bucket.bucket_name,
                kind=kind,
                balance=to_money(bucket.current_balance),
                promo_apr=_optional_money(bucket.promo_apr),
                promo_end_date=bucket.promo_end_date,
            )
        )
    return CardSnapshot(
        id=card.id,
        name=card.name,
        standard_apr=_optional_money(card.standard_apr),
        min_percentage=_optional_money(card.min_percentage),
        min_floor=_optional_money(card.min_floor),
        buckets=tuple(buckets),
    )


class SQLModelCreditCardRepository:
    """SQLModel-based credit card repository implementation."""

    def __init__(self, session_factory: Callable[[], ContextManager[Session]]):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def get_by_id(self, card_id: int) -> Optional[CreditCard]:
        """Retrieve a card (with buckets loaded) by ID."""
        with self.session_factory() as session:
            statement = (
                select(CreditCard)
                .where(CreditCard.id == card_id)
                .options(selectinload(CreditCard.buckets))  # type: ignore[arg-type]
            )
            return session.exec(statement).first()

    def list_all(self) -> list[CreditCard]:
        """List all cards in creation order."""
        with self.session_factory() as session:
            statement = (
                select(CreditCard)
                .options(selectinload(CreditCard.buckets))  # type: ignore[arg-type]
                .order_by(CreditCard.id)  # type: ignore[arg-type]
            )
            return list(session.exec(statement).all())

    def create(self, card: CreditCard) -> CreditCard:
        """Create a new card."""
        with self.session_factory() as session:
            session.add(card)
            session.commit()
            session.refresh(card)
            return card

    def update(self, card: CreditCard) -> CreditCard:
        """Update an existing card."""
        with self.session_factory() as session:
            merged = session.merge(card)
            session.commit()
            session.refresh(merged)
            return merged

    def delete(self, card_id: int) -> None:
        """Delete a card by ID; its buckets go with it."""
        with self.session_factory() as session:
            card = session.get(CreditCard, card_id)
            if card:
                session.delete(card)
                session.commit()

    def add_bucket(self, bucket: CardBucket) -> CardBucket:
        """Attach a bucket to an existing card."""
        with self.session_factory() as session:
            if session.get(CreditCard, bucket.card_id) is None:
                raise ValueError(f"Credit card {bucket.card_id} not found")
            session.add(bucket)
            session.commit()
            session.refresh(bucket)
            return bucket

    def update_bucket(self, bucket: CardBucket) -> CardBucket:
        """Update an existing bucket."""
        with self.session_factory() as session:
            merged = session.merge(bucket)
            session.commit()
            session.refresh(merged)
            return merged

    def delete_bucket(self, bucket_id: int) -> None:
        """Delete a bucket by ID."""
        with self.session_factory() as session:
            bucket = session.get(CardBucket, bucket_id)
            if bucket:
                session.delete(bucket)
                session.commit()

    def load_snapshot(self) -> list[CardSnapshot]:
        """Return validated snapshots of every card for the simulator."""
        with self.session_factory() as session:
            statement = (
                select(CreditCard)
                .options(selectinload(CreditCard.buckets))  # type: ignore[arg-type]
                .order_by(CreditCard.id)  # type: ignore[arg-type]
            )
            snapshots = [to_snapshot(card) for card in session.exec(statement).all()]
        logger.debug("Loaded card snapshot", extra={"cards": len(snapshots)})
        return validate_snapshot(snapshots)
