"""Credit card repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol

from ...models.credit_card import CardBucket, CreditCard
from ..cards import CardSnapshot


class CreditCardRepository(Protocol):
    """Repository for cards, their buckets and simulator snapshots."""

    def get_by_id(self, card_id: int) -> Optional[CreditCard]:
        """Retrieve a card by ID."""
        ...

    def list_all(self) -> list[CreditCard]:
        """List all cards."""
        ...

    def create(self, card: CreditCard) -> CreditCard:
        """Create a new card."""
        ...

    def update(self, card: CreditCard) -> CreditCard:
        """Update an existing card."""
        ...

    def delete(self, card_id: int) -> None:
        """Delete a card and its buckets."""
        ...

    def add_bucket(self, bucket: CardBucket) -> CardBucket:
        """Attach a bucket to an existing card."""
        ...

    def update_bucket(self, bucket: CardBucket) -> CardBucket:
        """Update an existing bucket."""
        ...

    def delete_bucket(self, bucket_id: int) -> None:
        """Delete a bucket by ID."""
        ...

    def load_snapshot(self) -> list[CardSnapshot]:
        """Return validated snapshots of every card for the simulator."""
        ...
