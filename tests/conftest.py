"""Shared fixtures for CardCast tests.

Repository and service tests get a throwaway SQLite file per test. The
``bucket`` and ``card`` builders assemble in-memory snapshots for the
simulator tests, which never touch a database.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

import pytest
from sqlalchemy import event
from sqlmodel import SQLModel, create_engine

from cardcast.domain.cards import BucketKind, BucketSnapshot, CardSnapshot
from cardcast.infra.database import _enable_sqlite_foreign_keys, create_session_factory
from cardcast.models import CardBucket, CreditCard

# --- database ---------------------------------------------------------------


@pytest.fixture
def db_engine(tmp_path):
    """SQLite file under ``tmp_path`` with every table created and FKs enforced."""
    engine = create_engine(f"sqlite:///{tmp_path / 'cardcast-test.db'}")
    event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return create_session_factory(db_engine)


# --- persisted data ---------------------------------------------------------


@pytest.fixture
def card_factory(session_factory):
    """Persist a card plus its buckets and hand back the new card id."""

    def _create_card(
        name: str = "Test Card",
        standard_apr: Optional[float] = 0.199,
        min_percentage: float = 0.02,
        min_floor: float = 25.0,
        buckets: Iterable[dict] = ({"bucket_name": "Purchases", "current_balance": 1000.0},),
    ) -> int:
        with session_factory() as session:
            row = CreditCard(
                name=name,
                standard_apr=standard_apr,
                min_percentage=min_percentage,
                min_floor=min_floor,
            )
            session.add(row)
            session.flush()
            session.add_all(CardBucket(card_id=row.id, **fields) for fields in buckets)
            session.flush()
            return row.id

    return _create_card


# --- snapshots --------------------------------------------------------------


def bucket(
    balance,
    *,
    bucket_id: int = 0,
    card_id: int = 1,
    name: str = "Purchases",
    promo_apr=None,
    promo_end_date: Optional[date] = None,
    kind: BucketKind = BucketKind.PURCHASES,
) -> BucketSnapshot:
    """Build a bucket snapshot; numbers are passed through ``Decimal(str(...))``."""

    return BucketSnapshot(
        id=bucket_id,
        card_id=card_id,
        name=name,
        kind=kind,
        balance=Decimal(str(balance)),
        promo_apr=None if promo_apr is None else Decimal(str(promo_apr)),
        promo_end_date=promo_end_date,
    )


def card(
    card_id: int = 1,
    *balances,
    name: Optional[str] = None,
    standard_apr="0.20",
    min_percentage="0.02",
    min_floor="25",
    buckets: Optional[Iterable[BucketSnapshot]] = None,
) -> CardSnapshot:
    """Build a card snapshot.

    Either pass plain balances (one standard-rate bucket each) or ready-made
    ``buckets``; bucket ids are derived from the card id.
    """

    if buckets is None:
        buckets = [
            bucket(amount, bucket_id=card_id * 100 + index, card_id=card_id, name=f"Bucket {index}")
            for index, amount in enumerate(balances)
        ]
    return CardSnapshot(
        id=card_id,
        name=name or f"Card {card_id}",
        standard_apr=None if standard_apr is None else Decimal(str(standard_apr)),
        min_percentage=None if min_percentage is None else Decimal(str(min_percentage)),
        min_floor=None if min_floor is None else Decimal(str(min_floor)),
        buckets=tuple(buckets),
    )


# --- assertions -------------------------------------------------------------


def assert_float_equal(actual, expected, tolerance: float = 0.01):
    """Compare money within *tolerance*; rows round to cents one at a time."""
    diff = abs(float(actual) - float(expected))
    assert diff < tolerance, f"Expected {expected}, got {actual} (diff: {diff})"
