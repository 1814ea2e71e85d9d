"""SQLModel implementation of the debt configuration repository."""

from __future__ import annotations

from typing import Callable, ContextManager, Optional

from sqlmodel import Session, select

from ...models.debt_config import DebtConfig


class SQLModelDebtConfigRepository:
    def __init__(self, session_factory: Callable[[], ContextManager[Session]]):
        self.session_factory = session_factory

    def save(self, config: DebtConfig) -> DebtConfig:
        """Create or update a configuration row."""
        with self.session_factory() as session:
            merged = session.merge(config)
            session.commit()
            session.refresh(merged)
            return merged

    def latest(self) -> Optional[DebtConfig]:
        """Return the configuration for the most recent month."""
        with self.session_factory() as session:
            statement = select(DebtConfig).order_by(
                DebtConfig.month.desc(), DebtConfig.id.desc()  # type: ignore[union-attr]
            )
            return session.exec(statement).first()
