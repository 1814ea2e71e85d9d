"""Debt configuration repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol

from ...models.debt_config import DebtConfig


class DebtConfigRepository(Protocol):
    def save(self, config: DebtConfig) -> DebtConfig:
        """Create or update a configuration row."""
        ...

    def latest(self) -> Optional[DebtConfig]:
        """Return the configuration for the most recent month."""
        ...
