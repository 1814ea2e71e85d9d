"""Ledger read protocol used by the available-funds calculation."""

from __future__ import annotations

from datetime import date
from typing import Protocol

from ...models import Account, MonthlyBudget, Transaction


class LedgerRepository(Protocol):
    def list_accounts(self) -> list[Account]:
        """List all cash accounts."""
        ...

    def recurring_bills(self, *, start: date, end: date) -> list[Transaction]:
        """Recurring bill transactions dated in ``[start, end)``."""
        ...

    def budgets_for_month(self, month: date) -> list[MonthlyBudget]:
        """Budget allocations for the given first-of-month."""
        ...

    def add(self, record: Account | MonthlyBudget | Transaction) -> Account | MonthlyBudget | Transaction:
        """Persist an account, bill or budget line; bills must name an existing account."""
        ...
