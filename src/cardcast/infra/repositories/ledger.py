"""SQLModel implementation of the ledger reads behind available funds."""

from __future__ import annotations

from datetime import date
from typing import Callable, ContextManager

from sqlmodel import Session, select

from ...models import Account, MonthlyBudget, Transaction


class SQLModelLedgerRepository:
    def __init__(self, session_factory: Callable[[], ContextManager[Session]]):
        self.session_factory = session_factory

    def list_accounts(self) -> list[Account]:
        with self.session_factory() as session:
            return list(session.exec(select(Account).order_by(Account.id)).all())  # type: ignore[arg-type]

    def recurring_bills(self, *, start: date, end: date) -> list[Transaction]:
        """Recurring bill transactions dated in ``[start, end)``."""
        with self.session_factory() as session:
            statement = (
                select(Transaction)
                .where(Transaction.is_recurring_bill == True)  # noqa: E712
                .where(Transaction.occurred_on >= start)
                .where(Transaction.occurred_on < end)
                .order_by(Transaction.occurred_on)  # type: ignore[arg-type]
            )
            return list(session.exec(statement).all())

    def budgets_for_month(self, month: date) -> list[MonthlyBudget]:
        with self.session_factory() as session:
            statement = select(MonthlyBudget).where(MonthlyBudget.month == month)
            return list(session.exec(statement).all())

    def add(self, record: Account | Transaction | MonthlyBudget):
        """Persist a ledger record (accounts, transactions, budget lines)."""
        with self.session_factory() as session:
            account_id = getattr(record, "account_id", None)
            if account_id is not None and session.get(Account, account_id) is None:
                raise ValueError(f"Account {account_id} not found")
            session.add(record)
            session.commit()
            session.refresh(record)
            return record
