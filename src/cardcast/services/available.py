"""Money left for debt once bills, budgets and card minimums are covered."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Iterable

from ..domain.cards import CardSnapshot, minimum_payment
from ..domain.money import ZERO, add_months, first_of_month, round_money, to_money
from ..domain.repositories.ledger import LedgerRepository
from .forecast import CashFlow


@dataclass(slots=True)
class CardMinimum:
    card_id: int
    card_name: str
    balance: Decimal
    min_payment: Decimal


@dataclass(slots=True)
class AvailableFunds:
    """Cash position for one month."""

    month: date
    total_balance: Decimal
    recurring_bills: Decimal
    budgeted_spending: Decimal
    credit_card_min_payments: Decimal
    bill_breakdown: dict[str, Decimal] = field(default_factory=dict)
    card_min_payments: list[CardMinimum] = field(default_factory=list)

    @property
    def total_outflow(self) -> Decimal:
        return self.recurring_bills + self.budgeted_spending + self.credit_card_min_payments

    @property
    def raw_available(self) -> Decimal:
        return self.total_balance - self.total_outflow

    @property
    def available_for_debt(self) -> Decimal:
        return max(ZERO, self.raw_available)

    @property
    def card_payment_budget(self) -> Decimal:
        """Total to spend on cards this month: reserved minimums plus what is left."""
        return self.available_for_debt + self.credit_card_min_payments

    def as_cash_flow(self) -> CashFlow:
        return CashFlow(
            account_balance=self.total_balance,
            recurring_bills=self.recurring_bills,
            budgeted_spending=self.budgeted_spending,
        )


def compute_available(
    *,
    ledger: LedgerRepository,
    cards: Iterable[CardSnapshot],
    month: date | None = None,
) -> AvailableFunds:
    """Sum balances and subtract this month's committed outflows.

    Bills count by absolute amount whatever their sign; card minimums use
    today's balances.
    """

    start = first_of_month(month or date.today())
    end = add_months(start, 1)

    total_balance = sum((to_money(account.balance) for account in ledger.list_accounts()), ZERO)

    breakdown: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for bill in ledger.recurring_bills(start=start, end=end):
        breakdown[bill.category or "Other"] += abs(to_money(bill.amount))
    bills = sum(breakdown.values(), ZERO)

    budgeted = sum(
        (to_money(line.allocated_amount) for line in ledger.budgets_for_month(start)), ZERO
    )

    minimums: list[CardMinimum] = []
    for card in cards:
        balance = card.total_balance
        if balance <= 0:
            continue
        minimums.append(
            CardMinimum(
                card_id=card.id,
                card_name=card.name,
                balance=round_money(balance),
                min_payment=round_money(minimum_payment(card, balance)),
            )
        )

    return AvailableFunds(
        month=start,
        total_balance=round_money(total_balance),
        recurring_bills=round_money(bills),
        budgeted_spending=round_money(budgeted),
        credit_card_min_payments=sum((item.min_payment for item in minimums), ZERO),
        bill_breakdown={name: round_money(amount) for name, amount in breakdown.items()},
        card_min_payments=minimums,
    )


__all__ = ["AvailableFunds", "CardMinimum", "compute_available"]
