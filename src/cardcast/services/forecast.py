"""Month-by-month credit card payoff simulator.

Every run rebuilds its own :class:`SimulationState` from a card snapshot and
walks it forward one month at a time. Each month runs five phases in a fixed
order:

1. accrue interest per bucket and record promo cliffs,
2. size each card's contractual minimum, scaling all of them down together
   when the budget cannot cover the total,
3. spend each card's minimum on its own buckets, highest APR first,
4. spend what is left of the budget across all buckets in strategy order,
5. settle balances, mark payoffs and emit the month's rows.

The engine does no I/O. Amounts carry full ``Decimal`` precision internally
and are rounded to cents only when rows are emitted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Union

from ..domain.cards import BucketKind, CardSnapshot, effective_apr, minimum_payment
from ..domain.money import (
    ZERO,
    add_months,
    first_of_month,
    is_paid_off,
    normalize_apr,
    round_money,
)
from ..domain.strategy import Strategy, priority_score
from .validation import require_finite, require_money, require_months

logger = logging.getLogger(__name__)

DEFAULT_MONTHS = 60
MAX_MONTHS = 360
MONTHS_PER_YEAR = 12


@dataclass(frozen=True, slots=True)
class CashFlow:
    """Household cash position echoed onto every summary row."""

    account_balance: Decimal = ZERO
    recurring_bills: Decimal = ZERO
    budgeted_spending: Decimal = ZERO


@dataclass(frozen=True, slots=True)
class ForecastRequest:
    """Parameters for one simulation run."""

    start_month: date
    months: int = DEFAULT_MONTHS
    monthly_budget: Optional[Decimal] = None
    strategy: Strategy = Strategy.AVALANCHE
    cash_flow: Optional[CashFlow] = None

    @classmethod
    def build(
        cls,
        *,
        start_month: date | None = None,
        months: int = DEFAULT_MONTHS,
        monthly_budget: object = None,
        strategy: Union[Strategy, str] = Strategy.AVALANCHE,
        cash_flow: CashFlow | None = None,
        today: date | None = None,
    ) -> "ForecastRequest":
        """Validate raw caller input and return a normalized request.

        ``start_month`` defaults to the first of the current month and is
        always snapped to the first of its month.
        """

        start = first_of_month(start_month or today or date.today())
        budget = require_money("monthly_budget", monthly_budget, allow_none=True)
        if cash_flow is not None:
            cash_flow = CashFlow(
                account_balance=require_finite("account_balance", cash_flow.account_balance),
                recurring_bills=require_finite("recurring_bills", cash_flow.recurring_bills),
                budgeted_spending=require_finite("budgeted_spending", cash_flow.budgeted_spending),
            )
        return cls(
            start_month=start,
            months=require_months(months, maximum=MAX_MONTHS),
            monthly_budget=budget,
            strategy=Strategy.parse(strategy),
            cash_flow=cash_flow,
        )


@dataclass(slots=True)
class CliffEvent:
    """A bucket whose promotional rate expired during the simulation."""

    month: date
    card_id: int
    card_name: str
    bucket_id: int
    bucket_name: str
    from_apr: Decimal
    to_apr: Decimal
    balance_at_cliff: Decimal

    def to_dict(self) -> dict:
        return {
            "month": self.month.isoformat(),
            "card_id": self.card_id,
            "card_name": self.card_name,
            "bucket_id": self.bucket_id,
            "bucket_name": self.bucket_name,
            "from_apr": str(self.from_apr),
            "to_apr": str(self.to_apr),
            "balance_at_cliff": str(self.balance_at_cliff),
        }


@dataclass(slots=True)
class CardMonthRow:
    """One card's activity for one simulated month."""

    month: date
    card_id: int
    card_name: str
    beginning_balance: Decimal
    interest: Decimal
    minimum_payment: Decimal
    extra_payment: Decimal
    payment: Decimal
    ending_balance: Decimal
    payoff_date: Optional[date] = None


@dataclass(slots=True)
class MonthSummaryRow:
    """Totals across all cards for one simulated month."""

    month: date
    total_beginning_debt: Decimal
    total_interest: Decimal
    total_minimum_payments: Decimal
    total_extra_payments: Decimal
    total_ending_debt: Decimal
    has_cliff: bool = False
    cliff_details: list[CliffEvent] = field(default_factory=list)
    debt_free_date: Optional[date] = None
    account_balance: Optional[Decimal] = None
    recurring_bills: Optional[Decimal] = None
    budgeted_spending: Optional[Decimal] = None
    available_for_debt: Optional[Decimal] = None


ForecastRow = Union[CardMonthRow, MonthSummaryRow]


@dataclass(frozen=True, slots=True)
class PayoffEntry:
    card_id: int
    card_name: str
    payoff_month: date
    total_interest: Decimal


@dataclass(frozen=True, slots=True)
class ForecastSummary:
    total_debt: Decimal
    total_interest: Decimal
    strategy: Strategy
    months_to_payoff: int
    monthly_budget: Optional[Decimal]


@dataclass(slots=True)
class ForecastOutcome:
    """Everything a run produces, ready to persist or display."""

    forecast_rows: list[ForecastRow]
    payoff_schedule: list[PayoffEntry]
    debt_free_date: Optional[date]
    cliffs: list[CliffEvent]
    summary: ForecastSummary

    @property
    def card_rows(self) -> list[CardMonthRow]:
        return [row for row in self.forecast_rows if isinstance(row, CardMonthRow)]

    @property
    def summary_rows(self) -> list[MonthSummaryRow]:
        return [row for row in self.forecast_rows if isinstance(row, MonthSummaryRow)]


# ---------------------------------------------------------------------------
# Simulation state
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class BucketState:
    """Mutable per-run copy of a bucket, keyed by its run ordinal."""

    id: int
    card_id: int
    name: str
    kind: BucketKind
    balance: Decimal
    promo_apr: Optional[Decimal]
    promo_end_date: Optional[date]
    position: int
    effective_apr: Decimal = ZERO


@dataclass(slots=True)
class CardState:
    """Mutable per-run copy of a card plus its running totals."""

    id: int
    name: str
    standard_apr: Optional[Decimal]
    min_percentage: Optional[Decimal]
    min_floor: Optional[Decimal]
    positions: list[int]
    paid_off: bool = False
    paid_off_month: Optional[date] = None
    interest_paid: Decimal = ZERO


@dataclass(slots=True)
class SimulationState:
    """Arena of cards and buckets owned by exactly one run."""

    strategy: Strategy
    cards: dict[int, CardState]
    buckets: dict[int, BucketState]
    starting_debt: Decimal = ZERO
    rows: list[ForecastRow] = field(default_factory=list)
    payoffs: list[PayoffEntry] = field(default_factory=list)
    cliffs: list[CliffEvent] = field(default_factory=list)

    @classmethod
    def from_snapshot(cls, cards: Iterable[CardSnapshot], strategy: Strategy) -> "SimulationState":
        card_states: dict[int, CardState] = {}
        bucket_states: dict[int, BucketState] = {}
        position = 0
        for card in cards:
            if not card.buckets:
                continue
            positions = []
            for bucket in card.buckets:
                bucket_states[position] = BucketState(
                    id=bucket.id,
                    card_id=card.id,
                    name=bucket.name,
                    kind=bucket.kind,
                    balance=bucket.balance,
                    promo_apr=bucket.promo_apr,
                    promo_end_date=bucket.promo_end_date,
                    position=position,
                )
                positions.append(position)
                position += 1
            card_states[card.id] = CardState(
                id=card.id,
                name=card.name,
                standard_apr=card.standard_apr,
                min_percentage=card.min_percentage,
                min_floor=card.min_floor,
                positions=positions,
            )
        state = cls(strategy=strategy, cards=card_states, buckets=bucket_states)
        for card in state.cards.values():
            if is_paid_off(state.balance_of(card)):
                card.paid_off = True
        state.starting_debt = state.total_debt()
        return state

    def buckets_of(self, card: CardState) -> list[BucketState]:
        return [self.buckets[position] for position in card.positions]

    def balance_of(self, card: CardState) -> Decimal:
        return sum((max(ZERO, bucket.balance) for bucket in self.buckets_of(card)), ZERO)

    def active_cards(self) -> list[CardState]:
        return [card for card in self.cards.values() if not card.paid_off]

    def total_debt(self) -> Decimal:
        return sum((self.balance_of(card) for card in self.active_cards()), ZERO)

    def total_interest(self) -> Decimal:
        return sum((card.interest_paid for card in self.cards.values()), ZERO)


@dataclass(slots=True)
class MonthLedger:
    """Scratch totals for the month being simulated, keyed by card id."""

    month: date
    beginning: dict[int, Decimal] = field(default_factory=dict)
    interest: dict[int, Decimal] = field(default_factory=dict)
    minimum: dict[int, Decimal] = field(default_factory=dict)
    extra: dict[int, Decimal] = field(default_factory=dict)
    cliffs: list[CliffEvent] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Phases
# ---------------------------------------------------------------------------


def _crossed_promo_end(bucket: BucketState, month: date) -> bool:
    """True the first month the calendar moves past a dated promotion."""

    if bucket.promo_end_date is None:
        return False
    previous = add_months(month, -1)
    return previous <= bucket.promo_end_date < month


def accrue_interest(state: SimulationState, ledger: MonthLedger) -> None:
    for card in state.active_cards():
        ledger.beginning[card.id] = state.balance_of(card)
        card_interest = ZERO
        for bucket in state.buckets_of(card):
            if bucket.balance <= 0:
                bucket.effective_apr = ZERO
                continue
            bucket.effective_apr = effective_apr(bucket, card, ledger.month)
            interest = bucket.balance * bucket.effective_apr / MONTHS_PER_YEAR
            bucket.balance += interest
            card_interest += interest
            if _crossed_promo_end(bucket, ledger.month):
                ledger.cliffs.append(
                    CliffEvent(
                        month=ledger.month,
                        card_id=card.id,
                        card_name=card.name,
                        bucket_id=bucket.id,
                        bucket_name=bucket.name,
                        from_apr=normalize_apr(bucket.promo_apr),
                        to_apr=normalize_apr(card.standard_apr),
                        balance_at_cliff=round_money(bucket.balance),
                    )
                )
        card.interest_paid += card_interest
        ledger.interest[card.id] = card_interest
    state.cliffs.extend(ledger.cliffs)


def size_minimums(
    state: SimulationState, monthly_budget: Optional[Decimal]
) -> tuple[dict[int, Decimal], Decimal]:
    """Return (minimum per card, total budget for the month).

    Without a budget the month spends exactly the contractual minimums. When
    the budget is short every minimum shrinks by the same factor.
    """

    minimums = {
        card.id: minimum_payment(card, state.balance_of(card)) for card in state.active_cards()
    }
    required = sum(minimums.values(), ZERO)
    budget = monthly_budget if monthly_budget is not None else required
    if required > 0 and budget < required:
        factor = budget / required
        minimums = {card_id: amount * factor for card_id, amount in minimums.items()}
    return minimums, budget


def allocate_minimums(
    state: SimulationState, ledger: MonthLedger, minimums: dict[int, Decimal]
) -> None:
    for card in state.active_cards():
        due = min(minimums.get(card.id, ZERO), state.balance_of(card))
        remaining = due
        # Stable sort keeps declaration order among equal rates.
        ordered = sorted(
            (bucket for bucket in state.buckets_of(card) if bucket.balance > 0),
            key=lambda bucket: bucket.effective_apr,
            reverse=True,
        )
        for bucket in ordered:
            if remaining <= 0:
                break
            payment = min(remaining, bucket.balance)
            bucket.balance -= payment
            remaining -= payment
        ledger.minimum[card.id] = due - max(ZERO, remaining)


def allocate_extra(state: SimulationState, ledger: MonthLedger, budget: Decimal) -> None:
    pool = max(ZERO, budget - sum(ledger.minimum.values(), ZERO))
    for card in state.active_cards():
        ledger.extra.setdefault(card.id, ZERO)
    if pool <= 0:
        return

    candidates: list[tuple[Decimal, BucketState]] = []
    for card in state.active_cards():
        for bucket in state.buckets_of(card):
            remaining = max(ZERO, bucket.balance)
            if is_paid_off(remaining):
                continue
            score = priority_score(
                state.strategy,
                apr=bucket.effective_apr,
                position=bucket.position,
                remaining=remaining,
            )
            candidates.append((score, bucket))
    candidates.sort(key=lambda candidate: candidate[0], reverse=True)

    for _, bucket in candidates:
        if pool <= 0:
            break
        payment = min(pool, bucket.balance)
        bucket.balance -= payment
        pool -= payment
        ledger.extra[bucket.card_id] += payment


def settle_month(
    state: SimulationState, ledger: MonthLedger, request: ForecastRequest
) -> MonthSummaryRow:
    ending_total = ZERO
    for card_id in ledger.beginning:
        card = state.cards[card_id]
        balance = state.balance_of(card)
        if is_paid_off(balance):
            card.paid_off = True
            card.paid_off_month = ledger.month
            balance = ZERO
            for bucket in state.buckets_of(card):
                bucket.balance = ZERO
            state.payoffs.append(
                PayoffEntry(
                    card_id=card.id,
                    card_name=card.name,
                    payoff_month=ledger.month,
                    total_interest=round_money(card.interest_paid),
                )
            )
        ending_total += balance
        minimum = ledger.minimum.get(card_id, ZERO)
        extra = ledger.extra.get(card_id, ZERO)
        state.rows.append(
            CardMonthRow(
                month=ledger.month,
                card_id=card.id,
                card_name=card.name,
                beginning_balance=round_money(ledger.beginning[card_id]),
                interest=round_money(ledger.interest.get(card_id, ZERO)),
                minimum_payment=round_money(minimum),
                extra_payment=round_money(extra),
                payment=round_money(minimum + extra),
                ending_balance=round_money(balance),
                payoff_date=card.paid_off_month,
            )
        )

    summary = MonthSummaryRow(
        month=ledger.month,
        total_beginning_debt=round_money(sum(ledger.beginning.values(), ZERO)),
        total_interest=round_money(sum(ledger.interest.values(), ZERO)),
        total_minimum_payments=round_money(sum(ledger.minimum.values(), ZERO)),
        total_extra_payments=round_money(sum(ledger.extra.values(), ZERO)),
        total_ending_debt=round_money(ending_total),
        has_cliff=bool(ledger.cliffs),
        cliff_details=list(ledger.cliffs),
    )
    if request.cash_flow is not None:
        summary.account_balance = round_money(request.cash_flow.account_balance)
        summary.recurring_bills = round_money(request.cash_flow.recurring_bills)
        summary.budgeted_spending = round_money(request.cash_flow.budgeted_spending)
        summary.available_for_debt = round_money(request.monthly_budget or ZERO)
    state.rows.append(summary)
    return summary


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def run_forecast(cards: Iterable[CardSnapshot], request: ForecastRequest) -> ForecastOutcome:
    """Simulate paying down *cards* under *request* and return the full ledger."""

    state = SimulationState.from_snapshot(cards, request.strategy)

    if is_paid_off(state.starting_debt):
        logger.info(
            "Forecast skipped; no outstanding card debt",
            extra={"cards": len(state.cards), "start_month": request.start_month.isoformat()},
        )
        return _outcome(state, request, debt_free_date=request.start_month)

    debt_free_date: Optional[date] = None
    last_summary: Optional[MonthSummaryRow] = None
    for offset in range(request.months):
        month = add_months(request.start_month, offset)
        if is_paid_off(state.total_debt()):
            debt_free_date = month
            break

        ledger = MonthLedger(month=month)
        accrue_interest(state, ledger)
        minimums, budget = size_minimums(state, request.monthly_budget)
        allocate_minimums(state, ledger, minimums)
        allocate_extra(state, ledger, budget)
        last_summary = settle_month(state, ledger, request)

    if debt_free_date is not None and last_summary is not None:
        last_summary.debt_free_date = debt_free_date

    outcome = _outcome(state, request, debt_free_date=debt_free_date)
    logger.info(
        "Forecast complete",
        extra={
            "strategy": request.strategy.value,
            "start_month": request.start_month.isoformat(),
            "months_simulated": outcome.summary.months_to_payoff,
            "debt_free_date": debt_free_date.isoformat() if debt_free_date else None,
            "total_interest": str(outcome.summary.total_interest),
            "cliffs": len(outcome.cliffs),
        },
    )
    if debt_free_date is None and not is_paid_off(state.total_debt()):
        logger.warning(
            "Debt not cleared within %s months; %s remains",
            request.months,
            round_money(state.total_debt()),
        )
    return outcome


def _outcome(
    state: SimulationState, request: ForecastRequest, *, debt_free_date: Optional[date]
) -> ForecastOutcome:
    rows = state.rows
    return ForecastOutcome(
        forecast_rows=rows,
        payoff_schedule=state.payoffs,
        debt_free_date=debt_free_date,
        cliffs=state.cliffs,
        summary=ForecastSummary(
            total_debt=round_money(state.starting_debt),
            total_interest=round_money(state.total_interest()),
            strategy=request.strategy,
            months_to_payoff=sum(1 for row in rows if isinstance(row, MonthSummaryRow)),
            monthly_budget=request.monthly_budget,
        ),
    )


__all__ = [
    "CardMonthRow",
    "CashFlow",
    "CliffEvent",
    "ForecastOutcome",
    "ForecastRequest",
    "ForecastRow",
    "ForecastSummary",
    "MonthSummaryRow",
    "PayoffEntry",
    "SimulationState",
    "run_forecast",
]
