"""Tests for the month-by-month payoff simulator.

Covers:
- Interest accrual, minimum sizing and minimum allocation order
- Extra-payment ordering under avalanche and snowball
- Promotional cliffs
- Payoff bookkeeping and the debt-free date
- Input validation
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal

import pytest

from cardcast.domain.errors import ForecastInputError
from cardcast.domain.money import add_months
from cardcast.domain.strategy import Strategy
from cardcast.services.forecast import (
    CardMonthRow,
    CashFlow,
    ForecastRequest,
    MonthLedger,
    MonthSummaryRow,
    SimulationState,
    accrue_interest,
    allocate_minimums,
    run_forecast,
    size_minimums,
)
from tests.conftest import assert_float_equal, bucket, card

START = date(2026, 1, 1)


def _request(**kwargs) -> ForecastRequest:
    kwargs.setdefault("start_month", START)
    return ForecastRequest.build(**kwargs)


def _rows_for(outcome, card_id):
    return [row for row in outcome.card_rows if row.card_id == card_id]


def _promo_mix():
    """Three cards with standard, promotional and transfer balances."""

    return [
        card(1, buckets=[
            bucket(2400, bucket_id=10, card_id=1, name="Purchases"),
            bucket(1800, bucket_id=11, card_id=1, name="Transfer", promo_apr="0",
                   promo_end_date=date(2026, 9, 30)),
        ], standard_apr="0.2299"),
        card(2, 950, standard_apr="0.1599"),
        card(3, buckets=[
            bucket(3100, bucket_id=30, card_id=3, name="Promo", promo_apr="0.029",
                   promo_end_date=date(2027, 3, 1)),
        ], standard_apr="27.49"),
    ]


class TestSingleCard:
    def test_minimum_only_month(self):
        """1000 at 12% accrues 10.00 and pays the 25.00 floor."""
        outcome = run_forecast([card(1, 1000, standard_apr="0.12")], _request(months=1))

        row = outcome.card_rows[0]
        assert row.beginning_balance == Decimal("1000.00")
        assert row.interest == Decimal("10.00")
        assert row.minimum_payment == Decimal("25.00")
        assert row.extra_payment == Decimal("0.00")
        assert row.payment == Decimal("25.00")
        assert row.ending_balance == Decimal("985.00")

    def test_minimum_capped_at_small_balance(self):
        outcome = run_forecast([card(1, 10, standard_apr="0")], _request(months=3))

        assert outcome.card_rows[0].payment == Decimal("10.00")
        assert outcome.card_rows[0].payoff_date == START
        assert outcome.debt_free_date == date(2026, 2, 1)

    def test_zero_budget_pays_nothing(self):
        outcome = run_forecast(
            [card(1, 1000, standard_apr="0.12")], _request(months=2, monthly_budget=0)
        )

        first, second = outcome.card_rows
        assert first.minimum_payment == Decimal("0.00")
        assert first.ending_balance == Decimal("1010.00")
        assert second.beginning_balance == Decimal("1010.00")
        assert outcome.debt_free_date is None


class TestBudgetSizing:
    def test_large_budget_clears_everything_quickly(self):
        cards = [card(1, 3000, standard_apr="0.2"), card(2, 2000, standard_apr="0.15")]

        outcome = run_forecast(cards, _request(months=12, monthly_budget=50000))

        assert outcome.summary.months_to_payoff <= 2
        assert outcome.debt_free_date == date(2026, 2, 1)
        assert [entry.card_id for entry in outcome.payoff_schedule] == [1, 2]
        assert outcome.summary.total_interest == Decimal("75.00")
        assert outcome.summary.total_debt == Decimal("5000.00")
        assert outcome.summary_rows[-1].debt_free_date == date(2026, 2, 1)

        first = _rows_for(outcome, 1)[0]
        assert first.minimum_payment == Decimal("61.00")
        assert first.extra_payment == Decimal("2989.00")

    def test_short_budget_scales_minimums_proportionally(self):
        cards = [card(1, 500, standard_apr="0"), card(2, 500, standard_apr="0")]

        outcome = run_forecast(cards, _request(months=1, monthly_budget=30))

        for row in outcome.card_rows:
            assert row.minimum_payment == Decimal("15.00")
            assert row.extra_payment == Decimal("0.00")
            assert row.ending_balance == Decimal("485.00")
        summary = outcome.summary_rows[0]
        assert summary.total_minimum_payments == Decimal("30.00")
        assert summary.total_extra_payments == Decimal("0.00")

    def test_scaled_minimums_never_overspend_budget(self):
        """A repeating scale factor leaves at most dust for the extra pool."""
        cards = [card(i, 500, standard_apr="0") for i in (1, 2, 3)]

        outcome = run_forecast(cards, _request(months=1, monthly_budget=10))

        summary = outcome.summary_rows[0]
        assert summary.total_extra_payments == Decimal("0.00")
        assert summary.total_minimum_payments + summary.total_extra_payments == Decimal("10.00")

    def test_without_budget_pays_only_minimums(self):
        cards = [card(1, 5000, standard_apr="0.18"), card(2, 800, standard_apr="0.25")]

        outcome = run_forecast(cards, _request(months=6))

        assert all(row.extra_payment == Decimal("0.00") for row in outcome.card_rows)
        assert outcome.summary.monthly_budget is None


class TestMinimumAllocation:
    def test_minimum_goes_to_highest_rate_bucket_first(self):
        cards = [
            card(1, buckets=[
                bucket(1000, bucket_id=1, name="Transfer", promo_apr="0",
                       promo_end_date=date(2027, 1, 1)),
                bucket(1000, bucket_id=2, name="Purchases"),
            ], standard_apr="0.24"),
        ]
        for strategy in Strategy:
            state = SimulationState.from_snapshot(cards, strategy)
            ledger = MonthLedger(month=START)

            accrue_interest(state, ledger)
            minimums, budget = size_minimums(state, None)
            allocate_minimums(state, ledger, minimums)

            assert budget == Decimal("40.40")
            assert state.buckets[0].balance == Decimal("1000")
            assert state.buckets[1].balance == Decimal("979.60")
            assert ledger.minimum[1] == Decimal("40.40")


class TestExtraAllocation:
    cards = [card(1, 1000, standard_apr="0.25"), card(2, 500, standard_apr="0.10")]

    def test_avalanche_sends_extra_to_highest_rate(self):
        outcome = run_forecast(self.cards, _request(months=1, monthly_budget=200))

        high, low = _rows_for(outcome, 1)[0], _rows_for(outcome, 2)[0]
        assert high.extra_payment == Decimal("150.00")
        assert high.ending_balance == Decimal("845.83")
        assert low.extra_payment == Decimal("0.00")
        assert low.ending_balance == Decimal("479.17")

    def test_snowball_sends_extra_to_smallest_balance(self):
        outcome = run_forecast(
            self.cards, _request(months=1, monthly_budget=200, strategy="snowball")
        )

        high, low = _rows_for(outcome, 1)[0], _rows_for(outcome, 2)[0]
        assert high.extra_payment == Decimal("0.00")
        assert low.extra_payment == Decimal("150.00")
        assert low.ending_balance == Decimal("329.17")

    def test_avalanche_costs_no_more_interest_than_snowball(self):
        avalanche = run_forecast(self.cards, _request(months=60, monthly_budget=200))
        snowball = run_forecast(
            self.cards, _request(months=60, monthly_budget=200, strategy="snowball")
        )

        assert avalanche.debt_free_date is not None
        assert snowball.debt_free_date is not None
        assert avalanche.summary.total_interest < snowball.summary.total_interest

    def test_equal_rates_break_ties_by_declaration_order(self):
        cards = [card(1, 1000, standard_apr="0.2"), card(2, 1000, standard_apr="0.2")]

        outcome = run_forecast(cards, _request(months=1, monthly_budget=100))

        assert _rows_for(outcome, 1)[0].extra_payment == Decimal("50.00")
        assert _rows_for(outcome, 2)[0].extra_payment == Decimal("0.00")

    def test_freed_minimum_rolls_into_extra(self):
        cards = [card(1, 60, standard_apr="0"), card(2, 5000, standard_apr="0")]

        outcome = run_forecast(cards, _request(months=2, monthly_budget=200))

        second_month = _rows_for(outcome, 2)[1]
        assert len(_rows_for(outcome, 1)) == 1
        assert second_month.payment == Decimal("200.00")


class TestCliffs:
    def _run(self, months=6):
        cards = [
            card(1, buckets=[
                bucket(5000, bucket_id=7, name="Balance transfer", promo_apr="0",
                       promo_end_date=date(2026, 8, 1)),
            ], standard_apr="0.2"),
        ]
        return run_forecast(cards, _request(start_month=date(2026, 6, 1), months=months))

    def test_cliff_recorded_month_after_promo_ends(self):
        outcome = self._run()

        assert len(outcome.cliffs) == 1
        cliff = outcome.cliffs[0]
        assert cliff.month == date(2026, 9, 1)
        assert cliff.bucket_id == 7
        assert cliff.from_apr == Decimal("0")
        assert cliff.to_apr == Decimal("0.2")
        assert cliff.balance_at_cliff == Decimal("4784.39")

    def test_only_cliff_month_is_flagged(self):
        outcome = self._run()

        flagged = [row.month for row in outcome.summary_rows if row.has_cliff]
        assert flagged == [date(2026, 9, 1)]
        cliff_row = outcome.summary_rows[3]
        assert cliff_row.cliff_details == outcome.cliffs
        assert cliff_row.cliff_details[0].to_dict()["month"] == "2026-09-01"

    def test_no_interest_until_promo_expires(self):
        outcome = self._run()

        interest = [row.total_interest for row in outcome.summary_rows]
        assert interest[:3] == [Decimal("0.00")] * 3
        assert interest[3] == Decimal("78.43")

    def test_undated_promotion_never_cliffs(self):
        cards = [card(1, buckets=[bucket(2000, promo_apr="0.05")])]

        outcome = run_forecast(cards, _request(months=24))

        assert outcome.cliffs == []


class TestPayoffBookkeeping:
    def test_balances_reconcile_every_month(self):
        outcome = run_forecast(_promo_mix(), _request(months=120, monthly_budget=400))

        for row in outcome.card_rows:
            assert_float_equal(
                row.ending_balance,
                row.beginning_balance + row.interest - row.payment,
                tolerance=0.035,
            )
            assert_float_equal(row.payment, row.minimum_payment + row.extra_payment, tolerance=0.015)
            assert row.ending_balance >= 0

        for summary in outcome.summary_rows:
            month_rows = [row for row in outcome.card_rows if row.month == summary.month]
            assert_float_equal(
                summary.total_ending_debt,
                sum(row.ending_balance for row in month_rows),
                tolerance=0.05,
            )

    def test_next_month_begins_where_previous_ended(self):
        outcome = run_forecast(_promo_mix(), _request(months=120, monthly_budget=400))

        for card_id in (1, 2, 3):
            rows = _rows_for(outcome, card_id)
            for previous, current in zip(rows, rows[1:]):
                assert current.beginning_balance == previous.ending_balance

    def test_paid_off_cards_stay_paid_off(self):
        outcome = run_forecast(_promo_mix(), _request(months=120, monthly_budget=400))

        assert outcome.debt_free_date is not None
        assert len(outcome.payoff_schedule) == 3
        for entry in outcome.payoff_schedule:
            rows = _rows_for(outcome, entry.card_id)
            assert rows[-1].month == entry.payoff_month
            assert rows[-1].ending_balance == Decimal("0.00")
            assert [row.payoff_date for row in rows[:-1]] == [None] * (len(rows) - 1)

    def test_payoff_interest_sums_to_total(self):
        outcome = run_forecast(_promo_mix(), _request(months=120, monthly_budget=400))

        assert_float_equal(
            sum(entry.total_interest for entry in outcome.payoff_schedule),
            outcome.summary.total_interest,
            tolerance=0.03,
        )

    def test_debt_free_date_only_on_last_summary_row(self):
        outcome = run_forecast(_promo_mix(), _request(months=120, monthly_budget=400))

        sentinels = [row.debt_free_date for row in outcome.summary_rows]
        assert sentinels[-1] == outcome.debt_free_date
        assert sentinels[:-1] == [None] * (len(sentinels) - 1)
        assert outcome.debt_free_date == add_months(outcome.summary_rows[-1].month, 1)

    def test_rows_are_grouped_by_month(self):
        outcome = run_forecast(_promo_mix(), _request(months=3))

        kinds = [type(row) for row in outcome.forecast_rows]
        assert kinds == [CardMonthRow, CardMonthRow, CardMonthRow, MonthSummaryRow] * 3
        assert outcome.summary_rows == outcome.forecast_rows[3::4]
        assert not hasattr(outcome.summary_rows[0], "card_id")


class TestHorizon:
    def test_unpaid_debt_has_no_debt_free_date(self, caplog):
        with caplog.at_level(logging.WARNING):
            outcome = run_forecast([card(1, 10000)], _request(months=3))

        assert outcome.debt_free_date is None
        assert outcome.summary.months_to_payoff == 3
        assert all(row.debt_free_date is None for row in outcome.summary_rows)
        assert outcome.summary_rows[-1].total_ending_debt > 0
        assert outcome.payoff_schedule == []
        assert "Debt not cleared" in caplog.text

    def test_payoff_in_final_month_leaves_date_unset(self):
        outcome = run_forecast([card(1, 100)], _request(months=1, monthly_budget=1000))

        assert outcome.payoff_schedule[0].payoff_month == START
        assert outcome.summary_rows[0].total_ending_debt == Decimal("0.00")
        assert outcome.debt_free_date is None

    def test_start_month_is_snapped_to_first(self):
        outcome = run_forecast(
            [card(1, 1000)], _request(start_month=date(2026, 3, 17), months=2)
        )

        assert [row.month for row in outcome.summary_rows] == [date(2026, 3, 1), date(2026, 4, 1)]


class TestEmptyInputs:
    def test_no_cards(self):
        outcome = run_forecast([], _request())

        assert outcome.forecast_rows == []
        assert outcome.payoff_schedule == []
        assert outcome.debt_free_date == START
        assert outcome.summary.months_to_payoff == 0
        assert outcome.summary.total_debt == Decimal("0.00")

    def test_zero_balances(self):
        outcome = run_forecast([card(1, 0), card(2, 0, 0)], _request())

        assert outcome.forecast_rows == []
        assert outcome.debt_free_date == START

    def test_cards_without_buckets_are_ignored(self):
        outcome = run_forecast([card(1), card(2, 100)], _request(months=2))

        assert {row.card_id for row in outcome.card_rows} == {2}

    def test_snapshot_is_not_mutated(self):
        cards = [card(1, 1000)]

        run_forecast(cards, _request(months=12, monthly_budget=500))

        assert cards[0].buckets[0].balance == Decimal("1000")


class TestCashFlow:
    def test_summary_rows_carry_cash_position(self):
        cash = CashFlow(
            account_balance=Decimal("5000"),
            recurring_bills=Decimal("1200"),
            budgeted_spending=Decimal("800"),
        )

        outcome = run_forecast(
            [card(1, 3000)], _request(months=2, monthly_budget=300, cash_flow=cash)
        )

        for summary in outcome.summary_rows:
            assert summary.account_balance == Decimal("5000.00")
            assert summary.recurring_bills == Decimal("1200.00")
            assert summary.budgeted_spending == Decimal("800.00")
            assert summary.available_for_debt == Decimal("300.00")

    def test_cash_position_absent_by_default(self):
        outcome = run_forecast([card(1, 3000)], _request(months=1))

        assert outcome.summary_rows[0].account_balance is None
        assert outcome.summary_rows[0].available_for_debt is None


class TestRequestValidation:
    @pytest.mark.parametrize("months", [0, -1, 361, True, "12"])
    def test_rejects_bad_months(self, months):
        with pytest.raises(ForecastInputError, match="months"):
            _request(months=months)

    @pytest.mark.parametrize("budget", [-1, "-0.01", float("nan"), float("inf"), "lots"])
    def test_rejects_bad_budget(self, budget):
        with pytest.raises(ForecastInputError, match="monthly_budget"):
            _request(monthly_budget=budget)

    def test_rejects_unknown_strategy(self):
        with pytest.raises(ForecastInputError):
            _request(strategy="minimum-first")

    def test_accepts_boundary_months(self):
        assert _request(months=1).months == 1
        assert _request(months=360).months == 360

    def test_defaults(self):
        request = ForecastRequest.build(today=date(2026, 10, 19))

        assert request.start_month == date(2026, 10, 1)
        assert request.months == 60
        assert request.monthly_budget is None
        assert request.strategy is Strategy.AVALANCHE
