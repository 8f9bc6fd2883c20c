"""Tests for the balance aggregator."""

import pytest
from datetime import date
from decimal import Decimal

from duogesto.accrual.balance import (
    DEFAULT_ACCOUNTING_START,
    BalanceAggregator,
    accumulated_balance,
    start_index,
)
from duogesto.accrual.engine import from_index, month_index, target_index
from duogesto.models.records import (
    Expense,
    ExpenseRecurrence,
    Income,
    IncomeRecurrence,
)


INCOMES = [
    Income(
        id="salary",
        amount=Decimal("3000"),
        recurrence=IncomeRecurrence.FIXED_MONTHLY,
        effective_date=date(2024, 1, 5),
    ),
    Income(
        id="freelance",
        amount=Decimal("500"),
        recurrence=IncomeRecurrence.PERIOD,
        period_months=2,
        effective_date=date(2024, 3, 1),
    ),
]

EXPENSES = [
    Expense(
        id="rent",
        amount=Decimal("1000"),
        recurrence=ExpenseRecurrence.FIXED,
        start_date=date(2024, 1, 1),
    ),
    Expense(
        id="tv",
        amount=Decimal("600"),
        recurrence=ExpenseRecurrence.INSTALLMENT,
        installment_count=3,
        start_date=date(2024, 2, 20),
    ),
    Expense(
        id="party",
        amount=Decimal("250"),
        start_date=date(2024, 4, 2),
    ),
]

# Month nets for the records above:
#   Jan 2000  Feb 1800  Mar 2300  Apr 2050  May 2000
START = date(2024, 1, 1)


class TestStartIndex:

    def test_default_start(self):
        assert start_index() == month_index(DEFAULT_ACCOUNTING_START)

    def test_accounting_start(self):
        assert start_index(date(2024, 3, 17)) == target_index(3, 2024)

    def test_reset_month_starts_next_month(self):
        assert start_index(START, date(2024, 2, 1)) == target_index(3, 2024)

    def test_reset_month_before_start_is_ignored(self):
        assert start_index(date(2024, 6, 1), date(2024, 2, 1)) == target_index(6, 2024)

    def test_reset_in_december(self):
        assert from_index(start_index(START, date(2024, 12, 31))) == (1, 2025)


class TestBalanceAggregator:

    def test_month_nets(self):
        aggregator = BalanceAggregator(INCOMES, EXPENSES)
        nets = [aggregator.month_net(m, 2024) for m in range(1, 6)]
        assert nets == [
            Decimal("2000"),
            Decimal("1800"),
            Decimal("2300"),
            Decimal("2050"),
            Decimal("2000"),
        ]

    def test_accumulated_replays_history(self):
        result = accumulated_balance(INCOMES, EXPENSES, 4, 2024, accounting_start=START)
        assert result.months_replayed == 3
        assert result.past_total == Decimal("6100")
        assert result.month_net == Decimal("2050")
        assert result.accumulated == Decimal("8150")
        assert (result.start_month, result.start_year) == (1, 2024)

    @pytest.mark.parametrize("month", [2, 3, 4, 5, 6, 12])
    def test_replay_is_associative_across_months(self, month):
        aggregator = BalanceAggregator(INCOMES, EXPENSES)
        previous = aggregator.accumulated(month - 1, 2024, START).accumulated
        current = aggregator.accumulated(month, 2024, START).accumulated
        assert current == previous + aggregator.month_net(month, 2024)

    def test_replay_across_year_boundary(self):
        aggregator = BalanceAggregator(INCOMES, EXPENSES)
        december = aggregator.accumulated(12, 2024, START).accumulated
        january = aggregator.accumulated(1, 2025, START).accumulated
        assert january == december + aggregator.month_net(1, 2025)

    def test_memoisation_does_not_change_result(self):
        aggregator = BalanceAggregator(INCOMES, EXPENSES)
        first = aggregator.accumulated(5, 2024, START)
        second = aggregator.accumulated(5, 2024, START)
        fresh = accumulated_balance(INCOMES, EXPENSES, 5, 2024, START)
        assert first == second == fresh

    def test_nothing_before_accounting_start_counts(self):
        later_start = date(2024, 3, 1)
        result = accumulated_balance(INCOMES, EXPENSES, 4, 2024, later_start)
        assert result.accumulated == Decimal("2300") + Decimal("2050")

    def test_target_before_start_is_zero(self):
        result = accumulated_balance(INCOMES, EXPENSES, 2, 2024, date(2024, 3, 1))
        assert result.accumulated == Decimal("0")
        assert result.months_replayed == 0

    def test_reset_month_zeroes_the_balance(self):
        result = accumulated_balance(
            INCOMES, EXPENSES, 4, 2024, START, reset_month=date(2024, 2, 1)
        )
        assert (result.start_month, result.start_year) == (3, 2024)
        assert result.accumulated == Decimal("4350")

    def test_target_month_equal_to_start(self):
        result = accumulated_balance(INCOMES, EXPENSES, 1, 2024, START)
        assert result.months_replayed == 0
        assert result.accumulated == result.month_net == Decimal("2000")

    def test_no_records(self):
        result = accumulated_balance([], [], 6, 2024, START)
        assert result.accumulated == Decimal("0")

    def test_default_start_replays_from_2000(self):
        result = accumulated_balance(INCOMES, EXPENSES, 1, 2024)
        assert result.months_replayed == 24 * 12
        assert result.accumulated == Decimal("2000")
