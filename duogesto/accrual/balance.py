"""
Balance Aggregator

Running net balance ("accumulated") as of a target month, computed by
replaying every month from the accounting start up to the target.

    accumulated(M) = sum of net(k) for k in [start, M]

This is O(months x records); the per-month nets are memoised on the
aggregator instance, which never changes the numeric result.

Start month:
- the month containing the user's accounting start date, or
- the month AFTER a reset month, when the couple chose to zero the
  ledger at the end of that month (whichever is later).

A target month earlier than the start month has an accumulated balance
of zero: nothing before the accounting start counts.
"""

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from duogesto.accrual.engine import (
    accrue_month,
    from_index,
    month_index,
    target_index,
)
from duogesto.models.records import Expense, Income
from duogesto.models.reports import BalanceResult, MonthlyAccrual


DEFAULT_ACCOUNTING_START = date(2000, 1, 1)

ZERO = Decimal("0")


def start_index(
    accounting_start: Optional[date] = None,
    reset_month: Optional[date] = None,
) -> int:
    """Absolute index of the first month that counts."""
    index = month_index(accounting_start or DEFAULT_ACCOUNTING_START)
    if reset_month is not None:
        index = max(index, month_index(reset_month) + 1)
    return index


class BalanceAggregator:
    """
    Replays monthly nets for a fixed set of records.

    Build a new aggregator whenever the records change; the cache is only
    valid for the records given at construction.
    """

    def __init__(self, incomes: Iterable[Income], expenses: Iterable[Expense]):
        self._incomes = tuple(incomes)
        self._expenses = tuple(expenses)
        self._nets: dict[int, Decimal] = {}

    def accrual(self, month: int, year: int) -> MonthlyAccrual:
        return accrue_month(self._incomes, self._expenses, month, year)

    def month_net(self, month: int, year: int) -> Decimal:
        index = target_index(month, year)
        if index not in self._nets:
            self._nets[index] = self.accrual(month, year).net
        return self._nets[index]

    def accumulated(
        self,
        month: int,
        year: int,
        accounting_start: Optional[date] = None,
        reset_month: Optional[date] = None,
    ) -> BalanceResult:
        """Accumulated balance as of (month, year)."""
        target = target_index(month, year)
        first = start_index(accounting_start, reset_month)
        start_month, start_year = from_index(first)

        if target < first:
            return BalanceResult(
                month=month,
                year=year,
                start_month=start_month,
                start_year=start_year,
                months_replayed=0,
            )

        past_total = ZERO
        for index in range(first, target):
            past_month, past_year = from_index(index)
            past_total += self.month_net(past_month, past_year)

        current = self.month_net(month, year)
        return BalanceResult(
            month=month,
            year=year,
            start_month=start_month,
            start_year=start_year,
            months_replayed=target - first,
            past_total=past_total,
            month_net=current,
            accumulated=past_total + current,
        )


def accumulated_balance(
    incomes: Iterable[Income],
    expenses: Iterable[Expense],
    month: int,
    year: int,
    accounting_start: Optional[date] = None,
    reset_month: Optional[date] = None,
) -> BalanceResult:
    """One-shot version of BalanceAggregator.accumulated."""
    aggregator = BalanceAggregator(incomes, expenses)
    return aggregator.accumulated(month, year, accounting_start, reset_month)
