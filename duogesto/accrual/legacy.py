"""
Legacy "finances" ledger accrual.

The first version of the app kept a single ledger of GAIN/EXPENSE
transactions, each owned by one user. A transaction is active in a
month when it belongs to one of the couple's users, is dated on or after
the accounting start, and:

    FIXED     dated on or before the last day of the month
    DURATION  dated on or before the last day of the month and ending on
              or after the first day of the month
    ONE_TIME  dated within the month
"""

import calendar
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from duogesto.accrual.balance import DEFAULT_ACCOUNTING_START, ZERO
from duogesto.accrual.engine import from_index, month_index, target_index
from duogesto.models.records import LegacyRecurrence, Transaction, TransactionKind
from duogesto.models.reports import BalanceResult, LegacyMonthStats


def month_bounds(month: int, year: int) -> tuple[date, date]:
    target_index(month, year)
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def is_active(
    transaction: Transaction,
    month: int,
    year: int,
    couple_ids: Sequence[str],
    accounting_start: Optional[date] = None,
) -> bool:
    tx_date = transaction.transaction_date
    if tx_date is None or transaction.value is None:
        return False
    if transaction.user_id not in couple_ids:
        return False
    if tx_date < (accounting_start or DEFAULT_ACCOUNTING_START):
        return False

    first_day, last_day = month_bounds(month, year)
    if transaction.recurrence == LegacyRecurrence.FIXED:
        return tx_date <= last_day
    if transaction.recurrence == LegacyRecurrence.DURATION:
        # No end date means the duration cannot be bounded: inactive.
        if transaction.end_date is None:
            return False
        return tx_date <= last_day and transaction.end_date >= first_day
    return tx_date.month == month and tx_date.year == year


def month_stats(
    transactions: Iterable[Transaction],
    month: int,
    year: int,
    couple_ids: Sequence[str],
    accounting_start: Optional[date] = None,
) -> LegacyMonthStats:
    gains = ZERO
    expenses = ZERO
    ids = []
    for tx in transactions:
        if not is_active(tx, month, year, couple_ids, accounting_start):
            continue
        if tx.kind == TransactionKind.GAIN:
            gains += tx.value
        else:
            expenses += tx.value
        if tx.id:
            ids.append(tx.id)

    return LegacyMonthStats(
        month=month,
        year=year,
        gains=gains,
        expenses=expenses,
        transaction_ids=tuple(ids),
    )


def accumulated(
    transactions: Iterable[Transaction],
    month: int,
    year: int,
    couple_ids: Sequence[str],
    accounting_start: Optional[date] = None,
) -> BalanceResult:
    """Replay of the legacy ledger from the accounting start to the target."""
    records = tuple(transactions)
    target = target_index(month, year)
    first = month_index(accounting_start or DEFAULT_ACCOUNTING_START)
    start_month, start_year = from_index(first)

    past_total: Decimal = ZERO
    for index in range(first, target):
        past_month, past_year = from_index(index)
        past_total += month_stats(
            records, past_month, past_year, couple_ids, accounting_start
        ).balance

    current = month_stats(records, month, year, couple_ids, accounting_start).balance
    return BalanceResult(
        month=month,
        year=year,
        start_month=start_month,
        start_year=start_year,
        months_replayed=max(target - first, 0),
        past_total=past_total,
        month_net=current,
        accumulated=past_total + current,
    )
