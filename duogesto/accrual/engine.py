"""
Accrual Engine

Decides, for one calendar month, which incomes and expenses are active
and what amount each of them contributes.

Every recurrence rule is expressed through a single number, diff-months:
the count of whole calendar months between the record's reference date
and the target month.

    income  ONE_TIME       active iff diff == 0
            FIXED_MONTHLY  active iff diff >= 0
            PERIOD         active iff 0 <= diff < period_months
    expense ONE_TIME       active iff diff == 0
            FIXED          active iff diff >= 0
            INSTALLMENT    active iff 0 <= diff < installment_count,
                           contributes amount / installment_count,
                           installment number is diff + 1

IMPORTANT: The engine never raises for a record. A record with no usable
reference date, no usable amount or a non-positive count is inactive.
Months are 1-based (1 = January).
"""

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

import structlog

from duogesto.models.records import (
    Expense,
    ExpenseRecurrence,
    Income,
    IncomeRecurrence,
)
from duogesto.models.reports import AccrualLine, MonthlyAccrual


logger = structlog.get_logger(__name__)


def month_index(d: date) -> int:
    """Absolute month number of a date (year*12 + zero-based month)."""
    return d.year * 12 + (d.month - 1)


def target_index(month: int, year: int) -> int:
    if not 1 <= month <= 12:
        raise ValueError(f"Month must be between 1 and 12, got {month}")
    return year * 12 + (month - 1)


def from_index(index: int) -> tuple[int, int]:
    """Inverse of target_index: returns (month, year)."""
    year, zero_based = divmod(index, 12)
    return zero_based + 1, year


def diff_months(reference: Optional[date], month: int, year: int) -> Optional[int]:
    """
    Months elapsed between the reference date and the target month.

    Returns None when there is no reference date; callers must treat that
    as inactive.
    """
    if reference is None:
        return None
    return target_index(month, year) - month_index(reference)


def _skip(record_type: str, record_id: Optional[str], reason: str) -> None:
    logger.warning(
        "accrual_record_skipped",
        record_type=record_type,
        record_id=record_id,
        reason=reason,
    )


def accrue_income(income: Income, month: int, year: int) -> Optional[AccrualLine]:
    """Return the income's line for the month, or None when inactive."""
    diff = diff_months(income.effective_date, month, year)
    if diff is None:
        _skip("income", income.id, "missing_effective_date")
        return None
    if diff < 0:
        return None
    if income.amount is None:
        _skip("income", income.id, "missing_amount")
        return None

    if income.recurrence == IncomeRecurrence.FIXED_MONTHLY:
        active = True
    elif income.recurrence == IncomeRecurrence.PERIOD:
        if income.period_months < 1:
            _skip("income", income.id, "invalid_period_months")
            return None
        active = diff < income.period_months
    else:
        active = diff == 0

    if not active:
        return None

    return AccrualLine(
        record_id=income.id,
        record_type="income",
        description=income.description,
        category=income.category,
        recurrence=income.recurrence.value,
        amount=income.amount,
        reference_date=income.effective_date,
    )


def accrue_expense(expense: Expense, month: int, year: int) -> Optional[AccrualLine]:
    """
    Return the expense's line for the month, or None when inactive.

    The paid flag looks up payment number diff + 1 for every kind of
    expense: for fixed expenses it is the month's sequence number.
    """
    diff = diff_months(expense.start_date, month, year)
    if diff is None:
        _skip("expense", expense.id, "missing_start_date")
        return None
    if diff < 0:
        return None
    if expense.amount is None:
        _skip("expense", expense.id, "missing_amount")
        return None

    installment_number = None
    installment_count = None
    amount = expense.amount

    if expense.recurrence == ExpenseRecurrence.FIXED:
        active = True
    elif expense.recurrence == ExpenseRecurrence.INSTALLMENT:
        if expense.installment_count < 1:
            _skip("expense", expense.id, "invalid_installment_count")
            return None
        active = diff < expense.installment_count
        installment_number = diff + 1
        installment_count = expense.installment_count
        amount = expense.amount / expense.installment_count
    else:
        active = diff == 0

    if not active:
        return None

    return AccrualLine(
        record_id=expense.id,
        record_type="expense",
        description=expense.description,
        category=expense.category,
        recurrence=expense.recurrence.value,
        amount=amount,
        reference_date=expense.start_date,
        installment_number=installment_number,
        installment_count=installment_count,
        paid=expense.is_paid(diff + 1),
    )


def accrue_month(
    incomes: Iterable[Income],
    expenses: Iterable[Expense],
    month: int,
    year: int,
) -> MonthlyAccrual:
    """Build the month's accrual from the full set of records."""
    target_index(month, year)

    income_lines = []
    for income in incomes:
        line = accrue_income(income, month, year)
        if line is not None:
            income_lines.append(line)

    expense_lines = []
    for expense in expenses:
        line = accrue_expense(expense, month, year)
        if line is not None:
            expense_lines.append(line)

    return MonthlyAccrual(
        month=month,
        year=year,
        incomes=tuple(income_lines),
        expenses=tuple(expense_lines),
    )


def month_net(
    incomes: Iterable[Income],
    expenses: Iterable[Expense],
    month: int,
    year: int,
) -> Decimal:
    """Income minus expense for the month."""
    return accrue_month(incomes, expenses, month, year).net
