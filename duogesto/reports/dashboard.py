"""
Month Dashboard

Assembles what the dashboard shows for one month: the accrual, the
accumulated balance, the spending target ("meta"), the expense breakdown
by category and the most recent movements.

Everything here is pure; records are loaded by the caller.
"""

from collections import OrderedDict
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from duogesto.accrual.balance import BalanceAggregator
from duogesto.models.records import Category, Expense, Income
from duogesto.models.reports import (
    ZERO,
    AccrualLine,
    CategoryTotal,
    MonthlyAccrual,
    MonthlyReport,
    SpendingTarget,
)


SPENDING_PERCENT_STEP = 5
SPENDING_PERCENT_MIN = 5
SPENDING_PERCENT_MAX = 95

UNCATEGORIZED = "Outros"


def spending_target(month_income: Decimal, percent: int) -> SpendingTarget:
    """
    Split the month's income into what may be spent and what should be saved.

    Raises:
        ValueError: percent outside 5..95 or not a multiple of 5.
    """
    if (
        not SPENDING_PERCENT_MIN <= percent <= SPENDING_PERCENT_MAX
        or percent % SPENDING_PERCENT_STEP != 0
    ):
        raise ValueError(
            f"Spending percent must be a multiple of {SPENDING_PERCENT_STEP} "
            f"between {SPENDING_PERCENT_MIN} and {SPENDING_PERCENT_MAX}, got {percent}"
        )
    share = Decimal(percent) / 100
    return SpendingTarget(
        percent=percent,
        month_income=month_income,
        spending_limit=month_income * share,
        expected_reserve=month_income * (1 - share),
    )


def expenses_by_category(
    accrual: MonthlyAccrual,
    categories: Iterable[Category],
) -> list[CategoryTotal]:
    """
    Total of the month's expense lines per category.

    Known categories come first, in the order given; a line matches a
    category by label or by id. Categories nobody used this month are left
    out. Lines with an unknown category are grouped under their own name
    at the end.
    """
    known = list(categories)
    totals: "OrderedDict[str, Decimal]" = OrderedDict()
    lookup: dict[str, Category] = {}
    for category in known:
        totals.setdefault(category.label, ZERO)
        lookup[category.label] = category
        if category.id:
            lookup.setdefault(category.id, category)

    extra: "OrderedDict[str, Decimal]" = OrderedDict()
    for line in accrual.expenses:
        key = line.category or UNCATEGORIZED
        category = lookup.get(key)
        if category is not None:
            totals[category.label] += line.amount
        else:
            extra[key] = extra.get(key, ZERO) + line.amount

    result = []
    for label, total in totals.items():
        if total > 0:
            category = lookup[label]
            result.append(CategoryTotal(
                name=label, total=total, color=category.color, icon=category.icon
            ))
    for name, total in extra.items():
        if total > 0:
            result.append(CategoryTotal(name=name, total=total))
    return result


def recent_movements(accrual: MonthlyAccrual, limit: int = 5) -> list[AccrualLine]:
    """Newest lines of the month (incomes and expenses mixed)."""
    lines = list(accrual.incomes) + list(accrual.expenses)
    lines.sort(key=lambda line: line.reference_date, reverse=True)
    return lines[:limit]


def build_month_report(
    incomes: Iterable[Income],
    expenses: Iterable[Expense],
    categories: Iterable[Category],
    month: int,
    year: int,
    accounting_start: Optional[date] = None,
    reset_month: Optional[date] = None,
    spending_percent: int = 70,
    recent_limit: int = 5,
    aggregator: Optional[BalanceAggregator] = None,
) -> MonthlyReport:
    """
    Everything the dashboard needs for (month, year).

    Pass an aggregator to reuse the memoised monthly nets while the couple
    navigates between months over the same records.
    """
    aggregator = aggregator or BalanceAggregator(incomes, expenses)
    accrual = aggregator.accrual(month, year)
    balance = aggregator.accumulated(month, year, accounting_start, reset_month)

    return MonthlyReport(
        accrual=accrual,
        balance=balance,
        spending=spending_target(accrual.total_income, spending_percent),
        expenses_by_category=tuple(expenses_by_category(accrual, categories)),
        recent=tuple(recent_movements(accrual, recent_limit)),
    )
