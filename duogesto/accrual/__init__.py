"""Monthly accrual and balance replay."""

from duogesto.accrual.engine import (
    accrue_expense,
    accrue_income,
    accrue_month,
    diff_months,
    month_index,
    month_net,
)
from duogesto.accrual.balance import (
    DEFAULT_ACCOUNTING_START,
    BalanceAggregator,
    accumulated_balance,
    start_index,
)

__all__ = [
    "accrue_expense",
    "accrue_income",
    "accrue_month",
    "diff_months",
    "month_index",
    "month_net",
    "DEFAULT_ACCOUNTING_START",
    "BalanceAggregator",
    "accumulated_balance",
    "start_index",
]
