"""Dashboard reports built on top of the accrual engine."""

from duogesto.reports.dashboard import (
    build_month_report,
    expenses_by_category,
    recent_movements,
    spending_target,
)

__all__ = [
    "build_month_report",
    "expenses_by_category",
    "recent_movements",
    "spending_target",
]
