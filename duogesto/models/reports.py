"""
Report Models

Immutable results produced by the accrual engine and the balance
aggregator. They carry no behaviour beyond a few derived totals so the
presentation layer can cache them keyed by the inputs that built them.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


ZERO = Decimal("0")


class AccrualLine(BaseModel):
    """
    One record that is active in a given month, with what it contributes.

    installment_number is only set for installment expenses.
    paid is only set for expenses.
    """
    model_config = ConfigDict(frozen=True)

    record_id: Optional[str] = None
    record_type: str = Field(
        ...,
        pattern="^(income|expense)$",
    )
    description: str = ""
    category: Optional[str] = None
    recurrence: str
    amount: Decimal = Field(
        ...,
        description="Amount contributed to the month"
    )
    reference_date: date
    installment_number: Optional[int] = None
    installment_count: Optional[int] = None
    paid: Optional[bool] = None


class MonthlyAccrual(BaseModel):
    """Every active income and expense line of one month."""
    model_config = ConfigDict(frozen=True)

    month: int = Field(..., ge=1, le=12)
    year: int
    incomes: tuple[AccrualLine, ...] = ()
    expenses: tuple[AccrualLine, ...] = ()

    @property
    def total_income(self) -> Decimal:
        return sum((line.amount for line in self.incomes), ZERO)

    @property
    def total_expense(self) -> Decimal:
        return sum((line.amount for line in self.expenses), ZERO)

    @property
    def net(self) -> Decimal:
        return self.total_income - self.total_expense


class BalanceResult(BaseModel):
    """
    Running balance as of a target month.

    accumulated = past_total + month_net, where past_total is the replay of
    every month from the start month up to (excluding) the target.
    When the target month is before the start month nothing is counted.
    """
    model_config = ConfigDict(frozen=True)

    month: int = Field(..., ge=1, le=12)
    year: int
    start_month: int = Field(..., ge=1, le=12)
    start_year: int
    months_replayed: int = Field(ge=0)
    past_total: Decimal = ZERO
    month_net: Decimal = ZERO
    accumulated: Decimal = ZERO


class SpendingTarget(BaseModel):
    """Spending limit for the month derived from the income ("meta")."""
    model_config = ConfigDict(frozen=True)

    percent: int = Field(..., ge=5, le=95)
    month_income: Decimal
    spending_limit: Decimal
    expected_reserve: Decimal


class CategoryTotal(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    total: Decimal
    color: Optional[str] = None
    icon: Optional[str] = None


class LegacyMonthStats(BaseModel):
    """Gains and expenses of the legacy ledger for one month."""
    model_config = ConfigDict(frozen=True)

    month: int = Field(..., ge=1, le=12)
    year: int
    gains: Decimal = ZERO
    expenses: Decimal = ZERO
    transaction_ids: tuple[str, ...] = ()

    @property
    def balance(self) -> Decimal:
        return self.gains - self.expenses


class MonthlyReport(BaseModel):
    """Everything the dashboard shows for one month."""
    model_config = ConfigDict(frozen=True)

    accrual: MonthlyAccrual
    balance: BalanceResult
    spending: SpendingTarget
    expenses_by_category: tuple[CategoryTotal, ...] = ()
    recent: tuple[AccrualLine, ...] = ()


class RoomProgress(BaseModel):
    """Shopping progress of one room."""
    model_config = ConfigDict(frozen=True)

    room_id: Optional[str] = None
    label: str = ""
    icon: Optional[str] = None
    total_items: int = 0
    bought_items: int = 0
    pending_total: Decimal = ZERO
    progress_percent: int = Field(default=0, ge=0, le=100)


class HomeSummary(BaseModel):
    """
    Shopping progress of the whole home.

    Items of a deleted room still count here but in no room.
    """
    model_config = ConfigDict(frozen=True)

    total_items: int = 0
    bought_items: int = 0
    pending_items: int = 0
    pending_total: Decimal = ZERO
    progress_percent: int = Field(default=0, ge=0, le=100)
    rooms: tuple[RoomProgress, ...] = ()
