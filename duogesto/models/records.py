"""
Core Record Models for DuoGesto

These models describe every record kind the couple keeps in the shared
document store:
1. Incomes and expenses (the monthly cash flow)
2. The legacy "finances" ledger
3. Savings goals (DuoBank) and their movement history
4. Categories and users
5. The home shopping list, property options and travel plans

DESIGN DECISION: Records coming out of the store are NOT trusted.
Dates and amounts are Optional so that a malformed document can still be
loaded and shown; the accrual engine treats such records as inactive
instead of letting them corrupt a monthly total.

Recurrence is a closed set of kinds per record type. All the overlapping
legacy flags (isFixed, isInstallment, type) are collapsed into one field
by duogesto.models.normalize before a model is built.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# Stored period length of a fixed income; documents written by the first
# version of the app carry this value and it is never read for FIXED records.
FIXED_RECURRENCE_MONTHS = 999


# =============================================================================
# ENUMS
# =============================================================================

class IncomeRecurrence(str, Enum):
    """How an income repeats over the months."""
    ONE_TIME = "unique"
    FIXED_MONTHLY = "fixed"
    PERIOD = "period"


class ExpenseRecurrence(str, Enum):
    """
    How an expense repeats over the months.

    For INSTALLMENT the stored amount is the TOTAL debt, not the
    monthly value.
    """
    ONE_TIME = "unique"
    FIXED = "fixed"
    INSTALLMENT = "installment"


class TransactionKind(str, Enum):
    """Direction of a legacy ledger transaction."""
    GAIN = "GAIN"
    EXPENSE = "EXPENSE"


class LegacyRecurrence(str, Enum):
    ONE_TIME = "ONE_TIME"
    FIXED = "FIXED"
    DURATION = "DURATION"


class CategoryKind(str, Enum):
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class UserRole(str, Enum):
    """
    Access level of a household member.

    Only ADMIN can reach the user administration screens.
    """
    ADMIN = "ADMIN"
    SUPERUSER = "SUPERUSER"
    USER = "USER"


class PriceType(str, Enum):
    """How a travel price was quoted."""
    TOTAL = "TOTAL"
    PER_PERSON = "PER_PERSON"


# =============================================================================
# CASH FLOW
# =============================================================================

class Income(BaseModel):
    """
    A source of money for the couple.

    period_months only matters for PERIOD incomes. A FIXED_MONTHLY income is
    active every month from its effective date onward, indefinitely.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: Optional[str] = None
    description: str = Field(
        default="",
        max_length=200,
        description="What the income is (salary, freelance...)"
    )
    amount: Optional[Decimal] = Field(
        default=None,
        description="Monthly (or one-time) amount"
    )
    category: Optional[str] = None
    recurrence: IncomeRecurrence = IncomeRecurrence.ONE_TIME
    period_months: int = Field(
        default=1,
        description="Number of months a PERIOD income lasts"
    )
    effective_date: Optional[date] = Field(
        default=None,
        description="First month the income counts"
    )
    owner_name: Optional[str] = None
    created_at: Optional[datetime] = None


class InstallmentPayment(BaseModel):
    """One paid installment (or one paid month of a fixed expense)."""

    installment_number: int = Field(
        ...,
        ge=1,
        description="1-based installment number"
    )
    paid_at: Optional[datetime] = None
    by_whom: Optional[str] = None
    source: Optional[str] = Field(
        default=None,
        description="Account the payment came from, if recorded"
    )


class Expense(BaseModel):
    """
    Money going out.

    CRITICAL: when recurrence is INSTALLMENT, `amount` is the total debt and
    each month contributes amount / installment_count.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: Optional[str] = None
    description: str = Field(default="", max_length=200)
    amount: Optional[Decimal] = None
    category: Optional[str] = None
    recurrence: ExpenseRecurrence = ExpenseRecurrence.ONE_TIME
    installment_count: int = Field(
        default=1,
        description="Number of installments (1 unless INSTALLMENT)"
    )
    start_date: Optional[date] = None
    due_day: Optional[int] = Field(default=None, ge=1, le=31)
    owner_name: Optional[str] = None
    payments: list[InstallmentPayment] = Field(default_factory=list)
    # Written by one old payment screen only; carried through, never maintained.
    completed: Optional[bool] = None
    created_at: Optional[datetime] = None

    @property
    def installment_unit(self) -> Optional[Decimal]:
        """Amount charged per month."""
        if self.amount is None:
            return None
        if self.recurrence == ExpenseRecurrence.INSTALLMENT:
            if self.installment_count < 1:
                return None
            return self.amount / self.installment_count
        return self.amount

    def is_paid(self, installment_number: int) -> bool:
        """Check whether a given installment has been marked paid."""
        return any(
            p.installment_number == installment_number for p in self.payments
        )


# =============================================================================
# LEGACY LEDGER
# =============================================================================

class Transaction(BaseModel):
    """
    Entry of the legacy "finances" ledger.

    Kept for couples who still have data in the first version of the
    ledger. Unlike incomes/expenses, transactions belong to a user id.
    """

    id: Optional[str] = None
    kind: TransactionKind = TransactionKind.EXPENSE
    description: str = ""
    value: Optional[Decimal] = None
    category: Optional[str] = None
    transaction_date: Optional[date] = None
    recurrence: LegacyRecurrence = LegacyRecurrence.ONE_TIME
    end_date: Optional[date] = None
    user_id: Optional[str] = None


# =============================================================================
# SAVINGS GOALS
# =============================================================================

class BankGoal(BaseModel):
    """
    A savings target ("DuoBank").

    current_amount is a CACHE of opening_amount + sum of ledger entries.
    Every movement must move the cache too, see duogesto.goals.ledger.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: Optional[str] = None
    title: str = Field(default="", max_length=200)
    institution_name: Optional[str] = None
    account_ref: Optional[str] = None
    owner_name: Optional[str] = None
    current_amount: Decimal = Decimal("0")
    goal_amount: Decimal = Decimal("0")
    monthly_target: Decimal = Decimal("0")
    opening_amount: Decimal = Field(
        default=Decimal("0"),
        description="Balance typed in when the goal was created (no ledger entry)"
    )
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def progress_percent(self) -> Decimal:
        """How much of the goal has been reached, in percent."""
        if self.goal_amount == 0:
            return Decimal("0")
        return self.current_amount / self.goal_amount * 100


class GoalLedgerEntry(BaseModel):
    """A deposit (positive) or withdrawal (negative) on a goal."""

    id: Optional[str] = None
    goal_id: str
    amount: Decimal
    by_whom: Optional[str] = None
    reason: Optional[str] = None
    moved_at: Optional[datetime] = None


# =============================================================================
# CATEGORIES & USERS
# =============================================================================

class Category(BaseModel):
    id: Optional[str] = None
    label: str
    icon: Optional[str] = None
    color: Optional[str] = None
    kind: CategoryKind = CategoryKind.EXPENSE


class User(BaseModel):
    """
    A household member.

    partner_user_id should point both ways (A -> B and B -> A). The store
    does not enforce this; duogesto.auth keeps both sides in step.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: Optional[str] = None
    display_name: str = ""
    username: str = Field(..., min_length=1, max_length=100)
    password_hash: Optional[str] = None
    role: UserRole = UserRole.USER
    partner_user_id: Optional[str] = None
    accounting_start_date: Optional[date] = Field(
        default=None,
        description="Nothing before this date counts in the accumulated balance"
    )
    email: Optional[str] = None
    phone: Optional[str] = None
    created_at: Optional[datetime] = None

    @field_validator('username')
    @classmethod
    def lowercase_username(cls, v: str) -> str:
        """Usernames are matched case-insensitively."""
        return v.lower()

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


# =============================================================================
# HOME, PROPERTIES & TRAVELS
# =============================================================================

class PropertyDeal(str, Enum):
    RENT = "RENT"
    BUY = "BUY"


class PropertyKind(str, Enum):
    APARTMENT = "APARTAMENTO"
    HOUSE = "CASA"


class Room(BaseModel):
    """A room of the home being furnished."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: Optional[str] = None
    label: str = Field(default="", max_length=100)
    icon: Optional[str] = None
    color: Optional[str] = None


class HomeItem(BaseModel):
    """Something the couple wants to buy for a room."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: Optional[str] = None
    name: str = Field(default="", max_length=200)
    price: Optional[Decimal] = None
    link: Optional[str] = None
    room_id: Optional[str] = None
    bought: bool = False
    created_at: Optional[datetime] = None


class Property(BaseModel):
    """
    A place to live the couple is considering.

    favorites holds the names of the members who liked it.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: Optional[str] = None
    city: str = ""
    neighborhood: str = ""
    price: Decimal = Decimal("0")
    deal: PropertyDeal = PropertyDeal.RENT
    kind: PropertyKind = PropertyKind.APARTMENT
    rooms: int = Field(default=1, ge=0)
    bathrooms: int = Field(default=1, ge=0)
    garage: int = Field(default=0, ge=0)
    has_balcony: bool = False
    is_penthouse: bool = False
    link: Optional[str] = None
    has_condo: bool = False
    condo_value: Decimal = Decimal("0")
    condo_includes: str = ""
    added_by: Optional[str] = None
    favorites: list[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def total_cost(self) -> Decimal:
        """Monthly (or purchase) price plus the condo fee when there is one."""
        if self.has_condo:
            return self.price + self.condo_value
        return self.price


class TravelActivity(BaseModel):
    title: str
    link: Optional[str] = None


class TravelReview(BaseModel):
    """What one member thought of a visited destination."""
    name: str
    text: str = ""


class TravelComment(BaseModel):
    id: str
    author: str
    user_id: Optional[str] = None
    text: str
    posted_at: Optional[datetime] = None


class Travel(BaseModel):
    """
    A destination on the couple's list.

    Once visited it also carries the visit date, one review per member
    and a link to the photo album.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: Optional[str] = None
    location: str = Field(default="", max_length=200)
    city: Optional[str] = None
    state: Optional[str] = None
    price: Decimal = Decimal("0")
    price_type: PriceType = PriceType.TOTAL
    activities: list[TravelActivity] = Field(default_factory=list)
    banner_url: Optional[str] = None
    link: Optional[str] = None
    added_by: Optional[str] = None
    favorites: list[str] = Field(default_factory=list)
    comments: list[TravelComment] = Field(default_factory=list)
    is_visited: bool = False
    visit_date: Optional[date] = None
    reviews: list[TravelReview] = Field(default_factory=list)
    photos_url: Optional[str] = None
    visited_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
