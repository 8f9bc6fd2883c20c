"""
Data Models Package

This package contains all Pydantic models used by DuoGesto.
Every document read from the record store is turned into one of these
models by duogesto.models.normalize.
"""

from duogesto.models.records import (
    FIXED_RECURRENCE_MONTHS,
    BankGoal,
    Category,
    CategoryKind,
    Expense,
    ExpenseRecurrence,
    GoalLedgerEntry,
    HomeItem,
    Income,
    IncomeRecurrence,
    InstallmentPayment,
    LegacyRecurrence,
    PriceType,
    Property,
    PropertyDeal,
    PropertyKind,
    Room,
    Transaction,
    TransactionKind,
    Travel,
    TravelActivity,
    TravelComment,
    TravelReview,
    User,
    UserRole,
)
from duogesto.models.reports import (
    AccrualLine,
    BalanceResult,
    CategoryTotal,
    HomeSummary,
    LegacyMonthStats,
    MonthlyAccrual,
    MonthlyReport,
    RoomProgress,
    SpendingTarget,
)
from duogesto.models.validation import ValidationIssue, ValidationResult
from duogesto.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Records
    "FIXED_RECURRENCE_MONTHS",
    "BankGoal",
    "Category",
    "CategoryKind",
    "Expense",
    "ExpenseRecurrence",
    "GoalLedgerEntry",
    "HomeItem",
    "Income",
    "IncomeRecurrence",
    "InstallmentPayment",
    "LegacyRecurrence",
    "PriceType",
    "Property",
    "PropertyDeal",
    "PropertyKind",
    "Room",
    "Transaction",
    "TransactionKind",
    "Travel",
    "TravelActivity",
    "TravelComment",
    "TravelReview",
    "User",
    "UserRole",
    # Reports
    "AccrualLine",
    "BalanceResult",
    "CategoryTotal",
    "HomeSummary",
    "LegacyMonthStats",
    "MonthlyAccrual",
    "MonthlyReport",
    "RoomProgress",
    "SpendingTarget",
    # Validation
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
