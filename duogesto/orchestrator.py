"""
Main Orchestrator for DuoGesto

This module ties together all the components and defines the
end-to-end flows for:
1. Cash flow (form -> validate -> normalize -> save -> audit)
2. Month view (load records -> accrue -> replay balance -> report)

DESIGN DECISION: The orchestrator enforces the boundaries:
- No form reaches the store without passing validation
- Records are read back through the normalization step only
- Every write is audited, and failures are audited then re-raised

The accrual core stays pure; this is the only place that loads records
for it.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import NamedTuple, Optional

import structlog

from duogesto.accrual.balance import BalanceAggregator
from duogesto.accrual import legacy
from duogesto.audit import AuditLogger
from duogesto.auth import UserService, couple_ids
from duogesto.config import AppSettings, get_settings
from duogesto.goals import GoalLedger
from duogesto.installments import InstallmentTracker
from duogesto.models.audit import AuditEventType
from duogesto.models.normalize import (
    category_from_document,
    expense_from_document,
    income_from_document,
    to_document,
    transaction_from_document,
)
from duogesto.models.records import (
    Category,
    Expense,
    ExpenseRecurrence,
    Income,
    IncomeRecurrence,
    Transaction,
    User,
)
from duogesto.models.reports import BalanceResult, LegacyMonthStats, MonthlyReport
from duogesto.plans import HomePlanner, PropertyCatalog, TravelPlanner
from duogesto.reports import build_month_report
from duogesto.services.storage import (
    Collection,
    GoogleSheetsClient,
    GoogleSheetsRecordStore,
    InMemoryRecordStore,
    NotFoundError,
    RecordStore,
    StorageError,
)
from duogesto.validation import RecordValidationError, RecordValidator


logger = structlog.get_logger(__name__)


class FinanceFlow:
    """
    Orchestrates the monthly cash flow.

    Flow for a write:
    1. Validate the submitted form
    2. Build the model (installment totals computed here)
    3. Persist through the record store
    4. Audit

    Flow for a read:
    1. Load and normalize every record
    2. Run the accrual core
    """

    def __init__(
        self,
        store: RecordStore,
        validator: Optional[RecordValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[AppSettings] = None,
    ):
        self._store = store
        self._validator = validator or RecordValidator()
        self._audit_logger = audit_logger
        self._settings = settings or AppSettings()

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    async def _validated(self, result) -> dict:
        try:
            return self._validator.ensure_valid(result)
        except RecordValidationError:
            if self._audit_logger:
                await self._audit_logger.log_validation_failed(
                    result.record_type,
                    [
                        {"field": i.field, "type": i.issue_type, "message": i.message}
                        for i in result.issues
                    ],
                )
            raise

    async def _write(self, operation: str, collection: Collection, coro):
        try:
            return await coro
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_storage_error(operation, collection.value, str(e))
            raise

    async def _audit(
        self,
        event_type: AuditEventType,
        collection: Collection,
        record_id: Optional[str],
        description: str,
        actor: Optional[str] = None,
    ) -> None:
        if self._audit_logger:
            await self._audit_logger.log_record_changed(
                event_type, collection.value, record_id, description, actor=actor
            )

    # -------------------------------------------------------------------------
    # Incomes
    # -------------------------------------------------------------------------

    def _income_from_form(self, cleaned: dict, owner_name: Optional[str]) -> Income:
        recurrence = cleaned["recurrence"]
        if recurrence == IncomeRecurrence.FIXED_MONTHLY:
            period_months = self._settings.fixed_recurrence_months
        elif recurrence == IncomeRecurrence.PERIOD:
            period_months = cleaned["period_months"]
        else:
            period_months = 1

        return Income(
            description=cleaned["description"],
            amount=cleaned["amount"],
            category=cleaned["category"],
            recurrence=recurrence,
            period_months=period_months,
            effective_date=cleaned["effective_date"],
            owner_name=owner_name,
            created_at=datetime.now(timezone.utc),
        )

    async def add_income(self, form: dict, owner_name: Optional[str] = None) -> Income:
        cleaned = await self._validated(self._validator.validate_income(form))
        income = self._income_from_form(cleaned, owner_name)
        income.id = await self._write(
            "create", Collection.INCOMES,
            self._store.create(Collection.INCOMES, to_document(income)),
        )
        await self._audit(
            AuditEventType.INCOME_CREATED, Collection.INCOMES, income.id,
            income.description, owner_name,
        )
        return income

    async def update_income(self, income_id: str, form: dict) -> Income:
        """Replace the editable fields of an income; owner and creation are kept."""
        cleaned = await self._validated(self._validator.validate_income(form))
        current = await self._load_one(Collection.INCOMES, income_id, income_from_document)
        edited = self._income_from_form(cleaned, current.owner_name)
        income = edited.model_copy(update={"id": income_id, "created_at": current.created_at})
        await self._write(
            "update", Collection.INCOMES,
            self._store.update(Collection.INCOMES, income_id, to_document(income)),
        )
        await self._audit(
            AuditEventType.INCOME_UPDATED, Collection.INCOMES, income_id, income.description
        )
        return income

    async def delete_income(self, income_id: str) -> None:
        await self._write(
            "delete", Collection.INCOMES,
            self._store.delete(Collection.INCOMES, income_id),
        )
        await self._audit(
            AuditEventType.INCOME_DELETED, Collection.INCOMES, income_id, income_id
        )

    # -------------------------------------------------------------------------
    # Expenses
    # -------------------------------------------------------------------------

    @staticmethod
    def _expense_from_form(cleaned: dict, owner_name: Optional[str]) -> Expense:
        """
        The form amount of an installment expense is ONE installment; the
        stored amount is the total debt.
        """
        recurrence = cleaned["recurrence"]
        amount: Decimal = cleaned["amount"]
        count = 1
        if recurrence == ExpenseRecurrence.INSTALLMENT:
            count = cleaned["installment_count"]
            amount = amount * count

        return Expense(
            description=cleaned["description"],
            amount=amount,
            category=cleaned["category"],
            recurrence=recurrence,
            installment_count=count,
            start_date=cleaned["start_date"],
            owner_name=owner_name,
            created_at=datetime.now(timezone.utc),
        )

    async def add_expense(self, form: dict, owner_name: Optional[str] = None) -> Expense:
        cleaned = await self._validated(self._validator.validate_expense(form))
        expense = self._expense_from_form(cleaned, owner_name)
        expense.id = await self._write(
            "create", Collection.EXPENSES,
            self._store.create(Collection.EXPENSES, to_document(expense)),
        )
        await self._audit(
            AuditEventType.EXPENSE_CREATED, Collection.EXPENSES, expense.id,
            expense.description, owner_name,
        )
        return expense

    async def update_expense(self, expense_id: str, form: dict) -> Expense:
        """Replace the editable fields of an expense; payments are kept."""
        cleaned = await self._validated(self._validator.validate_expense(form))
        current = await self._load_one(Collection.EXPENSES, expense_id, expense_from_document)
        edited = self._expense_from_form(cleaned, current.owner_name)
        expense = edited.model_copy(update={
            "id": expense_id,
            "payments": current.payments,
            "completed": current.completed,
            "due_day": current.due_day,
            "created_at": current.created_at,
        })
        await self._write(
            "update", Collection.EXPENSES,
            self._store.update(Collection.EXPENSES, expense_id, to_document(expense)),
        )
        await self._audit(
            AuditEventType.EXPENSE_UPDATED, Collection.EXPENSES, expense_id, expense.description
        )
        return expense

    async def delete_expense(self, expense_id: str) -> None:
        await self._write(
            "delete", Collection.EXPENSES,
            self._store.delete(Collection.EXPENSES, expense_id),
        )
        await self._audit(
            AuditEventType.EXPENSE_DELETED, Collection.EXPENSES, expense_id, expense_id
        )

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def _load_one(self, collection: Collection, record_id: str, reader):
        doc = await self._store.get(collection, record_id)
        if doc is None:
            raise NotFoundError(collection, record_id)
        return reader(doc)

    async def load_incomes(self) -> list[Income]:
        return [income_from_document(d) for d in await self._store.list_records(Collection.INCOMES)]

    async def load_expenses(self) -> list[Expense]:
        return [expense_from_document(d) for d in await self._store.list_records(Collection.EXPENSES)]

    async def load_categories(self) -> list[Category]:
        return [category_from_document(d) for d in await self._store.list_records(Collection.CATEGORIES)]

    async def load_transactions(self) -> list[Transaction]:
        return [transaction_from_document(d) for d in await self._store.list_records(Collection.FINANCES)]

    # -------------------------------------------------------------------------
    # Month view
    # -------------------------------------------------------------------------

    def _accounting_start(self, user: Optional[User]) -> date:
        if user is not None and user.accounting_start_date is not None:
            return user.accounting_start_date
        return self._settings.default_accounting_start

    async def month_report(
        self,
        user: Optional[User],
        month: int,
        year: int,
        reset_month: Optional[date] = None,
        spending_percent: Optional[int] = None,
    ) -> MonthlyReport:
        """Dashboard data for (month, year) as seen by the user."""
        incomes = await self.load_incomes()
        expenses = await self.load_expenses()
        categories = await self.load_categories()

        return build_month_report(
            incomes,
            expenses,
            categories,
            month,
            year,
            accounting_start=self._accounting_start(user),
            reset_month=reset_month,
            spending_percent=spending_percent or self._settings.default_spending_percent,
            recent_limit=self._settings.recent_movements_limit,
            aggregator=BalanceAggregator(incomes, expenses),
        )

    async def legacy_month(
        self,
        user: User,
        month: int,
        year: int,
    ) -> tuple[LegacyMonthStats, BalanceResult]:
        """Month stats and accumulated balance of the legacy ledger."""
        transactions = await self.load_transactions()
        ids = couple_ids(user)
        start = self._accounting_start(user)
        stats = legacy.month_stats(transactions, month, year, ids, start)
        balance = legacy.accumulated(transactions, month, year, ids, start)
        return stats, balance


class AppComponents(NamedTuple):
    store: RecordStore
    finance_flow: FinanceFlow
    goal_ledger: GoalLedger
    installment_tracker: InstallmentTracker
    home_planner: HomePlanner
    property_catalog: PropertyCatalog
    travel_planner: TravelPlanner
    user_service: UserService
    audit_logger: AuditLogger


def create_app_components(
    use_storage: bool = True,
    store: Optional[RecordStore] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to use the configured storage backend.
                    Set to False to run on an in-memory store.
        store: Explicit store to use (overrides the configuration).
    """
    settings = get_settings().app

    if store is None:
        store = InMemoryRecordStore()
        if use_storage and settings.storage_backend == "google_sheets":
            try:
                client = GoogleSheetsClient()
                client.connect()
                store = GoogleSheetsRecordStore(client)
            except Exception as e:
                # Storage not configured - continue in memory
                logger.warning("storage_not_configured", error=str(e))

    audit_logger = AuditLogger(store)
    goal_ledger = GoalLedger(store, audit_logger=audit_logger)

    return AppComponents(
        store=store,
        finance_flow=FinanceFlow(store, audit_logger=audit_logger, settings=settings),
        goal_ledger=goal_ledger,
        installment_tracker=InstallmentTracker(store, audit_logger=audit_logger),
        home_planner=HomePlanner(store, audit_logger=audit_logger),
        property_catalog=PropertyCatalog(store, audit_logger=audit_logger),
        travel_planner=TravelPlanner(store, goal_ledger=goal_ledger, audit_logger=audit_logger),
        user_service=UserService(store, settings=settings, audit_logger=audit_logger),
        audit_logger=audit_logger,
    )
