"""
Goal Ledger

Keeps a savings goal's cached balance in lock-step with its append-only
movement history (the "bank_history" collection).

    goal.current_amount == goal.opening_amount + sum(entry.amount)

opening_amount is what was typed in when the goal was created; it has no
ledger entry. Every operation below appends or removes exactly one entry
and moves the cached balance by the same signed amount, through the
store's atomic increment. If the cache ever drifts (a store without an
atomic increment, an edit made outside this class) reconcile() recomputes
it from the ledger.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Optional

from duogesto.audit import AuditLogger
from duogesto.models.audit import AuditEventType
from duogesto.models.normalize import (
    goal_from_document,
    ledger_entry_from_document,
    to_document,
)
from duogesto.models.records import (
    BankGoal,
    Expense,
    ExpenseRecurrence,
    GoalLedgerEntry,
    InstallmentPayment,
    PriceType,
)
from duogesto.services.storage import Collection, NotFoundError, RecordStore, StorageError


DEPOSIT_REASON = "Depósito"
TRANSFER_REASON = "Transferência Dashboard"
TRANSFER_CATEGORY = "Investimentos"
TRAVEL_INSTITUTION = "Duo Viagens"
TRAVEL_ACCOUNT = "Fundo de Reserva"


class InsufficientFundsError(Exception):
    """A withdrawal asked for more than the goal holds."""

    def __init__(self, goal_id: str, requested: Decimal, available: Decimal):
        self.goal_id = goal_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient funds in goal {goal_id}: "
            f"requested {requested}, available {available}"
        )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _require_positive(amount: Decimal) -> Decimal:
    amount = Decimal(amount)
    if not amount.is_finite() or amount <= 0:
        raise ValueError(f"Movement amount must be greater than zero, got {amount}")
    return amount


def travel_goal_amount(price: Decimal, price_type: PriceType) -> Decimal:
    """A per-person price covers both members of the couple."""
    if price_type == PriceType.PER_PERSON:
        return price * 2
    return price


class GoalLedger:
    """
    Deposits, withdrawals, transfers and reversals on savings goals.

    Withdrawals are checked against the cached balance before any write.
    The check and the write are not atomic: two members withdrawing at
    the same instant can both pass it.
    """

    def __init__(
        self,
        store: RecordStore,
        audit_logger: Optional[AuditLogger] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._store = store
        self._audit_logger = audit_logger
        self._clock = clock

    # -------------------------------------------------------------------------
    # Goals
    # -------------------------------------------------------------------------

    async def get_goal(self, goal_id: str) -> BankGoal:
        doc = await self._store.get(Collection.GOALS, goal_id)
        if doc is None:
            raise NotFoundError(Collection.GOALS, goal_id)
        return goal_from_document(doc)

    async def _writable_goal(self, goal_id: str) -> BankGoal:
        """
        Load a goal about to be incremented.

        Legacy documents keep the balance under currentAmount; it is copied
        to current_amount first so the increment starts from it.
        """
        doc = await self._store.get(Collection.GOALS, goal_id)
        if doc is None:
            raise NotFoundError(Collection.GOALS, goal_id)
        goal = goal_from_document(doc)
        if "current_amount" not in doc:
            await self._store.update(Collection.GOALS, goal_id, to_document(goal))
        return goal

    async def list_goals(self) -> list[BankGoal]:
        docs = await self._store.list_records(Collection.GOALS)
        return [goal_from_document(doc) for doc in docs]

    async def create_goal(
        self,
        title: str,
        goal_amount: Decimal = Decimal("0"),
        current_amount: Decimal = Decimal("0"),
        monthly_target: Decimal = Decimal("0"),
        institution_name: Optional[str] = None,
        account_ref: Optional[str] = None,
        owner_name: Optional[str] = None,
    ) -> BankGoal:
        """Create a goal. current_amount seeds the balance without a ledger entry."""
        now = self._clock()
        goal = BankGoal(
            title=title,
            institution_name=institution_name,
            account_ref=account_ref,
            owner_name=owner_name,
            current_amount=current_amount,
            opening_amount=current_amount,
            goal_amount=goal_amount,
            monthly_target=monthly_target,
            created_at=now,
            updated_at=now,
        )
        goal.id = await self._store.create(Collection.GOALS, to_document(goal))

        if self._audit_logger:
            await self._audit_logger.log_record_changed(
                AuditEventType.GOAL_CREATED,
                Collection.GOALS.value,
                goal.id,
                title,
                actor=owner_name,
            )
        return goal

    async def create_travel_goal(
        self,
        location: str,
        price: Decimal,
        price_type: PriceType = PriceType.TOTAL,
        owner_name: Optional[str] = None,
    ) -> BankGoal:
        """Open a savings goal for a planned trip."""
        return await self.create_goal(
            title=f"Viagem: {location}",
            goal_amount=travel_goal_amount(Decimal(price), price_type),
            institution_name=TRAVEL_INSTITUTION,
            account_ref=TRAVEL_ACCOUNT,
            owner_name=owner_name,
        )

    async def update_goal(self, goal_id: str, **fields) -> BankGoal:
        """
        Edit a goal.

        Editing current_amount by hand shifts the opening amount by the
        same difference, so the ledger invariant still holds.
        """
        goal = await self.get_goal(goal_id)
        changes = dict(fields)
        changes.pop("id", None)
        changes.pop("opening_amount", None)

        if "current_amount" in changes:
            new_current = Decimal(changes["current_amount"])
            changes["opening_amount"] = goal.opening_amount + (new_current - goal.current_amount)

        updated = goal.model_copy(update={**changes, "updated_at": self._clock()})
        # Round-trip through validation so bad field values fail here.
        updated = BankGoal.model_validate(updated.model_dump())
        await self._store.update(Collection.GOALS, goal_id, to_document(updated))

        if self._audit_logger:
            await self._audit_logger.log_record_changed(
                AuditEventType.GOAL_UPDATED,
                Collection.GOALS.value,
                goal_id,
                updated.title,
            )
        return updated

    async def delete_goal(self, goal_id: str) -> None:
        """Delete a goal. Its ledger entries are kept as history."""
        await self._store.delete(Collection.GOALS, goal_id)
        if self._audit_logger:
            await self._audit_logger.log_record_changed(
                AuditEventType.GOAL_DELETED,
                Collection.GOALS.value,
                goal_id,
                goal_id,
            )

    async def history(self, goal_id: str) -> list[GoalLedgerEntry]:
        """Ledger entries of a goal, newest first."""
        docs = await self._store.list_records(Collection.GOAL_HISTORY)
        entries = [
            ledger_entry_from_document(doc)
            for doc in docs
            if (doc.get("goal_id") or doc.get("bankId")) == goal_id
        ]
        oldest = datetime.min.replace(tzinfo=timezone.utc)
        entries.sort(key=lambda e: _aware(e.moved_at) or oldest, reverse=True)
        return entries

    # -------------------------------------------------------------------------
    # Movements
    # -------------------------------------------------------------------------

    async def _append(
        self,
        goal_id: str,
        amount: Decimal,
        by_whom: Optional[str],
        reason: Optional[str],
    ) -> GoalLedgerEntry:
        entry = GoalLedgerEntry(
            goal_id=goal_id,
            amount=amount,
            by_whom=by_whom,
            reason=reason,
            moved_at=self._clock(),
        )
        entry.id = await self._store.create(Collection.GOAL_HISTORY, to_document(entry))
        return entry

    async def deposit(
        self,
        goal_id: str,
        amount: Decimal,
        by_whom: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> GoalLedgerEntry:
        """Put money into a goal."""
        amount = _require_positive(amount)
        await self._writable_goal(goal_id)

        entry = await self._append(goal_id, amount, by_whom, reason or DEPOSIT_REASON)
        balance = await self._store.increment(
            Collection.GOALS, goal_id, "current_amount", amount
        )

        if self._audit_logger:
            await self._audit_logger.log_goal_movement(
                AuditEventType.GOAL_DEPOSIT, goal_id, amount, balance,
                actor=by_whom, reason=entry.reason,
            )
        return entry

    async def withdraw(
        self,
        goal_id: str,
        amount: Decimal,
        by_whom: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> GoalLedgerEntry:
        """
        Take money out of a goal.

        Raises:
            InsufficientFundsError: amount is more than the current balance;
                nothing is written in that case.
        """
        amount = _require_positive(amount)
        goal = await self._writable_goal(goal_id)

        if amount > goal.current_amount:
            if self._audit_logger:
                await self._audit_logger.log_withdrawal_rejected(
                    goal_id, amount, goal.current_amount, actor=by_whom
                )
            raise InsufficientFundsError(goal_id, amount, goal.current_amount)

        entry = await self._append(goal_id, -amount, by_whom, reason)
        balance = await self._store.increment(
            Collection.GOALS, goal_id, "current_amount", -amount
        )

        if self._audit_logger:
            await self._audit_logger.log_goal_movement(
                AuditEventType.GOAL_WITHDRAWAL, goal_id, -amount, balance,
                actor=by_whom, reason=reason,
            )
        return entry

    async def transfer(
        self,
        goal_id: str,
        amount: Decimal,
        by_whom: Optional[str] = None,
    ) -> tuple[GoalLedgerEntry, Expense]:
        """
        Send money from the month's cash flow into a goal.

        Besides the deposit, a one-time expense already marked paid is
        recorded so the transfer shows up in the monthly cash flow.

        CRITICAL: The cached balance moves only after both records exist.
        If the ledger entry cannot be written, the expense is deleted again
        and the error is re-raised, so a failed transfer leaves nothing
        behind.
        """
        amount = _require_positive(amount)
        goal = await self._writable_goal(goal_id)
        now = self._clock()

        expense = Expense(
            description=f"Envio para Reserva: {goal.title}",
            amount=amount,
            category=TRANSFER_CATEGORY,
            recurrence=ExpenseRecurrence.ONE_TIME,
            start_date=now.date(),
            owner_name=by_whom,
            payments=[InstallmentPayment(installment_number=1, paid_at=now, by_whom=by_whom)],
            created_at=now,
        )
        expense.id = await self._store.create(Collection.EXPENSES, to_document(expense))

        try:
            entry = await self._append(goal_id, amount, by_whom, TRANSFER_REASON)
        except StorageError:
            await self._store.delete(Collection.EXPENSES, expense.id)
            raise

        balance = await self._store.increment(
            Collection.GOALS, goal_id, "current_amount", amount
        )

        if self._audit_logger:
            await self._audit_logger.log_goal_movement(
                AuditEventType.GOAL_TRANSFER, goal_id, amount, balance,
                actor=by_whom, reason=TRANSFER_REASON,
            )
        return entry, expense

    async def reverse(self, entry_id: str) -> GoalLedgerEntry:
        """
        Undo a movement: delete the entry and move the balance back.

        Raises:
            NotFoundError: the entry (or its goal) does not exist.
        """
        doc = await self._store.get(Collection.GOAL_HISTORY, entry_id)
        if doc is None:
            raise NotFoundError(Collection.GOAL_HISTORY, entry_id)
        entry = ledger_entry_from_document(doc)
        await self._writable_goal(entry.goal_id)

        await self._store.delete(Collection.GOAL_HISTORY, entry_id)
        balance = await self._store.increment(
            Collection.GOALS, entry.goal_id, "current_amount", -entry.amount
        )

        if self._audit_logger:
            await self._audit_logger.log_goal_movement(
                AuditEventType.GOAL_MOVEMENT_REVERSED, entry.goal_id, -entry.amount, balance,
                actor=entry.by_whom, reason=entry.reason,
            )
        return entry

    async def ledger_balance(self, goal_id: str) -> Decimal:
        """Balance recomputed from the opening amount and the ledger."""
        goal = await self.get_goal(goal_id)
        entries = await self.history(goal_id)
        return goal.opening_amount + sum((e.amount for e in entries), Decimal("0"))

    async def reconcile(self, goal_id: str) -> BankGoal:
        """Overwrite the cached balance with the one recomputed from the ledger."""
        goal = await self.get_goal(goal_id)
        recomputed = await self.ledger_balance(goal_id)

        if recomputed != goal.current_amount:
            await self._store.update(
                Collection.GOALS, goal_id, {"current_amount": str(recomputed)}
            )

        if self._audit_logger:
            await self._audit_logger.log_goal_reconciled(
                goal_id, goal.current_amount, recomputed
            )
        return goal.model_copy(update={"current_amount": recomputed})


def _aware(moment: Optional[datetime]) -> Optional[datetime]:
    if moment is None or moment.tzinfo is not None:
        return moment
    return moment.replace(tzinfo=timezone.utc)
