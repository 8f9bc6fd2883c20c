"""
Installment Tracker

Paid/unpaid state of the numbered installments of an expense.

Marking an installment is a toggle: if the number is already in the
expense's payments it is removed, otherwise it is appended. Installments
can be marked in any order.

IMPORTANT: The `completed` flag some old documents carry is NOT updated
here, even when the last installment gets paid. Use progress() to ask
whether everything has been paid.
"""

from datetime import datetime, timezone
from typing import Callable, Optional, Sequence

from duogesto.audit import AuditLogger
from duogesto.models.normalize import expense_from_document
from duogesto.models.records import Expense, ExpenseRecurrence, InstallmentPayment
from duogesto.services.storage import Collection, NotFoundError, RecordStore


def toggle(
    payments: Sequence[InstallmentPayment],
    installment_number: int,
    by_whom: Optional[str] = None,
    paid_at: Optional[datetime] = None,
) -> list[InstallmentPayment]:
    """Return a new payments list with the installment flipped."""
    if installment_number < 1:
        raise ValueError(f"Installment number must be 1 or more, got {installment_number}")

    remaining = [p for p in payments if p.installment_number != installment_number]
    if len(remaining) != len(payments):
        return remaining

    remaining.append(InstallmentPayment(
        installment_number=installment_number,
        paid_at=paid_at or datetime.now(timezone.utc),
        by_whom=by_whom,
    ))
    return remaining


def progress(expense: Expense) -> tuple[int, int]:
    """(paid, total) installments of an expense."""
    total = expense.installment_count
    if expense.recurrence != ExpenseRecurrence.INSTALLMENT:
        total = 1
    paid = sum(1 for p in expense.payments if p.installment_number <= total)
    return paid, total


class InstallmentTracker:
    """Marks installments of stored expenses as paid or unpaid."""

    def __init__(
        self,
        store: RecordStore,
        audit_logger: Optional[AuditLogger] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._store = store
        self._audit_logger = audit_logger
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def _load(self, expense_id: str) -> Expense:
        doc = await self._store.get(Collection.EXPENSES, expense_id)
        if doc is None:
            raise NotFoundError(Collection.EXPENSES, expense_id)
        return expense_from_document(doc)

    async def toggle_payment(
        self,
        expense_id: str,
        installment_number: int,
        by_whom: Optional[str] = None,
    ) -> Expense:
        """
        Flip one installment and persist the payments list.

        Returns:
            The expense with its updated payments.

        Raises:
            NotFoundError: no such expense.
            ValueError: installment_number below 1.
        """
        expense = await self._load(expense_id)
        payments = toggle(expense.payments, installment_number, by_whom, self._clock())

        await self._store.update(
            Collection.EXPENSES,
            expense_id,
            {"payments": [p.model_dump(mode="json") for p in payments]},
        )

        paid = any(p.installment_number == installment_number for p in payments)
        if self._audit_logger:
            await self._audit_logger.log_installment_toggled(
                expense_id, installment_number, paid, actor=by_whom
            )
        return expense.model_copy(update={"payments": payments})

    async def paid_installments(self, expense_id: str) -> list[int]:
        """Installment numbers marked paid, ascending."""
        expense = await self._load(expense_id)
        return sorted(p.installment_number for p in expense.payments)
