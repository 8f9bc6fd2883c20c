"""Tests for the installment tracker."""

import asyncio
import pytest
from datetime import datetime, timezone
from decimal import Decimal

from duogesto.installments import InstallmentTracker, progress, toggle
from duogesto.models.normalize import to_document
from duogesto.models.records import Expense, ExpenseRecurrence, InstallmentPayment
from duogesto.services.storage import Collection, NotFoundError


PAID_AT = datetime(2024, 3, 1, tzinfo=timezone.utc)


def installment_expense(**kw) -> Expense:
    return Expense(
        description="Fridge",
        amount=Decimal("1200"),
        recurrence=ExpenseRecurrence.INSTALLMENT,
        installment_count=12,
        **kw,
    )


@pytest.fixture
def tracker(store, audit_logger):
    return InstallmentTracker(store, audit_logger, clock=lambda: PAID_AT)


@pytest.fixture
def expense_id(store):
    return asyncio.run(store.create(Collection.EXPENSES, to_document(installment_expense())))


class TestToggle:

    def test_toggle_adds_payment(self):
        payments = toggle([], 3, by_whom="Ana", paid_at=PAID_AT)
        assert len(payments) == 1
        assert payments[0].installment_number == 3
        assert payments[0].by_whom == "Ana"
        assert payments[0].paid_at == PAID_AT

    def test_toggle_twice_is_identity(self):
        original = [InstallmentPayment(installment_number=1)]
        once = toggle(original, 3)
        twice = toggle(once, 3)
        assert twice == original

    def test_toggle_does_not_mutate_input(self):
        original = [InstallmentPayment(installment_number=1)]
        toggle(original, 1)
        assert len(original) == 1

    def test_out_of_order(self):
        payments = toggle(toggle([], 5), 2)
        assert sorted(p.installment_number for p in payments) == [2, 5]

    def test_invalid_number(self):
        with pytest.raises(ValueError):
            toggle([], 0)


class TestProgress:

    def test_progress_counts_paid_installments(self):
        expense = installment_expense(payments=[
            InstallmentPayment(installment_number=1),
            InstallmentPayment(installment_number=2),
        ])
        assert progress(expense) == (2, 12)

    def test_non_installment_has_one_payment(self):
        expense = Expense(amount=Decimal("50"))
        assert progress(expense) == (0, 1)


class TestInstallmentTracker:

    def test_toggle_payment_persists(self, tracker, store, expense_id):
        expense = asyncio.run(tracker.toggle_payment(expense_id, 3, by_whom="Bia"))
        assert expense.is_paid(3)
        assert asyncio.run(tracker.paid_installments(expense_id)) == [3]

        doc = asyncio.run(store.get(Collection.EXPENSES, expense_id))
        assert doc["payments"][0]["installment_number"] == 3
        assert doc["payments"][0]["by_whom"] == "Bia"

    def test_toggle_payment_twice_restores_state(self, tracker, expense_id):
        asyncio.run(tracker.toggle_payment(expense_id, 1))
        asyncio.run(tracker.toggle_payment(expense_id, 3))
        asyncio.run(tracker.toggle_payment(expense_id, 3))
        assert asyncio.run(tracker.paid_installments(expense_id)) == [1]

    def test_paying_everything_does_not_set_completed(self, tracker, store, expense_id):
        for n in range(1, 13):
            asyncio.run(tracker.toggle_payment(expense_id, n))
        doc = asyncio.run(store.get(Collection.EXPENSES, expense_id))
        assert doc.get("completed") is None

    def test_toggle_is_audited(self, tracker, store, expense_id):
        asyncio.run(tracker.toggle_payment(expense_id, 2))
        asyncio.run(tracker.toggle_payment(expense_id, 2))
        events = [
            doc["event_type"]
            for doc in asyncio.run(store.list_records(Collection.AUDIT_LOG))
        ]
        assert events == ["installment_paid", "installment_unpaid"]

    def test_missing_expense(self, tracker):
        with pytest.raises(NotFoundError):
            asyncio.run(tracker.toggle_payment("missing", 1))

    def test_invalid_number(self, tracker, expense_id):
        with pytest.raises(ValueError):
            asyncio.run(tracker.toggle_payment(expense_id, 0))
