"""Tests for the goal ledger."""

import asyncio
import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from duogesto.goals import (
    DEPOSIT_REASON,
    TRANSFER_CATEGORY,
    TRANSFER_REASON,
    GoalLedger,
    InsufficientFundsError,
    travel_goal_amount,
)
from duogesto.models.records import ExpenseRecurrence, PriceType
from duogesto.models.normalize import expense_from_document
from duogesto.services.storage import (
    Collection,
    InMemoryRecordStore,
    NotFoundError,
    StorageError,
)


class Clock:
    """Deterministic clock, one second per call."""

    def __init__(self):
        self._now = datetime(2024, 5, 10, 12, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self._now += timedelta(seconds=1)
        return self._now


@pytest.fixture
def ledger(store, audit_logger):
    return GoalLedger(store, audit_logger=audit_logger, clock=Clock())


def new_goal(ledger, current="0", goal="1000"):
    return asyncio.run(ledger.create_goal(
        "Emergency fund",
        goal_amount=Decimal(goal),
        current_amount=Decimal(current),
    ))


def balance(ledger, goal_id) -> Decimal:
    return asyncio.run(ledger.get_goal(goal_id)).current_amount


class TestGoals:

    def test_create_goal_seeds_balance_without_entry(self, ledger):
        goal = new_goal(ledger, current="250")
        assert goal.id
        assert balance(ledger, goal.id) == Decimal("250")
        assert asyncio.run(ledger.history(goal.id)) == []
        assert asyncio.run(ledger.get_goal(goal.id)).opening_amount == Decimal("250")

    def test_get_missing_goal(self, ledger):
        with pytest.raises(NotFoundError):
            asyncio.run(ledger.get_goal("missing"))

    def test_travel_goal(self, ledger):
        goal = asyncio.run(ledger.create_travel_goal(
            "Lisboa", Decimal("4000"), PriceType.PER_PERSON
        ))
        assert goal.title == "Viagem: Lisboa"
        assert goal.institution_name == "Duo Viagens"
        assert goal.account_ref == "Fundo de Reserva"
        assert goal.goal_amount == Decimal("8000")
        assert goal.current_amount == Decimal("0")

    def test_travel_amount_total_price(self):
        assert travel_goal_amount(Decimal("4000"), PriceType.TOTAL) == Decimal("4000")

    def test_update_goal_keeps_ledger_invariant(self, ledger):
        goal = new_goal(ledger, current="100")
        asyncio.run(ledger.deposit(goal.id, Decimal("50")))
        updated = asyncio.run(ledger.update_goal(goal.id, current_amount=Decimal("300"), title="Reserve"))
        assert updated.title == "Reserve"
        assert updated.current_amount == Decimal("300")
        assert asyncio.run(ledger.ledger_balance(goal.id)) == Decimal("300")

    def test_delete_goal(self, ledger):
        goal = new_goal(ledger)
        asyncio.run(ledger.delete_goal(goal.id))
        assert asyncio.run(ledger.list_goals()) == []


class TestMovements:

    def test_deposit(self, ledger):
        goal = new_goal(ledger)
        entry = asyncio.run(ledger.deposit(goal.id, Decimal("100"), by_whom="Ana"))
        assert entry.amount == Decimal("100")
        assert entry.reason == DEPOSIT_REASON
        assert entry.by_whom == "Ana"
        assert balance(ledger, goal.id) == Decimal("100")

    def test_deposit_must_be_positive(self, ledger):
        goal = new_goal(ledger)
        with pytest.raises(ValueError):
            asyncio.run(ledger.deposit(goal.id, Decimal("0")))

    def test_withdraw(self, ledger):
        goal = new_goal(ledger, current="100")
        entry = asyncio.run(ledger.withdraw(goal.id, Decimal("30"), reason="Pharmacy"))
        assert entry.amount == Decimal("-30")
        assert balance(ledger, goal.id) == Decimal("70")

    def test_withdraw_whole_balance(self, ledger):
        goal = new_goal(ledger, current="100")
        asyncio.run(ledger.withdraw(goal.id, Decimal("100")))
        assert balance(ledger, goal.id) == Decimal("0")

    def test_withdrawal_guard(self, ledger, store):
        goal = new_goal(ledger, current="50")
        with pytest.raises(InsufficientFundsError) as excinfo:
            asyncio.run(ledger.withdraw(goal.id, Decimal("80")))
        assert excinfo.value.available == Decimal("50")
        assert excinfo.value.requested == Decimal("80")
        assert balance(ledger, goal.id) == Decimal("50")
        assert asyncio.run(ledger.history(goal.id)) == []

        audit = asyncio.run(store.list_records(Collection.AUDIT_LOG))
        assert audit[-1]["event_type"] == "goal_withdrawal_rejected"

    def test_conservation_round_trip(self, ledger):
        goal = new_goal(ledger, current="200")
        deposit = asyncio.run(ledger.deposit(goal.id, Decimal("100")))
        asyncio.run(ledger.withdraw(goal.id, Decimal("30")))
        asyncio.run(ledger.reverse(deposit.id))
        assert balance(ledger, goal.id) == Decimal("170")

    def test_reverse_withdrawal_puts_money_back(self, ledger):
        goal = new_goal(ledger, current="100")
        entry = asyncio.run(ledger.withdraw(goal.id, Decimal("40")))
        asyncio.run(ledger.reverse(entry.id))
        assert balance(ledger, goal.id) == Decimal("100")
        assert asyncio.run(ledger.history(goal.id)) == []

    def test_reverse_missing_entry(self, ledger):
        with pytest.raises(NotFoundError):
            asyncio.run(ledger.reverse("missing"))

    def test_balance_equals_opening_plus_ledger(self, ledger):
        goal = new_goal(ledger, current="10")
        entries = [
            asyncio.run(ledger.deposit(goal.id, Decimal("100"))),
            asyncio.run(ledger.deposit(goal.id, Decimal("25.50"))),
            asyncio.run(ledger.withdraw(goal.id, Decimal("60"))),
        ]
        asyncio.run(ledger.reverse(entries[1].id))
        history = asyncio.run(ledger.history(goal.id))
        assert balance(ledger, goal.id) == Decimal("10") + sum(e.amount for e in history)
        assert balance(ledger, goal.id) == Decimal("50")

    def test_history_is_newest_first(self, ledger):
        goal = new_goal(ledger)
        first = asyncio.run(ledger.deposit(goal.id, Decimal("1")))
        second = asyncio.run(ledger.deposit(goal.id, Decimal("2")))
        history = asyncio.run(ledger.history(goal.id))
        assert [e.id for e in history] == [second.id, first.id]

    def test_history_only_for_the_goal(self, ledger):
        one = new_goal(ledger)
        two = new_goal(ledger)
        asyncio.run(ledger.deposit(one.id, Decimal("1")))
        assert asyncio.run(ledger.history(two.id)) == []


class TestTransfer:

    def test_transfer_deposits_and_records_expense(self, ledger, store):
        goal = new_goal(ledger)
        entry, expense = asyncio.run(ledger.transfer(goal.id, Decimal("500"), by_whom="Bia"))

        assert balance(ledger, goal.id) == Decimal("500")
        assert entry.reason == TRANSFER_REASON
        assert entry.amount == Decimal("500")

        stored = expense_from_document(
            asyncio.run(store.get(Collection.EXPENSES, expense.id))
        )
        assert stored.category == TRANSFER_CATEGORY
        assert stored.recurrence == ExpenseRecurrence.ONE_TIME
        assert stored.amount == Decimal("500")
        assert stored.description == "Envio para Reserva: Emergency fund"
        assert stored.is_paid(1)

    def test_reversing_a_transfer_keeps_the_expense(self, ledger, store):
        goal = new_goal(ledger)
        entry, expense = asyncio.run(ledger.transfer(goal.id, Decimal("500")))
        asyncio.run(ledger.reverse(entry.id))
        assert balance(ledger, goal.id) == Decimal("0")
        assert asyncio.run(store.get(Collection.EXPENSES, expense.id)) is not None

    @pytest.mark.parametrize("failing", [Collection.EXPENSES, Collection.GOAL_HISTORY])
    def test_failed_transfer_leaves_nothing_behind(self, failing):
        store = FailingCreateStore(failing)
        ledger = GoalLedger(store, clock=Clock())
        goal = new_goal(ledger)

        with pytest.raises(StorageError):
            asyncio.run(ledger.transfer(goal.id, Decimal("100")))

        assert balance(ledger, goal.id) == Decimal("0")
        assert asyncio.run(ledger.ledger_balance(goal.id)) == Decimal("0")
        assert asyncio.run(ledger.history(goal.id)) == []
        assert asyncio.run(store.list_records(Collection.EXPENSES)) == []


class FailingCreateStore(InMemoryRecordStore):
    """Refuses creates in one collection."""

    def __init__(self, failing):
        super().__init__()
        self._failing = failing

    async def create(self, collection, fields):
        if collection == self._failing:
            raise StorageError("write refused")
        return await super().create(collection, fields)


class TestReconcile:

    def test_reconcile_fixes_drift(self, ledger, store):
        goal = new_goal(ledger, current="100")
        asyncio.run(ledger.deposit(goal.id, Decimal("50")))
        # Someone edits the cached balance behind the ledger's back.
        asyncio.run(store.update(Collection.GOALS, goal.id, {"current_amount": "999"}))

        fixed = asyncio.run(ledger.reconcile(goal.id))
        assert fixed.current_amount == Decimal("150")
        assert balance(ledger, goal.id) == Decimal("150")

    def test_reconcile_without_drift(self, ledger):
        goal = new_goal(ledger, current="100")
        assert asyncio.run(ledger.reconcile(goal.id)).current_amount == Decimal("100")

    def test_legacy_goal_keeps_its_balance_on_first_movement(self):
        store = InMemoryRecordStore({
            "duo_banks": [{"id": "g1", "title": "Old", "currentAmount": 300}],
        })
        ledger = GoalLedger(store)
        asyncio.run(ledger.deposit("g1", Decimal("20")))
        assert balance(ledger, "g1") == Decimal("320")
