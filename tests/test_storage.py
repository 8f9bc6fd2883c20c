"""Tests for the in-memory record store and the audit logger on top of it."""

import asyncio
import pytest
from decimal import Decimal

from duogesto.audit import AuditLogger
from duogesto.models.audit import AuditEventBuilder
from duogesto.services.storage import (
    Collection,
    InMemoryRecordStore,
    NotFoundError,
    RecordStore,
    StorageError,
)


class TestInMemoryRecordStore:

    def test_create_and_get(self, store):
        record_id = asyncio.run(store.create(Collection.INCOMES, {"description": "Salary"}))
        doc = asyncio.run(store.get(Collection.INCOMES, record_id))
        assert doc == {"id": record_id, "description": "Salary"}

    def test_create_ignores_given_id(self, store):
        record_id = asyncio.run(store.create("incomes", {"id": "mine", "a": 1}))
        assert record_id != "mine"

    def test_get_missing(self, store):
        assert asyncio.run(store.get(Collection.INCOMES, "missing")) is None

    def test_collections_are_separate(self, store):
        asyncio.run(store.create(Collection.INCOMES, {"a": 1}))
        assert asyncio.run(store.list_records(Collection.EXPENSES)) == []

    def test_string_and_enum_names_are_the_same_collection(self, store):
        asyncio.run(store.create("duo_banks", {"title": "x"}))
        assert len(asyncio.run(store.list_records(Collection.GOALS))) == 1

    def test_seeded_documents_keep_their_ids(self):
        store = InMemoryRecordStore({"users": [{"id": "u1", "username": "ana"}]})
        assert asyncio.run(store.get(Collection.USERS, "u1"))["username"] == "ana"

    def test_update_merges_fields(self, store):
        record_id = asyncio.run(store.create(Collection.EXPENSES, {"a": 1, "b": 2}))
        asyncio.run(store.update(Collection.EXPENSES, record_id, {"b": 3}))
        assert asyncio.run(store.get(Collection.EXPENSES, record_id)) == {
            "id": record_id, "a": 1, "b": 3,
        }

    def test_update_missing_raises(self, store):
        with pytest.raises(NotFoundError) as excinfo:
            asyncio.run(store.update(Collection.EXPENSES, "missing", {"a": 1}))
        assert excinfo.value.collection == "expenses"
        assert excinfo.value.record_id == "missing"

    def test_delete(self, store):
        record_id = asyncio.run(store.create(Collection.EXPENSES, {"a": 1}))
        asyncio.run(store.delete(Collection.EXPENSES, record_id))
        assert asyncio.run(store.get(Collection.EXPENSES, record_id)) is None

    def test_delete_missing_raises(self, store):
        with pytest.raises(NotFoundError):
            asyncio.run(store.delete(Collection.EXPENSES, "missing"))

    def test_not_found_is_a_storage_error(self):
        assert issubclass(NotFoundError, StorageError)

    def test_returned_documents_are_copies(self, store):
        record_id = asyncio.run(store.create(Collection.EXPENSES, {"payments": []}))
        doc = asyncio.run(store.get(Collection.EXPENSES, record_id))
        doc["payments"].append({"installment_number": 1})
        assert asyncio.run(store.get(Collection.EXPENSES, record_id))["payments"] == []

    def test_increment(self, store):
        record_id = asyncio.run(store.create(Collection.GOALS, {"current_amount": "10"}))
        result = asyncio.run(store.increment(Collection.GOALS, record_id, "current_amount", Decimal("2.5")))
        assert result == Decimal("12.5")
        doc = asyncio.run(store.get(Collection.GOALS, record_id))
        assert Decimal(doc["current_amount"]) == Decimal("12.5")

    def test_increment_missing_field_starts_at_zero(self, store):
        record_id = asyncio.run(store.create(Collection.GOALS, {}))
        result = asyncio.run(store.increment(Collection.GOALS, record_id, "current_amount", Decimal("-5")))
        assert result == Decimal("-5")

    def test_increment_missing_record(self, store):
        with pytest.raises(NotFoundError):
            asyncio.run(store.increment(Collection.GOALS, "missing", "x", Decimal("1")))

    def test_concurrent_increments_are_not_lost(self, store):
        record_id = asyncio.run(store.create(Collection.GOALS, {"current_amount": "0"}))

        async def many():
            await asyncio.gather(*[
                store.increment(Collection.GOALS, record_id, "current_amount", Decimal("1"))
                for _ in range(50)
            ])

        asyncio.run(many())
        doc = asyncio.run(store.get(Collection.GOALS, record_id))
        assert Decimal(doc["current_amount"]) == Decimal("50")

    def test_is_a_record_store(self, store):
        assert isinstance(store, RecordStore)


class TestSubscriptions:

    def test_subscribe_gets_current_list_immediately(self, store):
        asyncio.run(store.create(Collection.INCOMES, {"a": 1}))
        snapshots = []
        asyncio.run(store.subscribe(Collection.INCOMES, snapshots.append))
        assert len(snapshots) == 1
        assert len(snapshots[0]) == 1

    def test_subscribe_gets_every_write(self, store):
        snapshots = []
        asyncio.run(store.subscribe(Collection.INCOMES, snapshots.append))
        record_id = asyncio.run(store.create(Collection.INCOMES, {"a": 1}))
        asyncio.run(store.update(Collection.INCOMES, record_id, {"a": 2}))
        asyncio.run(store.delete(Collection.INCOMES, record_id))
        assert [len(s) for s in snapshots] == [0, 1, 1, 0]
        assert snapshots[2][0]["a"] == 2

    def test_other_collections_do_not_notify(self, store):
        snapshots = []
        asyncio.run(store.subscribe(Collection.INCOMES, snapshots.append))
        asyncio.run(store.create(Collection.EXPENSES, {"a": 1}))
        assert len(snapshots) == 1

    def test_unsubscribe(self, store):
        snapshots = []
        subscription = asyncio.run(store.subscribe(Collection.INCOMES, snapshots.append))
        assert subscription.active
        subscription.unsubscribe()
        assert not subscription.active
        asyncio.run(store.create(Collection.INCOMES, {"a": 1}))
        assert len(snapshots) == 1

    def test_failing_subscriber_does_not_break_writes(self, store):
        calls = []

        def broken(snapshot):
            calls.append(snapshot)
            if len(calls) > 1:
                raise RuntimeError("view crashed")

        asyncio.run(store.subscribe(Collection.INCOMES, broken))
        record_id = asyncio.run(store.create(Collection.INCOMES, {"a": 1}))
        assert asyncio.run(store.get(Collection.INCOMES, record_id)) is not None


class FailingStore(InMemoryRecordStore):
    async def create(self, collection, fields):
        raise StorageError("disk full")


class TestAuditLogger:

    def test_log_persists_event(self, store, audit_logger):
        event = AuditEventBuilder.login("ana", success=True)
        assert asyncio.run(audit_logger.log(event)) is True
        docs = asyncio.run(store.list_records(Collection.AUDIT_LOG))
        assert docs[0]["event_id"] == event.event_id
        assert docs[0]["event_type"] == "user_logged_in"

    def test_log_without_storage(self):
        logger = AuditLogger()
        assert asyncio.run(logger.log(AuditEventBuilder.login("ana", True))) is True

    def test_storage_failure_does_not_raise(self):
        logger = AuditLogger(FailingStore())
        assert asyncio.run(logger.log(AuditEventBuilder.login("ana", True))) is False
