"""
In-memory record store.

Used by the tests and as the default backend when no Google Sheets
spreadsheet is configured. Writes are applied under a lock, so
`increment` is atomic even when two household members act at once.
"""

import copy
import threading
from collections import defaultdict
from decimal import Decimal
from typing import Optional
from uuid import uuid4

import structlog

from duogesto.models.normalize import parse_decimal
from duogesto.services.storage.interface import (
    CollectionName,
    NotFoundError,
    RecordStore,
    SnapshotCallback,
    Subscription,
    collection_name,
)


logger = structlog.get_logger(__name__)


class InMemoryRecordStore(RecordStore):
    """Dict-backed implementation of RecordStore."""

    def __init__(self, initial: Optional[dict[str, list[dict]]] = None):
        self._lock = threading.RLock()
        self._documents: dict[str, dict[str, dict]] = defaultdict(dict)
        self._listeners: dict[str, list[SnapshotCallback]] = defaultdict(list)

        for name, documents in (initial or {}).items():
            for doc in documents:
                doc = copy.deepcopy(doc)
                record_id = str(doc.pop("id", None) or uuid4().hex)
                self._documents[collection_name(name)][record_id] = doc

    def _snapshot(self, name: str) -> list[dict]:
        with self._lock:
            return [
                {"id": record_id, **copy.deepcopy(doc)}
                for record_id, doc in self._documents[name].items()
            ]

    def _notify(self, name: str) -> None:
        listeners = list(self._listeners[name])
        if not listeners:
            return
        snapshot = self._snapshot(name)
        for callback in listeners:
            try:
                callback(copy.deepcopy(snapshot))
            except Exception:
                # A broken view must not undo a write that already happened.
                logger.exception("subscriber_failed", collection=name)

    async def create(self, collection: CollectionName, fields: dict) -> str:
        name = collection_name(collection)
        record_id = uuid4().hex
        doc = copy.deepcopy(fields)
        doc.pop("id", None)
        with self._lock:
            self._documents[name][record_id] = doc
        self._notify(name)
        return record_id

    async def get(self, collection: CollectionName, record_id: str) -> Optional[dict]:
        name = collection_name(collection)
        with self._lock:
            doc = self._documents[name].get(record_id)
            if doc is None:
                return None
            return {"id": record_id, **copy.deepcopy(doc)}

    async def list_records(self, collection: CollectionName) -> list[dict]:
        return self._snapshot(collection_name(collection))

    async def update(
        self,
        collection: CollectionName,
        record_id: str,
        fields: dict,
    ) -> None:
        name = collection_name(collection)
        with self._lock:
            doc = self._documents[name].get(record_id)
            if doc is None:
                raise NotFoundError(name, record_id)
            changes = copy.deepcopy(fields)
            changes.pop("id", None)
            doc.update(changes)
        self._notify(name)

    async def delete(self, collection: CollectionName, record_id: str) -> None:
        name = collection_name(collection)
        with self._lock:
            if record_id not in self._documents[name]:
                raise NotFoundError(name, record_id)
            del self._documents[name][record_id]
        self._notify(name)

    async def increment(
        self,
        collection: CollectionName,
        record_id: str,
        field: str,
        delta: Decimal,
    ) -> Decimal:
        name = collection_name(collection)
        with self._lock:
            doc = self._documents[name].get(record_id)
            if doc is None:
                raise NotFoundError(name, record_id)
            current = parse_decimal(doc.get(field)) or Decimal("0")
            new_value = current + delta
            doc[field] = str(new_value)
        self._notify(name)
        return new_value

    async def subscribe(
        self,
        collection: CollectionName,
        callback: SnapshotCallback,
    ) -> Subscription:
        name = collection_name(collection)
        with self._lock:
            self._listeners[name].append(callback)

        def release() -> None:
            with self._lock:
                if callback in self._listeners[name]:
                    self._listeners[name].remove(callback)

        callback(self._snapshot(name))
        return Subscription(release)
