"""
Abstract Record Store Interface

DESIGN DECISION: The record store is an injected dependency, not a
module-level singleton. This allows us to:
1. Swap Google Sheets for another document database later
2. Use in-memory storage for testing
3. Keep business logic decoupled from storage implementation

The interface is intentionally simple - named collections of plain
documents ({id, ...fields}) with create/read/update/delete, an atomic
increment and live subscriptions. No cross-document transactions: the
couple's two members share everything with last-write-wins semantics.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from enum import Enum
from typing import Callable, Optional, Union


class Collection(str, Enum):
    """Collections used by the app."""
    INCOMES = "incomes"
    EXPENSES = "expenses"
    FINANCES = "finances"
    GOALS = "duo_banks"
    GOAL_HISTORY = "bank_history"
    CATEGORIES = "categories"
    USERS = "users"
    ROOMS = "rooms"
    HOME_ITEMS = "home_items"
    PROPERTIES = "properties"
    TRAVELS = "travels"
    AUDIT_LOG = "audit_log"


CollectionName = Union[Collection, str]

# Receives the full, current list of documents of one collection.
SnapshotCallback = Callable[[list[dict]], None]


def collection_name(collection: CollectionName) -> str:
    if isinstance(collection, Collection):
        return collection.value
    return str(collection)


class Subscription:
    """Handle returned by RecordStore.subscribe."""

    def __init__(self, release: Callable[[], None]):
        self._release = release
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self) -> None:
        """Stop receiving snapshots. Safe to call more than once."""
        if self._active:
            self._active = False
            self._release()


class RecordStore(ABC):
    """
    Abstract interface for record storage operations.

    Any storage implementation must implement these methods.
    Documents are plain dicts with JSON-friendly values; amounts and dates
    travel as strings and are parsed by duogesto.models.normalize.
    """

    @abstractmethod
    async def create(self, collection: CollectionName, fields: dict) -> str:
        """
        Create a new document.

        Returns:
            The new document id

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def get(self, collection: CollectionName, record_id: str) -> Optional[dict]:
        """
        Retrieve a document by id.

        Returns:
            The document (including its "id" key) if found, None otherwise
        """
        pass

    @abstractmethod
    async def list_records(self, collection: CollectionName) -> list[dict]:
        """All documents of a collection, in insertion order."""
        pass

    @abstractmethod
    async def update(
        self,
        collection: CollectionName,
        record_id: str,
        fields: dict,
    ) -> None:
        """
        Merge fields into an existing document.

        Raises:
            NotFoundError: If the document doesn't exist
        """
        pass

    @abstractmethod
    async def delete(self, collection: CollectionName, record_id: str) -> None:
        """
        Delete a document by id.

        Raises:
            NotFoundError: If the document doesn't exist
        """
        pass

    @abstractmethod
    async def increment(
        self,
        collection: CollectionName,
        record_id: str,
        field: str,
        delta: Decimal,
    ) -> Decimal:
        """
        Add delta to a numeric field and return the new value.

        A missing or non-numeric field counts as zero.

        Raises:
            NotFoundError: If the document doesn't exist
        """
        pass

    @abstractmethod
    async def subscribe(
        self,
        collection: CollectionName,
        callback: SnapshotCallback,
    ) -> Subscription:
        """
        Listen to a collection.

        The callback is called right away with the current documents and
        again after every write to the collection.
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Record not found in storage."""

    def __init__(self, collection: CollectionName, record_id: str):
        self.collection = collection_name(collection)
        self.record_id = record_id
        super().__init__(f"{self.collection} record not found: {record_id}")


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
