"""
Storage Services Package

Provides the abstract record store interface and its implementations:
in-memory (tests, default) and Google Sheets.
"""

from duogesto.services.storage.interface import (
    Collection,
    ConnectionError,
    NotFoundError,
    RecordStore,
    StorageError,
    Subscription,
    collection_name,
)
from duogesto.services.storage.memory import InMemoryRecordStore
from duogesto.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsRecordStore,
)

__all__ = [
    # Interface
    "Collection",
    "RecordStore",
    "Subscription",
    "collection_name",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    # Implementations
    "InMemoryRecordStore",
    "GoogleSheetsClient",
    "GoogleSheetsRecordStore",
]
