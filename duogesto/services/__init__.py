"""Services package."""

from duogesto.services.storage import (
    Collection,
    ConnectionError,
    GoogleSheetsClient,
    GoogleSheetsRecordStore,
    InMemoryRecordStore,
    NotFoundError,
    RecordStore,
    StorageError,
    Subscription,
)

__all__ = [
    # Storage services
    "Collection",
    "ConnectionError",
    "GoogleSheetsClient",
    "GoogleSheetsRecordStore",
    "InMemoryRecordStore",
    "NotFoundError",
    "RecordStore",
    "StorageError",
    "Subscription",
]
