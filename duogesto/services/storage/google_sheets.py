"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is a hosted document store both household
members can open directly:
1. No database setup required
2. Built-in backup (Google's infrastructure)
3. Easy to export/migrate later

Each collection is one worksheet; each document is one row:

    id | updated_at | data_json

TRADEOFFS:
- No transactions and no atomic increment: `increment` is a
  read-modify-write, so two simultaneous goal movements can lose an
  update. Use GoalLedger.reconcile to repair a drifted balance.
- Subscriptions only see writes made through this store instance.
"""

import json
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional
from uuid import uuid4

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from duogesto.config import get_settings
from duogesto.models.normalize import parse_decimal
from duogesto.services.storage.interface import (
    CollectionName,
    ConnectionError,
    NotFoundError,
    RecordStore,
    SnapshotCallback,
    StorageError,
    Subscription,
    collection_name,
)


logger = structlog.get_logger(__name__)


RECORD_COLUMNS = [
    "id",
    "updated_at",
    "data_json",
]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._sheets: dict[str, gspread.Worksheet] = {}
        self._settings = get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_collection_sheet(self, name: str) -> gspread.Worksheet:
        """Get or create the worksheet holding a collection."""
        if name in self._sheets:
            return self._sheets[name]

        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(name)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=name,
                rows=self._settings.initial_rows,
                cols=len(RECORD_COLUMNS),
            )
            sheet.append_row(RECORD_COLUMNS)
        self._sheets[name] = sheet
        return sheet


class GoogleSheetsRecordStore(RecordStore):
    """
    Google Sheets implementation of the record store.

    Documents are JSON-serialized into the data_json column.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()
        self._listeners: dict[str, list[SnapshotCallback]] = {}

    @staticmethod
    def _row_to_document(row: list) -> Optional[dict]:
        if not row or not row[0]:
            return None
        try:
            data = json.loads(row[2]) if len(row) > 2 and row[2] else {}
        except json.JSONDecodeError:
            return None  # Skip malformed rows
        if not isinstance(data, dict):
            return None
        data.pop("id", None)
        return {"id": row[0], **data}

    @staticmethod
    def _document_to_row(record_id: str, fields: dict) -> list:
        data = {k: v for k, v in fields.items() if k != "id"}
        return [
            record_id,
            datetime.now(timezone.utc).isoformat(),
            json.dumps(data, default=str),
        ]

    def _find_row(self, name: str, record_id: str) -> tuple[int, dict]:
        """Return (sheet row number, document) or raise NotFoundError."""
        sheet = self._client.get_collection_sheet(name)
        all_rows = sheet.get_all_values()
        # Row 1 is the header
        for idx, row in enumerate(all_rows[1:], start=2):
            if row and row[0] == record_id:
                doc = self._row_to_document(row)
                if doc is None:
                    break
                return idx, doc
        raise NotFoundError(name, record_id)

    def _write_row(self, name: str, idx: int, record_id: str, doc: dict) -> None:
        sheet = self._client.get_collection_sheet(name)
        new_row = self._document_to_row(record_id, doc)
        for col_idx, value in enumerate(new_row, start=1):
            sheet.update_cell(idx, col_idx, value)

    def _read_all(self, name: str) -> list[dict]:
        sheet = self._client.get_collection_sheet(name)
        documents = []
        for row in sheet.get_all_values()[1:]:  # Skip header
            doc = self._row_to_document(row)
            if doc is not None:
                documents.append(doc)
        return documents

    def _notify(self, name: str) -> None:
        listeners = self._listeners.get(name)
        if not listeners:
            return
        # The write is already saved; listener problems are logged only.
        try:
            snapshot = self._read_all(name)
        except Exception:
            logger.exception("subscriber_snapshot_failed", collection=name)
            return
        for callback in list(listeners):
            try:
                callback([dict(doc) for doc in snapshot])
            except Exception:
                logger.exception("subscriber_failed", collection=name)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _append_document(self, name: str, record_id: str, fields: dict) -> None:
        """
        Append a document row.

        IMPORTANT: record_id is chosen by the caller, once. An attempt whose
        append landed but whose response was lost is detected on the retry
        by the id already being in the sheet.
        """
        sheet = self._client.get_collection_sheet(name)
        if any(row and row[0] == record_id for row in sheet.get_all_values()[1:]):
            return
        sheet.append_row(
            self._document_to_row(record_id, fields),
            value_input_option="RAW",
        )

    async def create(self, collection: CollectionName, fields: dict) -> str:
        name = collection_name(collection)
        record_id = uuid4().hex
        try:
            self._append_document(name, record_id, fields)
        except Exception as e:
            raise StorageError(f"Failed to create {name} record: {e}")
        self._notify(name)
        return record_id

    async def get(self, collection: CollectionName, record_id: str) -> Optional[dict]:
        name = collection_name(collection)
        try:
            _, doc = self._find_row(name, record_id)
            return doc
        except NotFoundError:
            return None
        except Exception as e:
            raise StorageError(f"Failed to get {name} record: {e}")

    async def list_records(self, collection: CollectionName) -> list[dict]:
        name = collection_name(collection)
        try:
            return self._read_all(name)
        except Exception as e:
            raise StorageError(f"Failed to list {name}: {e}")

    async def update(
        self,
        collection: CollectionName,
        record_id: str,
        fields: dict,
    ) -> None:
        name = collection_name(collection)
        try:
            idx, doc = self._find_row(name, record_id)
            doc.update({k: v for k, v in fields.items() if k != "id"})
            self._write_row(name, idx, record_id, doc)
        except NotFoundError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update {name} record: {e}")
        self._notify(name)

    async def delete(self, collection: CollectionName, record_id: str) -> None:
        name = collection_name(collection)
        try:
            idx, _ = self._find_row(name, record_id)
            self._client.get_collection_sheet(name).delete_rows(idx)
        except NotFoundError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to delete {name} record: {e}")
        self._notify(name)

    async def increment(
        self,
        collection: CollectionName,
        record_id: str,
        field: str,
        delta: Decimal,
    ) -> Decimal:
        name = collection_name(collection)
        try:
            idx, doc = self._find_row(name, record_id)
            new_value = (parse_decimal(doc.get(field)) or Decimal("0")) + delta
            doc[field] = str(new_value)
            self._write_row(name, idx, record_id, doc)
        except NotFoundError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to increment {name}.{field}: {e}")
        self._notify(name)
        return new_value

    async def subscribe(
        self,
        collection: CollectionName,
        callback: SnapshotCallback,
    ) -> Subscription:
        name = collection_name(collection)
        self._listeners.setdefault(name, []).append(callback)

        def release() -> None:
            listeners = self._listeners.get(name, [])
            if callback in listeners:
                listeners.remove(callback)

        callback(await self.list_records(name))
        return Subscription(release)
