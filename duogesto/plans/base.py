"""Shared plumbing for the planning services."""

from datetime import datetime, timezone
from typing import Callable, Optional

from duogesto.audit import AuditLogger
from duogesto.models.audit import AuditEventType
from duogesto.models.validation import ValidationResult
from duogesto.services.storage import Collection, NotFoundError, RecordStore
from duogesto.validation import RecordValidationError, RecordValidator


class PlanService:
    """Store, validator, audit logger and clock shared by the planners."""

    def __init__(
        self,
        store: RecordStore,
        validator: Optional[RecordValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._store = store
        self._validator = validator or RecordValidator()
        self._audit_logger = audit_logger
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def _validated(self, result: ValidationResult) -> dict:
        try:
            return self._validator.ensure_valid(result)
        except RecordValidationError:
            if self._audit_logger:
                await self._audit_logger.log_validation_failed(
                    result.record_type,
                    [
                        {"field": i.field, "type": i.issue_type, "message": i.message}
                        for i in result.issues
                    ],
                )
            raise

    async def _load(self, collection: Collection, record_id: str, reader):
        doc = await self._store.get(collection, record_id)
        if doc is None:
            raise NotFoundError(collection, record_id)
        return reader(doc)

    async def _audit(
        self,
        event_type: AuditEventType,
        collection: Collection,
        record_id: Optional[str],
        description: str,
        actor: Optional[str] = None,
    ) -> None:
        if self._audit_logger:
            await self._audit_logger.log_record_changed(
                event_type, collection.value, record_id, description, actor=actor
            )
