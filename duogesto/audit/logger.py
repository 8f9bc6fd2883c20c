"""
Audit Logger

DESIGN DECISION: Every balance-affecting action is logged.
This provides:
1. Traceability of goal movements between the two household members
2. Debugging capability when a cached balance drifts
3. History the couple can look at

The audit logger:
- Is async to not block main flow
- Gracefully handles failures (doesn't crash the app if logging fails)
"""

from decimal import Decimal
from typing import Optional

import structlog

from duogesto.models.audit import AuditEvent, AuditEventBuilder, AuditEventType
from duogesto.services.storage import Collection, RecordStore


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. The record store's audit_log collection (for persistence)
    """

    def __init__(
        self,
        storage: Optional[RecordStore] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Store the events are appended to.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("duogesto.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                await self._storage.create(Collection.AUDIT_LOG, event.to_document())
                return True
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=event.event_id,
                )
                return False

        return True

    async def log_record_changed(
        self,
        event_type: AuditEventType,
        collection: str,
        record_id: Optional[str],
        description: str,
        actor: Optional[str] = None,
    ) -> None:
        """Log a create/update/delete of a stored record."""
        event = AuditEventBuilder.record_changed(
            event_type=event_type,
            collection=collection,
            record_id=record_id,
            description=description,
            actor=actor,
        )
        await self.log(event)

    async def log_goal_movement(
        self,
        event_type: AuditEventType,
        goal_id: str,
        amount: Decimal,
        balance: Decimal,
        actor: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> None:
        event = AuditEventBuilder.goal_movement(
            event_type=event_type,
            goal_id=goal_id,
            amount=amount,
            balance=balance,
            actor=actor,
            reason=reason,
        )
        await self.log(event)

    async def log_withdrawal_rejected(
        self,
        goal_id: str,
        requested: Decimal,
        available: Decimal,
        actor: Optional[str] = None,
    ) -> None:
        event = AuditEventBuilder.withdrawal_rejected(
            goal_id=goal_id,
            requested=requested,
            available=available,
            actor=actor,
        )
        await self.log(event)

    async def log_goal_reconciled(
        self,
        goal_id: str,
        cached: Decimal,
        recomputed: Decimal,
    ) -> None:
        await self.log(AuditEventBuilder.goal_reconciled(goal_id, cached, recomputed))

    async def log_installment_toggled(
        self,
        expense_id: str,
        installment_number: int,
        paid: bool,
        actor: Optional[str] = None,
    ) -> None:
        event = AuditEventBuilder.installment_toggled(
            expense_id=expense_id,
            installment_number=installment_number,
            paid=paid,
            actor=actor,
        )
        await self.log(event)

    async def log_login(
        self,
        username: str,
        success: bool,
        reason: Optional[str] = None,
    ) -> None:
        await self.log(AuditEventBuilder.login(username, success, reason))

    async def log_validation_failed(
        self,
        record_type: str,
        issues: list[dict],
    ) -> None:
        """Log a rejected form."""
        await self.log(AuditEventBuilder.validation_failed(record_type, issues))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> None:
        """Log an error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
        )
        await self.log(event)

    async def log_storage_error(
        self,
        operation: str,
        collection: str,
        error_message: str,
    ) -> None:
        event = AuditEventBuilder.storage_error(
            operation=operation,
            collection=collection,
            error_message=error_message,
        )
        await self.log(event)
