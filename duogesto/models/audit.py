"""
Audit Models for DuoGesto

Every balance-affecting action is logged for audit purposes.
This provides:
1. A trail of who moved money in or out of a goal
2. Debugging information when a cached balance drifts from its ledger
3. Ability to reconstruct history

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Cash flow
    INCOME_CREATED = "income_created"
    INCOME_UPDATED = "income_updated"
    INCOME_DELETED = "income_deleted"
    EXPENSE_CREATED = "expense_created"
    EXPENSE_UPDATED = "expense_updated"
    EXPENSE_DELETED = "expense_deleted"

    # Installments
    INSTALLMENT_PAID = "installment_paid"
    INSTALLMENT_UNPAID = "installment_unpaid"

    # Goals
    GOAL_CREATED = "goal_created"
    GOAL_UPDATED = "goal_updated"
    GOAL_DELETED = "goal_deleted"
    GOAL_DEPOSIT = "goal_deposit"
    GOAL_WITHDRAWAL = "goal_withdrawal"
    GOAL_WITHDRAWAL_REJECTED = "goal_withdrawal_rejected"
    GOAL_TRANSFER = "goal_transfer"
    GOAL_MOVEMENT_REVERSED = "goal_movement_reversed"
    GOAL_RECONCILED = "goal_reconciled"

    # Users
    USER_LOGGED_IN = "user_logged_in"
    LOGIN_FAILED = "login_failed"
    USER_SAVED = "user_saved"

    # Home, properties and travels
    ROOM_SAVED = "room_saved"
    ROOM_DELETED = "room_deleted"
    HOME_ITEM_SAVED = "home_item_saved"
    HOME_ITEM_DELETED = "home_item_deleted"
    HOME_ITEM_BOUGHT = "home_item_bought"
    HOME_ITEM_UNBOUGHT = "home_item_unbought"
    PROPERTY_SAVED = "property_saved"
    PROPERTY_DELETED = "property_deleted"
    TRAVEL_SAVED = "travel_saved"
    TRAVEL_DELETED = "travel_deleted"
    TRAVEL_VISITED = "travel_visited"
    TRAVEL_COMMENTED = "travel_commented"
    FAVORITE_TOGGLED = "favorite_toggled"

    # Validation
    VALIDATION_FAILED = "validation_failed"

    # System events
    SYSTEM_ERROR = "system_error"
    STORAGE_ERROR = "storage_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    event_id: str = Field(
        default_factory=lambda: uuid4().hex,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - what record is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Collection of the record (e.g., 'duo_banks', 'expenses')"
    )
    entity_id: Optional[str] = None

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    # Who did it, when known
    actor: Optional[str] = None

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": self.event_id,
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "actor": self.actor,
        }

    def to_document(self) -> dict:
        """
        Convert to a store document.

        details are JSON-encoded so that every store backend can keep them
        in a single text field.
        """
        doc = self.to_log_dict()
        doc["details"] = json.dumps(self.details, default=str) if self.details else ""
        return doc


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.installment_toggled(expense_id, 3, paid=True)
    """

    @staticmethod
    def record_changed(
        event_type: AuditEventType,
        collection: str,
        record_id: Optional[str],
        description: str,
        actor: Optional[str] = None,
    ) -> AuditEvent:
        verb = event_type.value.rsplit("_", 1)[-1]
        return AuditEvent(
            event_type=event_type,
            entity_type=collection,
            entity_id=record_id,
            description=f"{collection} record {verb}: {description}"[:500],
            actor=actor,
        )

    @staticmethod
    def installment_toggled(
        expense_id: str,
        installment_number: int,
        paid: bool,
        actor: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=(
                AuditEventType.INSTALLMENT_PAID
                if paid
                else AuditEventType.INSTALLMENT_UNPAID
            ),
            entity_type="expenses",
            entity_id=expense_id,
            description=(
                f"Installment {installment_number} marked "
                f"{'paid' if paid else 'unpaid'}"
            ),
            details={"installment_number": installment_number},
            actor=actor,
        )

    @staticmethod
    def goal_movement(
        event_type: AuditEventType,
        goal_id: str,
        amount: Decimal,
        balance: Decimal,
        actor: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=event_type,
            entity_type="duo_banks",
            entity_id=goal_id,
            description=f"Goal movement of {amount}, balance now {balance}",
            details={
                "amount": str(amount),
                "balance": str(balance),
                "reason": reason,
            },
            actor=actor,
        )

    @staticmethod
    def withdrawal_rejected(
        goal_id: str,
        requested: Decimal,
        available: Decimal,
        actor: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GOAL_WITHDRAWAL_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="duo_banks",
            entity_id=goal_id,
            description=f"Withdrawal of {requested} rejected, only {available} available",
            details={
                "requested": str(requested),
                "available": str(available),
            },
            actor=actor,
        )

    @staticmethod
    def goal_reconciled(
        goal_id: str,
        cached: Decimal,
        recomputed: Decimal,
    ) -> AuditEvent:
        drifted = cached != recomputed
        return AuditEvent(
            event_type=AuditEventType.GOAL_RECONCILED,
            severity=AuditSeverity.WARNING if drifted else AuditSeverity.INFO,
            entity_type="duo_banks",
            entity_id=goal_id,
            description=(
                f"Goal balance corrected from {cached} to {recomputed}"
                if drifted
                else "Goal balance matches its ledger"
            ),
            details={
                "cached": str(cached),
                "recomputed": str(recomputed),
            },
        )

    @staticmethod
    def login(username: str, success: bool, reason: Optional[str] = None) -> AuditEvent:
        return AuditEvent(
            event_type=(
                AuditEventType.USER_LOGGED_IN
                if success
                else AuditEventType.LOGIN_FAILED
            ),
            severity=AuditSeverity.INFO if success else AuditSeverity.WARNING,
            entity_type="users",
            description=f"Login {'succeeded' if success else 'failed'} for {username}",
            details={"reason": reason} if reason else {},
            actor=username,
        )

    @staticmethod
    def validation_failed(
        record_type: str,
        issues: list[dict],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type=record_type,
            description=f"{record_type.capitalize()} form rejected with {len(issues)} issues",
            details={"issues": issues},
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
        )

    @staticmethod
    def storage_error(
        operation: str,
        collection: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            entity_type=collection,
            description=f"Storage error during {operation}",
            error_message=error_message,
            details={"operation": operation},
        )
