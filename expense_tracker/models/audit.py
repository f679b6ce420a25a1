"""
Audit Models for Expense Tracker

Every ledger mutation is logged for audit purposes.
This provides:
1. Traceability of every add, edit, delete and import
2. Debugging information when stored data goes missing
3. A record of rejected input and dropped rows

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Expense records
    EXPENSE_ADDED = "expense_added"
    EXPENSE_UPDATED = "expense_updated"
    EXPENSE_DELETED = "expense_deleted"
    EXPENSE_REJECTED = "expense_rejected"

    # Budget
    BUDGET_SET = "budget_set"
    BUDGET_CLEARED = "budget_cleared"
    BUDGET_REJECTED = "budget_rejected"

    # Interchange
    LEDGER_EXPORTED = "ledger_exported"
    LEDGER_IMPORTED = "ledger_imported"
    IMPORT_EMPTY = "import_empty"

    # Persistence
    SAVE_FAILED = "save_failed"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every ledger action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'expense', 'budget', 'ledger')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one import)"
    )

    # Event details
    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )
    error_message: Optional[str] = None

    # User action tracking
    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.expense_added(expense_id, amount, date)
        event = AuditEventBuilder.ledger_imported(imported, dropped, total)
    """

    @staticmethod
    def expense_added(
        expense_id: str,
        amount: str,
        expense_date: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_ADDED,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description=f"Expense of {amount} added for {expense_date}",
            details={"amount": amount, "date": expense_date},
            is_user_action=True,
        )

    @staticmethod
    def expense_updated(
        expense_id: str,
        amount: str,
        expense_date: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_UPDATED,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description=f"Expense {expense_id} updated",
            details={"amount": amount, "date": expense_date},
            is_user_action=True,
        )

    @staticmethod
    def expense_deleted(
        expense_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_DELETED,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description=f"Expense {expense_id} deleted",
            is_user_action=True,
        )

    @staticmethod
    def expense_rejected(
        issues: list[dict],
        expense_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description=f"Expense rejected with {len(issues)} issue(s)",
            details={"issues": issues},
            is_user_action=True,
        )

    @staticmethod
    def budget_set(
        amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_SET,
            entity_type="budget",
            correlation_id=correlation_id,
            description=f"Monthly budget set to {amount}",
            details={"amount": amount},
            is_user_action=True,
        )

    @staticmethod
    def budget_cleared(correlation_id: Optional[UUID] = None) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_CLEARED,
            entity_type="budget",
            correlation_id=correlation_id,
            description="Monthly budget cleared",
            is_user_action=True,
        )

    @staticmethod
    def budget_rejected(
        value: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="budget",
            correlation_id=correlation_id,
            description="Monthly budget must be a positive amount",
            details={"value": value},
            is_user_action=True,
        )

    @staticmethod
    def ledger_exported(
        record_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_EXPORTED,
            entity_type="ledger",
            correlation_id=correlation_id,
            description=f"Exported {record_count} expense(s)",
            details={"record_count": record_count},
            is_user_action=True,
        )

    @staticmethod
    def ledger_imported(
        imported: int,
        dropped: int,
        total: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_IMPORTED,
            severity=AuditSeverity.WARNING if dropped else AuditSeverity.INFO,
            entity_type="ledger",
            correlation_id=correlation_id,
            description=f"Imported {imported} expense(s), dropped {dropped} row(s)",
            details={"imported": imported, "dropped": dropped, "total": total},
            is_user_action=True,
        )

    @staticmethod
    def import_empty(
        dropped: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMPORT_EMPTY,
            severity=AuditSeverity.WARNING,
            entity_type="ledger",
            correlation_id=correlation_id,
            description="Import contained no usable expenses; ledger left unchanged",
            details={"dropped": dropped},
            is_user_action=True,
        )

    @staticmethod
    def save_failed(
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="ledger",
            correlation_id=correlation_id,
            description=f"Failed to save ledger during {operation}",
            details={"operation": operation},
            error_message=error_message,
        )
