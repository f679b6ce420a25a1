"""
Audit Logger

DESIGN DECISION: Every ledger mutation is logged.
This provides:
1. Traceability of adds, edits, deletes and imports
2. Debugging capability when records go missing
3. A visible history of rejected input

The audit logger:
- Gracefully handles failures (a broken audit sink never breaks a save)
- Supports correlation IDs to trace related events
"""

import logging
import sys
from typing import Optional
from uuid import UUID, uuid4

import structlog

from expense_tracker.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from expense_tracker.services.storage import AuditStorageInterface


def configure_logging(level: str = "INFO", json_output: bool = True) -> None:
    """
    Configure structlog on top of the standard library logger.

    Called once at import with defaults; the application factory calls it
    again with the configured level and renderer.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)
    logging.getLogger().setLevel(log_level)

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )
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
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Module-level loggers must pick up a later reconfiguration
        cache_logger_on_first_use=False,
    )


configure_logging()


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An audit storage sink, when one is configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("expense_tracker.audit")

    @property
    def storage(self) -> Optional[AuditStorageInterface]:
        return self._storage

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity == AuditSeverity.ERROR:
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def log_expense_added(
        self,
        expense_id: str,
        amount: str,
        expense_date: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.expense_added(
            expense_id=expense_id,
            amount=amount,
            expense_date=expense_date,
            correlation_id=correlation_id,
        ))

    def log_expense_updated(
        self,
        expense_id: str,
        amount: str,
        expense_date: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.expense_updated(
            expense_id=expense_id,
            amount=amount,
            expense_date=expense_date,
            correlation_id=correlation_id,
        ))

    def log_expense_deleted(
        self,
        expense_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.expense_deleted(
            expense_id=expense_id,
            correlation_id=correlation_id,
        ))

    def log_expense_rejected(
        self,
        issues: list[dict],
        expense_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a rejected add or edit."""
        self.log(AuditEventBuilder.expense_rejected(
            issues=issues,
            expense_id=expense_id,
            correlation_id=correlation_id,
        ))

    def log_budget_set(
        self,
        amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.budget_set(amount=amount, correlation_id=correlation_id))

    def log_budget_cleared(self, correlation_id: Optional[UUID] = None) -> None:
        self.log(AuditEventBuilder.budget_cleared(correlation_id=correlation_id))

    def log_budget_rejected(
        self,
        value: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.budget_rejected(value=value, correlation_id=correlation_id))

    def log_ledger_exported(
        self,
        record_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.ledger_exported(
            record_count=record_count,
            correlation_id=correlation_id,
        ))

    def log_ledger_imported(
        self,
        imported: int,
        dropped: int,
        total: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a completed merge-import."""
        self.log(AuditEventBuilder.ledger_imported(
            imported=imported,
            dropped=dropped,
            total=total,
            correlation_id=correlation_id,
        ))

    def log_import_empty(
        self,
        dropped: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.import_empty(dropped=dropped, correlation_id=correlation_id))

    def log_save_failed(
        self,
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a storage failure."""
        self.log(AuditEventBuilder.save_failed(
            operation=operation,
            error_message=error_message,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., an import).
    Pass it through all subsequent operations.
    """
    return uuid4()
