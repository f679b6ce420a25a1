"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep the ledger in a JSON file, a spreadsheet, or memory
2. Use in-memory storage for testing
3. Keep the ledger logic decoupled from the storage medium

The interface is intentionally whole-snapshot: load everything, save
everything. There is no row-level update. Personal ledgers are small and
every mutation is "load, transform, save".

LIMITATION: There is no isolation between two load-modify-save cycles.
If they interleave, the later save wins and the earlier change is lost.
Callers that need more must run one cycle at a time.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from decimal import Decimal
from typing import Optional

from expense_tracker.models.audit import AuditEvent
from expense_tracker.models.expense import Expense


class LedgerStore(ABC):
    """
    Abstract interface for the expense collection.

    Any storage implementation (JSON file, Google Sheets, etc.)
    must implement these methods.
    """

    @abstractmethod
    def load(self) -> list[Expense]:
        """
        Load the full expense collection.

        Never raises. Missing or unreadable data gives an empty list;
        entries that break the expense rules are dropped.
        """
        pass

    @abstractmethod
    def save(self, expenses: Sequence[Expense]) -> None:
        """
        Replace the full expense collection.

        A store whose last load could not read the medium may refuse to
        save, so a partial snapshot never overwrites data it did not see.

        Raises:
            StorageError: If the medium could not be written
        """
        pass


class BudgetStore(ABC):
    """Abstract interface for the single monthly budget value."""

    @abstractmethod
    def load_budget(self) -> Optional[Decimal]:
        """
        Load the monthly budget.

        Returns None when no budget is stored, or when the stored value is
        not a positive number.
        """
        pass

    @abstractmethod
    def save_budget(self, value: Optional[Decimal]) -> None:
        """
        Store the monthly budget. None removes the stored entry.

        Raises:
            StorageError: If the medium could not be written
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
