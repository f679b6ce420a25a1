"""
Storage Services Package

Provides abstract interfaces and concrete implementations for ledger storage.
Implements a key-value medium (memory or JSON file) and Google Sheets,
designed to be swappable.

The Google Sheets backend is imported lazily from
`expense_tracker.services.storage.google_sheets` so the other backends do
not need Google credentials configured.
"""

from expense_tracker.services.storage.interface import (
    AuditStorageInterface,
    BudgetStore,
    ConnectionError,
    LedgerStore,
    StorageError,
)
from expense_tracker.services.storage.key_value import (
    BUDGET_KEY,
    EXPENSES_KEY,
    JsonFileLedgerStore,
    JsonFileMedium,
    KeyValueLedgerStore,
)
from expense_tracker.services.storage.memory import InMemoryAuditStorage

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "BudgetStore",
    "LedgerStore",
    # Exceptions
    "ConnectionError",
    "StorageError",
    # Key-value implementation
    "BUDGET_KEY",
    "EXPENSES_KEY",
    "JsonFileLedgerStore",
    "JsonFileMedium",
    "KeyValueLedgerStore",
    # Audit
    "InMemoryAuditStorage",
]
