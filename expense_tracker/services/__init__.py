"""Services package."""

from expense_tracker.services.storage import (
    AuditStorageInterface,
    BudgetStore,
    ConnectionError,
    InMemoryAuditStorage,
    JsonFileLedgerStore,
    JsonFileMedium,
    KeyValueLedgerStore,
    LedgerStore,
    StorageError,
)

__all__ = [
    "AuditStorageInterface",
    "BudgetStore",
    "ConnectionError",
    "InMemoryAuditStorage",
    "JsonFileLedgerStore",
    "JsonFileMedium",
    "KeyValueLedgerStore",
    "LedgerStore",
    "StorageError",
]
