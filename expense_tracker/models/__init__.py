"""
Data Models Package

This package contains all Pydantic models used in the Expense Tracker.
All data flowing through the ledger must conform to these schemas.
"""

from expense_tracker.models.expense import (
    DEFAULT_CATEGORY,
    BudgetState,
    BudgetStatus,
    CategoryTotal,
    Expense,
    SortMode,
    Summary,
    ValidationIssue,
    ValidationResult,
    ViewFilters,
    is_calendar_date,
    single_line,
)
from expense_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Expense models
    "DEFAULT_CATEGORY",
    "BudgetState",
    "BudgetStatus",
    "CategoryTotal",
    "Expense",
    "SortMode",
    "Summary",
    "ValidationIssue",
    "ValidationResult",
    "ViewFilters",
    "is_calendar_date",
    "single_line",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
