"""Expense validation package."""

from expense_tracker.validation.validator import (
    ExpenseValidator,
    accept_expense,
    normalize_category,
    normalize_note,
    parse_amount,
    sanitize_expenses,
)

__all__ = [
    "ExpenseValidator",
    "accept_expense",
    "normalize_category",
    "normalize_note",
    "parse_amount",
    "sanitize_expenses",
]
