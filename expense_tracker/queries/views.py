"""
Filter & Sort

Derives the displayed expense list from a snapshot. The snapshot itself
is never modified.

Sorting is stable in every mode: expenses that compare equal keep the
order they had in the snapshot, so an unchanged ledger always renders the
same way.
"""

from collections.abc import Sequence
from typing import Optional, Union

from expense_tracker.models.expense import Expense, SortMode, ViewFilters


def resolve_sort_mode(sort_mode: Optional[Union[SortMode, str]]) -> SortMode:
    """Map a sort mode or its string value to a SortMode, defaulting to newest first."""
    if isinstance(sort_mode, SortMode):
        return sort_mode
    try:
        return SortMode(sort_mode)
    except ValueError:
        return SortMode.DATE_DESC


def filter_expenses(
    expenses: Sequence[Expense],
    filters: Optional[ViewFilters] = None,
) -> list[Expense]:
    """Apply the date and note filters (both must match when both are set)."""
    visible = list(expenses)
    if filters is None:
        return visible

    if filters.date:
        visible = [e for e in visible if e.date == filters.date]

    query = (filters.note_query or "").strip().casefold()
    if query:
        visible = [e for e in visible if query in e.note.casefold()]

    return visible


def sort_expenses(
    expenses: Sequence[Expense],
    sort_mode: Optional[Union[SortMode, str]] = SortMode.DATE_DESC,
) -> list[Expense]:
    """Return a sorted copy. `sorted` is stable, including with reverse=True."""
    mode = resolve_sort_mode(sort_mode)

    if mode == SortMode.DATE_ASC:
        return sorted(expenses, key=lambda e: e.date)
    if mode == SortMode.AMOUNT_DESC:
        return sorted(expenses, key=lambda e: e.amount, reverse=True)
    if mode == SortMode.AMOUNT_ASC:
        return sorted(expenses, key=lambda e: e.amount)
    return sorted(expenses, key=lambda e: e.date, reverse=True)


def view(
    expenses: Sequence[Expense],
    filters: Optional[ViewFilters] = None,
    sort_mode: Optional[Union[SortMode, str]] = SortMode.DATE_DESC,
) -> list[Expense]:
    """Filter then sort a snapshot for display."""
    return sort_expenses(filter_expenses(expenses, filters), sort_mode)
