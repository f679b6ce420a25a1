"""Summary, view and budget calculations over ledger snapshots."""

from expense_tracker.queries.aggregation import (
    breakdown_by_category,
    reference_day,
    summarize,
    total_amount,
)
from expense_tracker.queries.budget import (
    EXCEEDED_THRESHOLD_PCT,
    WARNING_THRESHOLD_PCT,
    evaluate,
)
from expense_tracker.queries.views import (
    filter_expenses,
    resolve_sort_mode,
    sort_expenses,
    view,
)

__all__ = [
    "EXCEEDED_THRESHOLD_PCT",
    "WARNING_THRESHOLD_PCT",
    "breakdown_by_category",
    "evaluate",
    "filter_expenses",
    "reference_day",
    "resolve_sort_mode",
    "sort_expenses",
    "summarize",
    "total_amount",
    "view",
]
