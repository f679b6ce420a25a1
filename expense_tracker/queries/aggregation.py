"""
Aggregation Engine

DESIGN DECISION: Aggregation is DETERMINISTIC and works on a snapshot.
The caller loads the ledger once and hands the list in; nothing here
touches storage.

Amounts are Decimals, so totals are exact and independent of the order
the expenses arrive in.
"""

from collections.abc import Iterable, Sequence
from datetime import date
from decimal import Decimal
from typing import Optional, Union

from expense_tracker.models.expense import CategoryTotal, Expense, Summary


ZERO = Decimal("0")


def reference_day(reference_date: Optional[Union[date, str]] = None) -> str:
    """Normalize a reference date to its `YYYY-MM-DD` string (today if None)."""
    if reference_date is None:
        return date.today().isoformat()
    if isinstance(reference_date, date):
        return reference_date.isoformat()
    return str(reference_date)[:10]


def total_amount(expenses: Iterable[Expense]) -> Decimal:
    return sum((expense.amount for expense in expenses), ZERO)


def summarize(
    expenses: Sequence[Expense],
    reference_date: Optional[Union[date, str]] = None,
) -> Summary:
    """
    Compute day and month aggregates for a reference date.

    Args:
        expenses: Snapshot of the ledger
        reference_date: Day to summarize around (defaults to today)

    Returns:
        Summary with today's total, the month's total, transaction count,
        number of distinct spending days and the average per spending day
    """
    today = reference_day(reference_date)
    month_prefix = today[:7]

    month_items = [e for e in expenses if e.date.startswith(month_prefix)]
    today_total = total_amount(e for e in expenses if e.date == today)
    month_total = total_amount(month_items)
    unique_days = len({e.date for e in month_items})

    # No spending days means no average, not a division error
    avg_per_day = month_total / unique_days if unique_days else ZERO

    return Summary(
        reference_date=today,
        month_prefix=month_prefix,
        today_total=today_total,
        month_total=month_total,
        transaction_count=len(month_items),
        unique_days=unique_days,
        avg_per_day=avg_per_day,
        month_items=month_items,
    )


def breakdown_by_category(month_items: Iterable[Expense]) -> list[CategoryTotal]:
    """
    Total spend per category, largest first.

    Categories with equal totals have no guaranteed relative order.
    """
    groups: dict[str, Decimal] = {}
    for expense in month_items:
        groups[expense.category] = groups.get(expense.category, ZERO) + expense.amount

    ranked = sorted(groups.items(), key=lambda item: item[1], reverse=True)
    return [CategoryTotal(category=category, total=total) for category, total in ranked]
