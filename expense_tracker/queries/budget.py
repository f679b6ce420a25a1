"""
Budget Evaluator

Classifies the month's spend against an optional monthly budget.

    no budget          -> UNSET
    spend <  80%       -> OK        (remaining = budget - spend)
    80% <= spend < 100% -> WARNING   (remaining = budget - spend)
    spend >= 100%      -> EXCEEDED  (overage = spend - budget)

The progress bar is capped at 100% so it never overflows.
"""

from decimal import Decimal
from typing import Optional

from expense_tracker.models.expense import BudgetState, BudgetStatus


WARNING_THRESHOLD_PCT = Decimal("80")
EXCEEDED_THRESHOLD_PCT = Decimal("100")


def _to_decimal(value) -> Decimal:
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def evaluate(month_total: Decimal, budget: Optional[Decimal]) -> BudgetStatus:
    """
    Compute the budget status for a month total.

    A budget that is missing, not finite, zero or negative counts as not
    configured.
    """
    month_total = _to_decimal(month_total)
    if budget is not None:
        budget = _to_decimal(budget)

    if budget is None or not budget.is_finite() or budget <= 0:
        return BudgetStatus(
            state=BudgetState.UNSET,
            month_total=month_total,
        )

    pct = month_total / budget * 100
    display_percent = min(pct, EXCEEDED_THRESHOLD_PCT)

    if pct >= EXCEEDED_THRESHOLD_PCT:
        return BudgetStatus(
            state=BudgetState.EXCEEDED,
            month_total=month_total,
            budget=budget,
            percent_used=pct,
            display_percent=display_percent,
            overage=month_total - budget,
        )

    state = BudgetState.WARNING if pct >= WARNING_THRESHOLD_PCT else BudgetState.OK
    return BudgetStatus(
        state=state,
        month_total=month_total,
        budget=budget,
        percent_used=pct,
        display_percent=display_percent,
        remaining=budget - month_total,
    )
