"""
Display helpers: money formatting and the category picker.

Amounts are shown the way the household reads them: "Rs" followed by the
amount with Indian digit grouping (lakhs and crores) and two decimals,
e.g. `Rs 1,23,456.50`.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union


CURRENCY_PREFIX = "Rs"

CATEGORIES = ("Food", "Transport", "Fuel", "Groceries", "Bills", "Shopping", "Health", "Other")


def group_indian(digits: str) -> str:
    """Group an unsigned integer digit string as 12,34,567."""
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups + [tail])


def format_money(value: Union[Decimal, int, float, None]) -> str:
    """Format an amount as `Rs 1,234.50`. None renders as zero."""
    amount = Decimal(str(value)) if value is not None else Decimal("0")
    amount = amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

    sign = "-" if amount < 0 else ""
    whole, _, fraction = f"{abs(amount):f}".partition(".")
    return f"{sign}{CURRENCY_PREFIX} {group_indian(whole)}.{fraction or '00'}"


def category_choices(current: Optional[str] = None) -> list[str]:
    """
    Categories offered by the form.

    A category outside the usual list (e.g. from an import) is appended so
    editing that expense keeps it selected.
    """
    choices = list(CATEGORIES)
    if current and current not in choices:
        choices.append(current)
    return choices
