"""
Expense Validation

DESIGN DECISION: One validator serves two very different callers.

NEW / EDITED RECORDS:
- The user typed the values
- A rejection must be reported so the form can re-prompt
- Nothing is written when the payload is rejected

STORED / IMPORTED RECORDS:
- The values came from a store or a spreadsheet
- Bad entries are dropped silently
- The rest of the snapshot is still usable

Both paths apply exactly the same rules, so a record that can be typed in
can always be stored, exported and imported back.

Normalization is limited to what the form itself would do: blank
categories become "Other" and notes are trimmed to a single line.
Amounts and dates are never guessed at.
"""

from collections.abc import Iterable, Mapping
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

import structlog
from pydantic import ValidationError

from expense_tracker.models.expense import (
    DEFAULT_CATEGORY,
    Expense,
    ValidationIssue,
    ValidationResult,
    is_calendar_date,
    single_line,
)


logger = structlog.get_logger(__name__)


def parse_amount(value: Any) -> Optional[Decimal]:
    """
    Parse a user or stored amount into a Decimal.

    Returns None when the value is missing, unparsable or not finite.
    Sign is not checked here.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float)):
        amount = Decimal(str(value))
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            amount = Decimal(text)
        except InvalidOperation:
            return None
    if not amount.is_finite():
        return None
    return amount


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def normalize_note(value: Any) -> str:
    """Trim a note and fold any line breaks into single spaces."""
    return single_line(_text(value))


def normalize_category(value: Any) -> str:
    return normalize_note(value) or DEFAULT_CATEGORY


class ExpenseValidator:
    """
    Accepts or rejects raw expense payloads.

    `accept` is used for caller input, `sanitize` for stored and imported
    collections.
    """

    def _check(
        self,
        raw: Mapping[str, Any],
    ) -> tuple[Optional[Decimal], list[ValidationIssue]]:
        """
        Run the record rules.

        Returns: (parsed_amount, list_of_issues)
        """
        issues = []

        expense_id = _text(raw.get("id"))
        if not expense_id.strip():
            issues.append(ValidationIssue(
                field="id",
                issue_type="missing",
                message="Expense id is required",
            ))

        expense_date = _text(raw.get("date")).strip()
        if not expense_date:
            issues.append(ValidationIssue(
                field="date",
                issue_type="missing",
                message="Date is required",
            ))
        elif not is_calendar_date(expense_date):
            issues.append(ValidationIssue(
                field="date",
                issue_type="invalid_format",
                message=f"Date ({expense_date}) must be a real date in YYYY-MM-DD form",
            ))

        amount = parse_amount(raw.get("amount"))
        if amount is None:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be a number",
            ))
        elif amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be greater than zero",
            ))

        return amount, issues

    def accept(self, raw: Mapping[str, Any]) -> ValidationResult:
        """
        Validate and normalize one candidate expense.

        Args:
            raw: Mapping with id, date, amount and optionally category/note

        Returns:
            ValidationResult holding the Expense, or the issues found
        """
        amount, issues = self._check(raw)
        if issues:
            return ValidationResult(issues=issues)

        try:
            expense = Expense(
                id=_text(raw.get("id")),
                date=_text(raw.get("date")).strip(),
                amount=amount,
                category=normalize_category(raw.get("category")),
                note=normalize_note(raw.get("note")),
            )
        except ValidationError as e:
            return ValidationResult(issues=[
                ValidationIssue(
                    field=".".join(str(part) for part in error["loc"]) or "expense",
                    issue_type="invalid_value",
                    message=error["msg"],
                )
                for error in e.errors()
            ])

        return ValidationResult(expense=expense)

    def sanitize(self, items: Iterable[Any]) -> list[Expense]:
        """
        Keep the valid expenses of a stored or imported collection.

        Non-mapping entries, rejected payloads and repeated ids are dropped.
        The first occurrence of an id wins.
        """
        accepted = []
        seen_ids = set()
        dropped = 0

        for item in items:
            if isinstance(item, Expense):
                item = item.model_dump()
            if not isinstance(item, Mapping):
                dropped += 1
                continue

            result = self.accept(item)
            if not result.accepted or result.expense.id in seen_ids:
                dropped += 1
                continue

            seen_ids.add(result.expense.id)
            accepted.append(result.expense)

        if dropped:
            logger.debug(
                "records_dropped",
                dropped=dropped,
                kept=len(accepted),
            )
        return accepted


_default_validator = ExpenseValidator()


def accept_expense(raw: Mapping[str, Any]) -> ValidationResult:
    """Validate one candidate expense with the default validator."""
    return _default_validator.accept(raw)


def sanitize_expenses(items: Iterable[Any]) -> list[Expense]:
    """Drop invalid and duplicate entries with the default validator."""
    return _default_validator.sanitize(items)
