"""
Core Data Models for Expense Tracker

These models define the schemas for all data flowing through the ledger.
They are designed to:
1. Enforce the record invariants at runtime
2. Provide clear validation error messages
3. Be serializable for storage and interchange

DESIGN DECISION: Dates are kept as fixed-width `YYYY-MM-DD` strings rather
than `datetime.date` objects. Month grouping is a prefix match and date
ordering is plain string ordering, which is what the interchange format and
the stores carry anyway.
"""

import re
from datetime import date as calendar_date
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from expense_tracker.formatting import format_money


DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

DEFAULT_CATEGORY = "Other"


def is_calendar_date(value: str) -> bool:
    """Check that a string is a fixed-width `YYYY-MM-DD` real calendar date."""
    if not isinstance(value, str) or not DATE_PATTERN.match(value):
        return False
    try:
        calendar_date.fromisoformat(value)
    except ValueError:
        return False
    return True


def single_line(value: str) -> str:
    """Trim text and fold any line breaks into single spaces."""
    return " ".join(part.strip() for part in value.splitlines() if part.strip())


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class SortMode(str, Enum):
    """Orderings offered by the expense list."""
    DATE_DESC = "date_desc"
    DATE_ASC = "date_asc"
    AMOUNT_DESC = "amount_desc"
    AMOUNT_ASC = "amount_asc"


class BudgetState(str, Enum):
    """
    Classification of the month's spend against the budget.

    Thresholds: 80% of the budget starts WARNING, 100% is EXCEEDED.
    """
    UNSET = "unset"
    OK = "ok"
    WARNING = "warning"
    EXCEEDED = "exceeded"


# =============================================================================
# CORE EXPENSE MODEL
# =============================================================================

class Expense(BaseModel):
    """
    A single dated expense.

    Identity is `id`: it is assigned once when the expense is created and
    never reassigned. Editing an expense replaces every other field.
    """
    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(
        ...,
        min_length=1,
        description="Opaque identifier, unique within a store"
    )
    date: str = Field(
        ...,
        description="Calendar date as YYYY-MM-DD"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        allow_inf_nan=False,
        description="Amount spent, strictly positive"
    )
    category: str = Field(
        default=DEFAULT_CATEGORY,
        description="Spending category"
    )
    note: str = Field(
        default="",
        description="Optional free-text note"
    )

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Expense id cannot be blank")
        if v.splitlines() != [v]:
            raise ValueError("Expense id cannot contain line breaks")
        return v

    @field_validator("date")
    @classmethod
    def validate_date(cls, v: str) -> str:
        """Only accept real calendar dates in fixed-width ISO form."""
        if not is_calendar_date(v):
            raise ValueError(f"Invalid calendar date: {v!r}. Expected YYYY-MM-DD")
        return v

    @field_validator("category")
    @classmethod
    def validate_category(cls, v: str) -> str:
        return single_line(v) or DEFAULT_CATEGORY

    @field_validator("note")
    @classmethod
    def validate_note(cls, v: str) -> str:
        """Notes are stored on one line, trimmed."""
        return single_line(v)

    @property
    def month(self) -> str:
        """The `YYYY-MM` prefix of the expense date."""
        return self.date[:7]


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single reason a candidate expense was rejected."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'not_found')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )


class ValidationResult(BaseModel):
    """
    Outcome of accepting a raw expense payload.

    Either `expense` is set and `issues` is empty, or `expense` is None and
    `issues` explains the rejection.
    """

    expense: Optional[Expense] = None
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def accepted(self) -> bool:
        return self.expense is not None and not self.issues

    @property
    def messages(self) -> list[str]:
        return [issue.message for issue in self.issues]


# =============================================================================
# SUMMARY MODELS
# =============================================================================

class CategoryTotal(BaseModel):
    """Total spend for one category."""

    category: str
    total: Decimal


class Summary(BaseModel):
    """Day and month aggregates for a reference date."""

    reference_date: str
    month_prefix: str
    today_total: Decimal = Decimal("0")
    month_total: Decimal = Decimal("0")
    transaction_count: int = Field(default=0, ge=0)
    unique_days: int = Field(default=0, ge=0)
    avg_per_day: Decimal = Decimal("0")
    month_items: list[Expense] = Field(default_factory=list)


class ViewFilters(BaseModel):
    """Filters applied to the expense list before sorting."""
    model_config = ConfigDict(str_strip_whitespace=True)

    date: Optional[str] = Field(
        default=None,
        description="Keep only expenses on this exact date"
    )
    note_query: Optional[str] = Field(
        default=None,
        description="Case-insensitive substring the note must contain"
    )


class BudgetStatus(BaseModel):
    """Month total classified against an optional budget."""

    state: BudgetState
    month_total: Decimal
    budget: Optional[Decimal] = None
    percent_used: Optional[Decimal] = Field(
        default=None,
        description="Spend as a percentage of the budget (uncapped)"
    )
    display_percent: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        le=100,
        description="Progress bar fill, capped at 100"
    )
    remaining: Optional[Decimal] = None
    overage: Optional[Decimal] = None

    @property
    def is_set(self) -> bool:
        return self.state != BudgetState.UNSET

    def label(self) -> str:
        """Status text shown next to the budget bar."""
        if self.state == BudgetState.UNSET:
            return "Not set"
        if self.state == BudgetState.EXCEEDED:
            return f"Exceeded by {format_money(self.overage)}"
        return f"{format_money(self.remaining)} remaining"
