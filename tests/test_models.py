"""
Tests for Expense Tracker

Test strategy:
1. Unit tests for individual components (models, validator, calculations)
2. Flow tests for the ledger service over an in-memory store
3. No real API calls in tests (Google Sheets is mocked)
"""

import pytest
from decimal import Decimal
from uuid import uuid4

from expense_tracker.models.expense import (
    BudgetState,
    BudgetStatus,
    Expense,
    SortMode,
    ValidationIssue,
    ValidationResult,
    ViewFilters,
    is_calendar_date,
)
from expense_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class TestExpenseModel:
    """Tests for the Expense model."""

    def test_expense_creation(self):
        """Test Expense model creation with defaults."""
        expense = Expense(id="a", date="2024-01-05", amount=Decimal("10.50"))
        assert expense.category == "Other"
        assert expense.note == ""
        assert expense.amount == Decimal("10.50")
        assert expense.month == "2024-01"

    def test_expense_rejects_zero_amount(self):
        """Test that zero amounts are rejected."""
        with pytest.raises(ValueError):
            Expense(id="a", date="2024-01-05", amount=Decimal("0"))

    def test_expense_rejects_negative_amount(self):
        with pytest.raises(ValueError):
            Expense(id="a", date="2024-01-05", amount=Decimal("-3"))

    def test_expense_rejects_nan_amount(self):
        """Test that non-finite amounts are rejected."""
        with pytest.raises(ValueError):
            Expense(id="a", date="2024-01-05", amount=Decimal("NaN"))

    def test_expense_rejects_invalid_date(self):
        """Test that impossible dates are rejected."""
        with pytest.raises(ValueError, match="Invalid calendar date"):
            Expense(id="a", date="2024-02-30", amount=Decimal("1"))

    def test_expense_rejects_blank_id(self):
        with pytest.raises(ValueError):
            Expense(id="   ", date="2024-01-05", amount=Decimal("1"))

    def test_expense_assignment_is_validated(self):
        """Test that mutating a field re-runs validation."""
        expense = Expense(id="a", date="2024-01-05", amount=Decimal("1"))
        with pytest.raises(ValueError):
            expense.amount = Decimal("-1")

    def test_note_is_stored_on_one_line(self):
        """Test that notes are trimmed and line breaks folded."""
        expense = Expense(
            id="a",
            date="2024-01-05",
            amount=Decimal("1"),
            note="  two\n  lines \r\n",
        )
        assert expense.note == "two lines"

    def test_blank_category_becomes_other(self):
        expense = Expense(id="a", date="2024-01-05", amount=Decimal("1"), category=" \n ")
        assert expense.category == "Other"

    def test_category_is_trimmed(self):
        expense = Expense(id="a", date="2024-01-05", amount=Decimal("1"), category=" Food\nOut ")
        assert expense.category == "Food Out"

    def test_edited_note_is_normalized(self):
        expense = Expense(id="a", date="2024-01-05", amount=Decimal("1"))
        expense.note = " padded "
        assert expense.note == "padded"

    @pytest.mark.parametrize("expense_id", ["a\nb", "a\r", "a\u2028b"])
    def test_expense_rejects_id_with_line_break(self, expense_id):
        with pytest.raises(ValueError):
            Expense(id=expense_id, date="2024-01-05", amount=Decimal("1"))


class TestCalendarDate:
    """Tests for the calendar-date check."""

    @pytest.mark.parametrize("value", ["2024-01-05", "2024-02-29", "1999-12-31"])
    def test_valid_dates(self, value):
        assert is_calendar_date(value) is True

    @pytest.mark.parametrize(
        "value",
        ["", "2024-1-5", "20240105", "2023-02-29", "2024-13-01", "2024-01-05T10:00", None],
    )
    def test_invalid_dates(self, value):
        assert is_calendar_date(value) is False


class TestValidationResult:
    """Tests for ValidationResult model."""

    def test_accepted_with_expense(self):
        result = ValidationResult(
            expense=Expense(id="a", date="2024-01-05", amount=Decimal("1")),
        )
        assert result.accepted is True
        assert result.messages == []

    def test_rejected_with_issues(self):
        result = ValidationResult(issues=[
            ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be greater than zero",
            ),
        ])
        assert result.accepted is False
        assert result.messages == ["Amount must be greater than zero"]


class TestViewModels:
    """Tests for view-related models."""

    def test_view_filters_strip_whitespace(self):
        filters = ViewFilters(note_query="  lunch  ")
        assert filters.note_query == "lunch"

    def test_sort_mode_values(self):
        assert SortMode("date_desc") is SortMode.DATE_DESC
        assert SortMode.AMOUNT_ASC.value == "amount_asc"


class TestBudgetStatusLabel:
    """Tests for the budget status text."""

    def test_unset_label(self):
        status = BudgetStatus(state=BudgetState.UNSET, month_total=Decimal("5"))
        assert status.label() == "Not set"
        assert status.is_set is False

    def test_exceeded_label(self):
        status = BudgetStatus(
            state=BudgetState.EXCEEDED,
            month_total=Decimal("120"),
            budget=Decimal("100"),
            display_percent=Decimal("100"),
            overage=Decimal("20"),
        )
        assert status.label() == "Exceeded by Rs 20.00"

    def test_remaining_label(self):
        status = BudgetStatus(
            state=BudgetState.OK,
            month_total=Decimal("50"),
            budget=Decimal("100"),
            display_percent=Decimal("50"),
            remaining=Decimal("50"),
        )
        assert status.label() == "Rs 50.00 remaining"


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.EXPENSE_ADDED,
            description="Expense added",
        )
        assert event.event_type == AuditEventType.EXPENSE_ADDED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.LEDGER_IMPORTED,
            description="Imported",
            details={"imported": 3},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "ledger_imported"
        assert log_dict["details"]["imported"] == 3

    def test_builder_expense_added(self):
        correlation_id = uuid4()
        event = AuditEventBuilder.expense_added(
            expense_id="abc",
            amount="10.50",
            expense_date="2024-01-05",
            correlation_id=correlation_id,
        )
        assert event.event_type == AuditEventType.EXPENSE_ADDED
        assert event.entity_id == "abc"
        assert event.correlation_id == correlation_id
        assert event.is_user_action is True

    def test_builder_import_with_drops_is_warning(self):
        event = AuditEventBuilder.ledger_imported(imported=2, dropped=1, total=5)
        assert event.severity == AuditSeverity.WARNING
        assert event.details == {"imported": 2, "dropped": 1, "total": 5}

    def test_builder_save_failed(self):
        event = AuditEventBuilder.save_failed(operation="import", error_message="disk full")
        assert event.severity == AuditSeverity.ERROR
        assert event.error_message == "disk full"
