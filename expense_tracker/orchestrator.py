"""
Main Orchestrator for Expense Tracker

This module ties together all the components and defines the
end-to-end flows for:
1. Recording (form input -> validate -> load -> transform -> save)
2. Reading (load -> view / summary / breakdown / budget status)
3. Interchange (export text, or read text -> decode -> merge -> save)

DESIGN DECISION: Every mutation is "load the full ledger, transform it,
save the full ledger". There is no partial update.

LIMITATION: Two load-modify-save cycles that interleave are
last-writer-wins. The service does not lock; callers run one cycle at a
time.

The "which expense is being edited" state is an explicit EditSession
owned by the caller (one per UI session). The calculations never see it.
"""

import asyncio
from datetime import date as calendar_date
from decimal import Decimal
from pathlib import Path
from typing import Any, Optional, Union
from uuid import UUID, uuid4

import structlog
from pydantic import BaseModel, Field

from expense_tracker.audit import AuditLogger, configure_logging, create_correlation_id
from expense_tracker.config import Settings, get_settings
from expense_tracker.interchange import decode, export_filename, merge, to_text
from expense_tracker.models.expense import (
    BudgetStatus,
    CategoryTotal,
    Expense,
    SortMode,
    Summary,
    ValidationIssue,
    ValidationResult,
    ViewFilters,
)
from expense_tracker.queries import breakdown_by_category, evaluate, summarize, view
from expense_tracker.services.storage import (
    BudgetStore,
    InMemoryAuditStorage,
    JsonFileLedgerStore,
    KeyValueLedgerStore,
    LedgerStore,
    StorageError,
)
from expense_tracker.validation import ExpenseValidator, parse_amount


logger = structlog.get_logger(__name__)


def new_expense_id() -> str:
    """Identifier for a newly created expense."""
    return str(uuid4())


class EditSession:
    """
    Tracks which expense, if any, a pending form submission will edit.

    One instance per UI session. Without an editing id, a submission adds
    a new expense.
    """

    def __init__(self):
        self._editing_id: Optional[str] = None

    @property
    def editing_id(self) -> Optional[str]:
        return self._editing_id

    @property
    def is_editing(self) -> bool:
        return self._editing_id is not None

    def begin(self, expense: Union[Expense, str]) -> None:
        """Switch to edit mode for an expense (or its id)."""
        self._editing_id = expense.id if isinstance(expense, Expense) else expense

    def cancel(self) -> None:
        """Back to add mode."""
        self._editing_id = None


class Dashboard(BaseModel):
    """Everything the main page shows, computed from one snapshot."""

    visible: list[Expense] = Field(default_factory=list)
    summary: Summary
    breakdown: list[CategoryTotal] = Field(default_factory=list)
    budget: BudgetStatus


class ImportResult(BaseModel):
    """Outcome of a merge-import."""

    imported: int = Field(default=0, ge=0)
    dropped_rows: int = Field(default=0, ge=0)
    total: int = Field(default=0, ge=0)
    saved: bool = False


class LedgerService:
    """
    Orchestrates reads and mutations of the ledger.

    Flow for a mutation:
    1. Validate the caller's input (reject -> nothing is written)
    2. Load the full snapshot
    3. Transform it
    4. Save the full snapshot
    5. Audit
    """

    def __init__(
        self,
        store: LedgerStore,
        budget_store: Optional[BudgetStore] = None,
        validator: Optional[ExpenseValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        if budget_store is None and isinstance(store, BudgetStore):
            budget_store = store
        self._budget_store = budget_store
        self._validator = validator or ExpenseValidator()
        self._audit_logger = audit_logger

    @property
    def store(self) -> LedgerStore:
        return self._store

    def _save(
        self,
        expenses: list[Expense],
        operation: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        try:
            self._store.save(expenses)
        except StorageError as e:
            logger.error("ledger_save_failed", operation=operation, error=str(e))
            if self._audit_logger:
                self._audit_logger.log_save_failed(
                    operation=operation,
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

    def _reject(
        self,
        result: ValidationResult,
        expense_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> ValidationResult:
        if self._audit_logger:
            self._audit_logger.log_expense_rejected(
                issues=[issue.model_dump() for issue in result.issues],
                expense_id=expense_id,
                correlation_id=correlation_id,
            )
        return result

    # -------------------------------------------------------------------------
    # Expenses
    # -------------------------------------------------------------------------

    def list_expenses(self) -> list[Expense]:
        """Load the current snapshot."""
        return self._store.load()

    def add_expense(
        self,
        date: str,
        amount: Any,
        category: str = "",
        note: str = "",
        correlation_id: Optional[UUID] = None,
    ) -> ValidationResult:
        """
        Record a new expense with a freshly assigned id.

        Returns:
            ValidationResult; the ledger is only written when accepted
        """
        result = self._validator.accept({
            "id": new_expense_id(),
            "date": date,
            "amount": amount,
            "category": category,
            "note": note,
        })
        if not result.accepted:
            return self._reject(result, correlation_id=correlation_id)

        expenses = self._store.load()
        expenses.append(result.expense)
        self._save(expenses, "add_expense", correlation_id)

        if self._audit_logger:
            self._audit_logger.log_expense_added(
                expense_id=result.expense.id,
                amount=str(result.expense.amount),
                expense_date=result.expense.date,
                correlation_id=correlation_id,
            )
        return result

    def update_expense(
        self,
        expense_id: str,
        date: str,
        amount: Any,
        category: str = "",
        note: str = "",
        correlation_id: Optional[UUID] = None,
    ) -> ValidationResult:
        """
        Replace every field of an existing expense except its id.

        An unknown id is reported as a rejection and nothing is written.
        """
        result = self._validator.accept({
            "id": expense_id,
            "date": date,
            "amount": amount,
            "category": category,
            "note": note,
        })
        if not result.accepted:
            return self._reject(result, expense_id, correlation_id)

        expenses = self._store.load()
        positions = [i for i, e in enumerate(expenses) if e.id == expense_id]
        if not positions:
            missing = ValidationResult(issues=[ValidationIssue(
                field="id",
                issue_type="not_found",
                message=f"Expense {expense_id} no longer exists",
            )])
            return self._reject(missing, expense_id, correlation_id)

        expenses[positions[0]] = result.expense
        self._save(expenses, "update_expense", correlation_id)

        if self._audit_logger:
            self._audit_logger.log_expense_updated(
                expense_id=expense_id,
                amount=str(result.expense.amount),
                expense_date=result.expense.date,
                correlation_id=correlation_id,
            )
        return result

    def delete_expense(
        self,
        expense_id: str,
        session: Optional[EditSession] = None,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """
        Remove an expense by id.

        If the session was editing that expense it goes back to add mode.

        Returns:
            True if an expense was removed
        """
        if session is not None and session.editing_id == expense_id:
            session.cancel()

        expenses = self._store.load()
        remaining = [e for e in expenses if e.id != expense_id]
        if len(remaining) == len(expenses):
            return False

        self._save(remaining, "delete_expense", correlation_id)
        if self._audit_logger:
            self._audit_logger.log_expense_deleted(
                expense_id=expense_id,
                correlation_id=correlation_id,
            )
        return True

    def submit(
        self,
        session: EditSession,
        date: str,
        amount: Any,
        category: str = "",
        note: str = "",
    ) -> ValidationResult:
        """
        Handle a form submission: edit when the session is editing, add otherwise.

        On success the session returns to add mode. On rejection the
        session is left as it was so the user can correct the form.
        """
        if session.is_editing:
            result = self.update_expense(session.editing_id, date, amount, category, note)
        else:
            result = self.add_expense(date, amount, category, note)

        if result.accepted:
            session.cancel()
        return result

    # -------------------------------------------------------------------------
    # Budget
    # -------------------------------------------------------------------------

    def get_budget(self) -> Optional[Decimal]:
        if self._budget_store is None:
            return None
        return self._budget_store.load_budget()

    def set_budget(self, value: Any, correlation_id: Optional[UUID] = None) -> bool:
        """
        Set the monthly budget.

        Returns:
            False (and writes nothing) unless the value is a positive number
        """
        amount = parse_amount(value)
        if amount is None or amount <= 0 or self._budget_store is None:
            if self._audit_logger:
                self._audit_logger.log_budget_rejected(
                    value=str(value),
                    correlation_id=correlation_id,
                )
            return False

        self._budget_store.save_budget(amount)
        if self._audit_logger:
            self._audit_logger.log_budget_set(amount=str(amount), correlation_id=correlation_id)
        return True

    def clear_budget(self, correlation_id: Optional[UUID] = None) -> None:
        """Remove the monthly budget entirely."""
        if self._budget_store is None:
            return
        self._budget_store.save_budget(None)
        if self._audit_logger:
            self._audit_logger.log_budget_cleared(correlation_id=correlation_id)

    # -------------------------------------------------------------------------
    # Reading
    # -------------------------------------------------------------------------

    def dashboard(
        self,
        reference_date: Optional[Union[calendar_date, str]] = None,
        filters: Optional[ViewFilters] = None,
        sort_mode: Optional[Union[SortMode, str]] = SortMode.DATE_DESC,
    ) -> Dashboard:
        """
        Compute the list, the summary cards, the category breakdown and
        the budget status from a single snapshot.

        The summary always covers the whole ledger, not the filtered list.
        """
        expenses = self._store.load()
        summary = summarize(expenses, reference_date)
        return Dashboard(
            visible=view(expenses, filters, sort_mode),
            summary=summary,
            breakdown=breakdown_by_category(summary.month_items),
            budget=evaluate(summary.month_total, self.get_budget()),
        )

    # -------------------------------------------------------------------------
    # Interchange
    # -------------------------------------------------------------------------

    def export_text(self, correlation_id: Optional[UUID] = None) -> str:
        """Serialize the whole ledger to interchange text."""
        expenses = self._store.load()
        if self._audit_logger:
            self._audit_logger.log_ledger_exported(
                record_count=len(expenses),
                correlation_id=correlation_id,
            )
        return to_text(expenses)

    def export_filename(self, reference_date: Optional[Union[calendar_date, str]] = None) -> str:
        return export_filename(reference_date)

    def import_text(
        self,
        text: str,
        correlation_id: Optional[UUID] = None,
    ) -> ImportResult:
        """
        Merge interchange text into the ledger by id.

        When the text holds no usable expense the ledger is not touched.
        """
        correlation_id = correlation_id or create_correlation_id()
        decoded = decode(text, self._validator)

        if not decoded.expenses:
            if self._audit_logger:
                self._audit_logger.log_import_empty(
                    dropped=decoded.dropped_rows,
                    correlation_id=correlation_id,
                )
            return ImportResult(dropped_rows=decoded.dropped_rows)

        merged = merge(self._store.load(), decoded.expenses)
        self._save(merged, "import", correlation_id)

        if self._audit_logger:
            self._audit_logger.log_ledger_imported(
                imported=len(decoded.expenses),
                dropped=decoded.dropped_rows,
                total=len(merged),
                correlation_id=correlation_id,
            )
        return ImportResult(
            imported=len(decoded.expenses),
            dropped_rows=decoded.dropped_rows,
            total=len(merged),
            saved=True,
        )

    async def import_file(
        self,
        path: Union[str, Path],
        correlation_id: Optional[UUID] = None,
    ) -> ImportResult:
        """
        Read an interchange file in full, then merge it into the ledger.

        Reading is the only step that waits; decoding and merging happen
        once the whole text is available. Bytes that are not valid UTF-8
        are replaced rather than failing the import.
        """
        text = await asyncio.to_thread(
            Path(path).read_text,
            encoding="utf-8-sig",
            errors="replace",
        )
        return self.import_text(text, correlation_id)


def create_ledger_store(settings: Optional[Settings] = None) -> LedgerStore:
    """Build the ledger store for the configured backend."""
    settings = settings or get_settings()
    app = settings.app

    if app.storage_backend == "memory":
        return KeyValueLedgerStore()
    if app.storage_backend == "google_sheets":
        from expense_tracker.services.storage.google_sheets import (
            GoogleSheetsClient,
            GoogleSheetsLedgerStore,
        )
        return GoogleSheetsLedgerStore(GoogleSheetsClient(settings.google_sheets))
    return JsonFileLedgerStore(app.data_file)


def create_ledger_service(
    settings: Optional[Settings] = None,
    store: Optional[LedgerStore] = None,
) -> LedgerService:
    """
    Factory function to create the ledger service.

    Args:
        settings: Settings to use (defaults to the cached settings)
        store: Store to use instead of the configured backend

    Returns:
        LedgerService with an in-memory audit trail
    """
    settings = settings or get_settings()
    app = settings.app
    configure_logging(app.log_level, app.log_json)

    if store is None:
        store = create_ledger_store(settings)

    logger.info("ledger_service_created", backend=app.storage_backend)
    return LedgerService(
        store=store,
        audit_logger=AuditLogger(InMemoryAuditStorage()),
    )
