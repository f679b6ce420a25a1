"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is offered as a storage backend because:
1. Non-technical users can view their expenses directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- Saving rewrites the whole Expenses sheet (the ledger is small)
- No transactions: the last save wins
- Amounts are written as raw text so they survive without float rounding

The implementation follows the abstract interface, so the ledger logic
does not know it is talking to a spreadsheet.
"""

from collections.abc import Sequence
from decimal import Decimal
from typing import Optional

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from expense_tracker.config import GoogleSheetsSettings, get_settings
from expense_tracker.models.expense import Expense
from expense_tracker.services.storage.interface import (
    BudgetStore,
    ConnectionError,
    LedgerStore,
    StorageError,
)
from expense_tracker.validation.validator import ExpenseValidator, parse_amount


logger = structlog.get_logger(__name__)

# Column order of the Expenses sheet
EXPENSE_COLUMNS = ["id", "date", "amount", "category", "note"]

# The budget lives in B1 of the Settings sheet, labelled in A1
BUDGET_LABEL = "monthly_budget"
BUDGET_LABEL_CELL = "A1"
BUDGET_VALUE_CELL = "B1"


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_expenses_sheet(self) -> gspread.Worksheet:
        """Get or create the Expenses worksheet."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(self._settings.expenses_sheet_name)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=self._settings.expenses_sheet_name,
                rows=1000,
                cols=len(EXPENSE_COLUMNS),
            )
            sheet.append_row(EXPENSE_COLUMNS)
        return sheet

    def get_settings_sheet(self) -> gspread.Worksheet:
        """Get or create the Settings worksheet."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(self._settings.settings_sheet_name)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=self._settings.settings_sheet_name,
                rows=10,
                cols=2,
            )
            sheet.update_acell(BUDGET_LABEL_CELL, BUDGET_LABEL)
        return sheet


class GoogleSheetsLedgerStore(LedgerStore, BudgetStore):
    """
    Google Sheets implementation of the ledger and budget stores.

    Expenses are stored as rows in a worksheet with one expense per row,
    below a header row.
    """

    def __init__(
        self,
        client: Optional[GoogleSheetsClient] = None,
        validator: Optional[ExpenseValidator] = None,
    ):
        self._client = client or GoogleSheetsClient()
        self._validator = validator or ExpenseValidator()
        self._load_error: Optional[str] = None

    def _expense_to_row(self, expense: Expense) -> list[str]:
        """Convert an Expense to a spreadsheet row."""
        return [
            expense.id,
            expense.date,
            str(expense.amount),
            expense.category,
            expense.note,
        ]

    def _row_to_payload(self, row: list) -> dict:
        """Convert a spreadsheet row to a raw expense payload."""
        def safe_get(index: int) -> str:
            try:
                return row[index]
            except IndexError:
                return ""

        return {
            column: safe_get(index)
            for index, column in enumerate(EXPENSE_COLUMNS)
        }

    def load(self) -> list[Expense]:
        """
        Load all expenses, dropping rows that are not valid expenses.

        If the sheet cannot be read the result is empty and saving is
        refused until a later load succeeds.
        """
        try:
            sheet = self._client.get_expenses_sheet()
            all_rows = sheet.get_all_values()[1:]  # Skip header
        except Exception as e:
            self._load_error = str(e)
            logger.warning("ledger_load_failed", backend="google_sheets", error=str(e))
            return []

        self._load_error = None
        payloads = [self._row_to_payload(row) for row in all_rows if row and row[0]]
        return self._validator.sanitize(payloads)

    def save(self, expenses: Sequence[Expense]) -> None:
        """
        Rewrite the Expenses sheet with the given snapshot.

        Raises:
            ConnectionError: If the last load failed, since the snapshot
                may be missing rows that are still on the sheet
            StorageError: If the sheet could not be written
        """
        if self._load_error is not None:
            raise ConnectionError(
                f"Expenses sheet was not loaded ({self._load_error}); "
                "refusing to overwrite it"
            )
        self._write_rows(expenses)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _write_rows(self, expenses: Sequence[Expense]) -> None:
        try:
            sheet = self._client.get_expenses_sheet()
            rows = [EXPENSE_COLUMNS] + [self._expense_to_row(e) for e in expenses]
            sheet.clear()
            sheet.update(
                values=rows,
                range_name="A1",
                value_input_option="RAW",
            )
        except Exception as e:
            raise StorageError(f"Failed to save expenses: {e}")

    def load_budget(self) -> Optional[Decimal]:
        try:
            sheet = self._client.get_settings_sheet()
            raw = sheet.acell(BUDGET_VALUE_CELL).value
        except Exception as e:
            logger.warning("budget_load_failed", backend="google_sheets", error=str(e))
            return None

        amount = parse_amount(raw)
        if amount is None or amount <= 0:
            return None
        return amount

    def save_budget(self, value: Optional[Decimal]) -> None:
        if value is not None:
            amount = parse_amount(value)
            if amount is None or amount <= 0:
                raise ValueError(f"Budget must be a positive amount, got {value!r}")
        try:
            sheet = self._client.get_settings_sheet()
            sheet.update_acell(BUDGET_VALUE_CELL, "" if value is None else str(amount))
        except Exception as e:
            raise StorageError(f"Failed to save budget: {e}")
