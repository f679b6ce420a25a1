"""
Interchange Codec

Reads and writes the ledger as quoted comma-separated text so it can be
opened in a spreadsheet and imported back.

FORMAT:
    id,date,amount,category,note
    "3f1c...","2024-01-05","10.50","Food","Lunch with ""Sam"" today"

- The header line is plain; every data field is double-quoted
- A quote inside a field is written twice
- Lines are separated by a newline

DESIGN DECISION: Import is forgiving. A row that cannot be read, or that
fails the expense rules, is dropped and the rest of the text is still
imported. Import never raises for bad rows.

Merging is by id: an imported row replaces the stored expense with the
same id as a whole, or is added if the id is new. Importing the same
file twice leaves the ledger exactly as importing it once.
"""

import re
from collections.abc import Iterable, Sequence
from datetime import date
from typing import Optional, Union

import structlog
from pydantic import BaseModel, Field

from expense_tracker.models.expense import DEFAULT_CATEGORY, Expense
from expense_tracker.queries.aggregation import reference_day
from expense_tracker.validation.validator import ExpenseValidator


logger = structlog.get_logger(__name__)

CSV_COLUMNS = ["id", "date", "amount", "category", "note"]
HEADER_LINE = ",".join(CSV_COLUMNS)

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


class DecodeResult(BaseModel):
    """Expenses read from interchange text, plus how many rows were dropped."""

    expenses: list[Expense] = Field(default_factory=list)
    dropped_rows: int = Field(default=0, ge=0)

    @property
    def row_count(self) -> int:
        return len(self.expenses) + self.dropped_rows


# =============================================================================
# ENCODING
# =============================================================================

def quote_field(value: object) -> str:
    """Wrap a value in quotes, doubling any quote inside it."""
    text = "" if value is None else str(value)
    return '"' + text.replace('"', '""') + '"'


def encode_row(fields: Iterable[object]) -> str:
    return ",".join(quote_field(value) for value in fields)


def to_text(expenses: Iterable[Expense]) -> str:
    """Serialize expenses with a header line, one quoted row per expense."""
    rows = [HEADER_LINE]
    for expense in expenses:
        rows.append(encode_row([
            expense.id,
            expense.date,
            expense.amount,
            expense.category,
            expense.note,
        ]))
    return "\n".join(rows)


def export_filename(reference_date: Optional[Union[date, str]] = None) -> str:
    """File name offered for an export, e.g. `expenses_2024-01-05.csv`."""
    return f"expenses_{reference_day(reference_date)}.csv"


# =============================================================================
# DECODING
# =============================================================================

def split_row(line: str) -> list[str]:
    """
    Split one line into fields.

    A quote toggles quoted mode; two quotes inside quoted mode are a literal
    quote; a comma separates fields only outside quotes.
    """
    cells = []
    current = []
    inside = False
    i = 0

    while i < len(line):
        ch = line[i]
        if ch == '"' and inside and line[i + 1:i + 2] == '"':
            current.append('"')
            i += 2
            continue
        if ch == '"':
            inside = not inside
        elif ch == "," and not inside:
            cells.append("".join(current))
            current = []
        else:
            current.append(ch)
        i += 1

    cells.append("".join(current))
    return cells


def text_lines(text: str) -> list[str]:
    """Split text on CR/LF and drop blank lines."""
    return [line for line in _LINE_BREAK.split(text) if line.strip()]


def decode(text: str, validator: Optional[ExpenseValidator] = None) -> DecodeResult:
    """
    Parse interchange text into expenses.

    The first non-blank line is the header and is skipped without being
    checked. Rows with fewer than five fields, or that fail the expense
    rules, are dropped.
    """
    validator = validator or ExpenseValidator()
    lines = text_lines(text or "")

    expenses = []
    dropped = 0
    for line in lines[1:]:
        cells = split_row(line)
        if len(cells) < len(CSV_COLUMNS):
            dropped += 1
            continue

        result = validator.accept({
            "id": cells[0],
            "date": cells[1],
            "amount": cells[2],
            "category": cells[3] or DEFAULT_CATEGORY,
            "note": cells[4],
        })
        if not result.accepted:
            dropped += 1
            continue
        expenses.append(result.expense)

    if dropped:
        logger.info("import_rows_dropped", dropped=dropped, kept=len(expenses))

    return DecodeResult(expenses=expenses, dropped_rows=dropped)


def from_text(text: str) -> list[Expense]:
    """Parse interchange text, keeping only the readable, valid rows."""
    return decode(text).expenses


# =============================================================================
# MERGE
# =============================================================================

def merge(existing: Sequence[Expense], decoded: Iterable[Expense]) -> list[Expense]:
    """
    Merge imported expenses into a snapshot by id.

    An imported expense replaces the stored one with the same id (whole
    record, no field-level merge) or is appended when the id is new.
    Stored expenses keep their position.
    """
    by_id = {expense.id: expense for expense in existing}
    for expense in decoded:
        by_id[expense.id] = expense
    return list(by_id.values())
