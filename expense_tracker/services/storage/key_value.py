"""
Key-Value Storage Implementation

DESIGN DECISION: The ledger is stored the way a browser would keep it in
local storage: two string entries in a key-value medium.

    daily_expense_tracker_v1         -> JSON list of expense objects
    daily_expense_tracker_budget_v1  -> budget as text

Any `MutableMapping[str, str]` can be the medium. A plain dict gives an
in-memory ledger (tests, throwaway sessions); `JsonFileMedium` keeps the
mapping in a JSON file on disk.

TRADEOFFS:
- The whole ledger is rewritten on every save (fine for personal use)
- Unreadable entries are dropped on load rather than repaired
"""

import json
import os
import tempfile
from collections.abc import Iterator, MutableMapping, Sequence
from decimal import Decimal
from pathlib import Path
from typing import Optional, Union

import structlog

from expense_tracker.models.expense import Expense
from expense_tracker.services.storage.interface import (
    BudgetStore,
    LedgerStore,
    StorageError,
)
from expense_tracker.validation.validator import ExpenseValidator, parse_amount


logger = structlog.get_logger(__name__)

EXPENSES_KEY = "daily_expense_tracker_v1"
BUDGET_KEY = "daily_expense_tracker_budget_v1"


class JsonFileMedium(MutableMapping):
    """
    String key-value mapping persisted to a JSON file.

    Every write replaces the file atomically (temp file + rename), so a
    crash mid-write leaves the previous contents intact.
    """

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("medium_unreadable", path=str(self._path), error=str(e))
            return {}
        if not isinstance(data, dict):
            logger.warning("medium_unreadable", path=str(self._path), error="not an object")
            return {}
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def _write(self, data: dict[str, str]) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                prefix=".ledger_", suffix=".json", dir=self._path.parent
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f, ensure_ascii=False)
                os.replace(tmp_path, self._path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
                raise
        except OSError as e:
            raise StorageError(f"Failed to write {self._path}: {e}")

    def __getitem__(self, key: str) -> str:
        return self._read()[key]

    def __setitem__(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def __delitem__(self, key: str) -> None:
        data = self._read()
        del data[key]
        self._write(data)

    def __iter__(self) -> Iterator[str]:
        return iter(self._read())

    def __len__(self) -> int:
        return len(self._read())


class KeyValueLedgerStore(LedgerStore, BudgetStore):
    """
    Ledger and budget stored as two entries of a key-value medium.

    With no medium given, the store keeps everything in memory.
    """

    def __init__(
        self,
        medium: Optional[MutableMapping] = None,
        validator: Optional[ExpenseValidator] = None,
    ):
        self._medium = medium if medium is not None else {}
        self._validator = validator or ExpenseValidator()

    @property
    def medium(self) -> MutableMapping:
        return self._medium

    def load(self) -> list[Expense]:
        """Load the ledger, dropping anything unreadable."""
        raw = self._medium.get(EXPENSES_KEY)
        if not raw:
            return []

        try:
            items = json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.warning("ledger_corrupt", key=EXPENSES_KEY, error=str(e))
            return []

        if not isinstance(items, list):
            logger.warning("ledger_corrupt", key=EXPENSES_KEY, error="not a list")
            return []

        return self._validator.sanitize(items)

    def save(self, expenses: Sequence[Expense]) -> None:
        payload = json.dumps([expense.model_dump(mode="json") for expense in expenses])
        self._medium[EXPENSES_KEY] = payload
        logger.debug("ledger_saved", record_count=len(expenses))

    def load_budget(self) -> Optional[Decimal]:
        raw = self._medium.get(BUDGET_KEY)
        if not raw:
            return None
        amount = parse_amount(raw)
        if amount is None or amount <= 0:
            return None
        return amount

    def save_budget(self, value: Optional[Decimal]) -> None:
        if value is None:
            self._medium.pop(BUDGET_KEY, None)
            return
        amount = parse_amount(value)
        if amount is None or amount <= 0:
            raise ValueError(f"Budget must be a positive amount, got {value!r}")
        self._medium[BUDGET_KEY] = str(amount)


class JsonFileLedgerStore(KeyValueLedgerStore):
    """Key-value ledger kept in a JSON file on disk."""

    def __init__(
        self,
        path: Union[str, Path],
        validator: Optional[ExpenseValidator] = None,
    ):
        super().__init__(JsonFileMedium(path), validator)
