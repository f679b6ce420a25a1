"""Tests for the storage backends (no real API calls)."""

import json
import pytest
from decimal import Decimal
from unittest.mock import MagicMock

from expense_tracker.models.audit import AuditEvent, AuditEventType
from expense_tracker.models.expense import Expense
from expense_tracker.orchestrator import LedgerService
from expense_tracker.services.storage import (
    BUDGET_KEY,
    ConnectionError,
    EXPENSES_KEY,
    InMemoryAuditStorage,
    JsonFileLedgerStore,
    JsonFileMedium,
    KeyValueLedgerStore,
    StorageError,
)
from expense_tracker.services.storage.google_sheets import (
    EXPENSE_COLUMNS,
    GoogleSheetsLedgerStore,
)


def make(expense_id, amount="10", note=""):
    return Expense(
        id=expense_id,
        date="2024-01-05",
        amount=Decimal(amount),
        category="Food",
        note=note,
    )


class TestKeyValueLedgerStore:
    """Tests for the key-value ledger store over a plain dict."""

    def test_empty_medium_loads_nothing(self):
        assert KeyValueLedgerStore().load() == []

    def test_save_then_load(self):
        store = KeyValueLedgerStore()
        expenses = [make("a", "10.50", "lunch"), make("b", "3")]
        store.save(expenses)
        assert store.load() == expenses

    def test_saved_format_is_json_list(self):
        medium = {}
        KeyValueLedgerStore(medium).save([make("a", "10.50")])
        items = json.loads(medium[EXPENSES_KEY])
        assert items == [{
            "id": "a",
            "date": "2024-01-05",
            "amount": "10.50",
            "category": "Food",
            "note": "",
        }]

    @pytest.mark.parametrize("raw", ["{not json", '{"id": "a"}', "42", "null"])
    def test_corrupt_data_loads_as_empty(self, raw):
        assert KeyValueLedgerStore({EXPENSES_KEY: raw}).load() == []

    def test_invalid_entries_are_dropped(self):
        medium = {EXPENSES_KEY: json.dumps([
            {"id": "a", "date": "2024-01-05", "amount": 10, "category": "Food"},
            {"id": "b", "date": "2024-01-05", "amount": -2},
            {"id": "", "date": "2024-01-05", "amount": 2},
            {"id": "c", "date": "", "amount": 2},
            "junk",
            {"id": "a", "date": "2024-01-06", "amount": 99},
            {"id": "d", "date": "2024-01-07", "amount": "4", "category": ""},
        ])}
        loaded = KeyValueLedgerStore(medium).load()

        assert [e.id for e in loaded] == ["a", "d"]
        assert loaded[0].amount == Decimal("10")
        assert loaded[1].category == "Other"

    def test_save_overwrites_whole_collection(self):
        store = KeyValueLedgerStore()
        store.save([make("a"), make("b")])
        store.save([make("c")])
        assert [e.id for e in store.load()] == ["c"]


class TestKeyValueBudget:
    """Tests for the stored monthly budget."""

    def test_no_budget(self):
        assert KeyValueLedgerStore().load_budget() is None

    def test_save_and_load_budget(self):
        medium = {}
        store = KeyValueLedgerStore(medium)
        store.save_budget(Decimal("5000"))
        assert medium[BUDGET_KEY] == "5000"
        assert store.load_budget() == Decimal("5000")

    def test_clear_budget_removes_entry(self):
        medium = {}
        store = KeyValueLedgerStore(medium)
        store.save_budget(Decimal("5000"))
        store.save_budget(None)
        assert BUDGET_KEY not in medium
        assert store.load_budget() is None

    def test_clear_when_nothing_stored(self):
        KeyValueLedgerStore().save_budget(None)

    @pytest.mark.parametrize("raw", ["0", "-10", "abc", "NaN", ""])
    def test_unusable_stored_budget_is_absent(self, raw):
        assert KeyValueLedgerStore({BUDGET_KEY: raw}).load_budget() is None

    @pytest.mark.parametrize("value", [Decimal("0"), Decimal("-1"), "abc"])
    def test_rejects_non_positive_budget(self, value):
        with pytest.raises(ValueError):
            KeyValueLedgerStore().save_budget(value)


class TestJsonFileMedium:
    """Tests for the JSON file medium."""

    def test_missing_file_is_empty(self, tmp_path):
        medium = JsonFileMedium(tmp_path / "ledger.json")
        assert len(medium) == 0
        assert medium.get("x") is None

    def test_values_persist(self, tmp_path):
        path = tmp_path / "nested" / "ledger.json"
        JsonFileMedium(path)["k"] = "v"

        assert JsonFileMedium(path)["k"] == "v"
        assert json.loads(path.read_text(encoding="utf-8")) == {"k": "v"}

    def test_delete(self, tmp_path):
        medium = JsonFileMedium(tmp_path / "ledger.json")
        medium["k"] = "v"
        del medium["k"]
        assert "k" not in medium

    def test_unreadable_file_is_empty(self, tmp_path):
        path = tmp_path / "ledger.json"
        path.write_text("{broken", encoding="utf-8")
        assert dict(JsonFileMedium(path)) == {}

    def test_non_string_values_are_ignored(self, tmp_path):
        path = tmp_path / "ledger.json"
        path.write_text(json.dumps({"a": "1", "b": 2}), encoding="utf-8")
        assert dict(JsonFileMedium(path)) == {"a": "1"}

    def test_write_failure_raises_storage_error(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        medium = JsonFileMedium(blocker / "ledger.json")
        with pytest.raises(StorageError):
            medium["k"] = "v"

    def test_no_temp_files_left_behind(self, tmp_path):
        medium = JsonFileMedium(tmp_path / "ledger.json")
        medium["a"] = "1"
        medium["b"] = "2"
        assert [p.name for p in tmp_path.iterdir()] == ["ledger.json"]


class TestJsonFileLedgerStore:
    def test_ledger_and_budget_survive_reopen(self, tmp_path):
        path = tmp_path / "expenses.json"
        store = JsonFileLedgerStore(path)
        store.save([make("a", "12.25", "tea")])
        store.save_budget(Decimal("900"))

        reopened = JsonFileLedgerStore(path)
        assert reopened.load() == [make("a", "12.25", "tea")]
        assert reopened.load_budget() == Decimal("900")


class TestInMemoryAuditStorage:
    def test_newest_first_and_capped(self):
        storage = InMemoryAuditStorage(max_events=2)
        for index in range(3):
            storage.append_event(AuditEvent(
                event_type=AuditEventType.EXPENSE_ADDED,
                description=f"event {index}",
            ))

        recent = storage.get_recent_events()
        assert [e.description for e in recent] == ["event 2", "event 1"]
        assert len(storage.get_recent_events(limit=1)) == 1


class TestGoogleSheetsLedgerStore:
    """Tests for the Google Sheets store with a mocked client."""

    @pytest.fixture
    def client(self):
        return MagicMock()

    def test_load_skips_header_and_invalid_rows(self, client):
        client.get_expenses_sheet.return_value.get_all_values.return_value = [
            EXPENSE_COLUMNS,
            ["a", "2024-01-05", "10.50", "Food", "lunch"],
            ["b", "2024-01-05", "-1", "Food", ""],
            ["", "2024-01-05", "3", "Food", ""],
            ["c", "2024-01-06", "4"],
        ]
        loaded = GoogleSheetsLedgerStore(client).load()

        assert [e.id for e in loaded] == ["a", "c"]
        assert loaded[0].amount == Decimal("10.50")
        assert loaded[1].category == "Other"
        assert loaded[1].note == ""

    def test_load_failure_returns_empty(self, client):
        client.get_expenses_sheet.side_effect = RuntimeError("quota")
        assert GoogleSheetsLedgerStore(client).load() == []

    def test_save_refused_after_failed_load(self, client):
        sheet = MagicMock()
        client.get_expenses_sheet.side_effect = [RuntimeError("503 transient"), sheet]
        store = GoogleSheetsLedgerStore(client)

        assert store.load() == []
        with pytest.raises(ConnectionError):
            store.save([make("new")])

        sheet.clear.assert_not_called()
        sheet.update.assert_not_called()

    def test_save_allowed_once_load_recovers(self, client):
        sheet = MagicMock()
        sheet.get_all_values.return_value = [EXPENSE_COLUMNS]
        client.get_expenses_sheet.side_effect = [RuntimeError("503 transient"), sheet, sheet]
        store = GoogleSheetsLedgerStore(client)

        store.load()
        store.load()
        store.save([make("new")])

        sheet.clear.assert_called_once()

    def test_failed_load_does_not_wipe_ledger_on_add(self, client):
        sheet = MagicMock()
        sheet.get_all_values.return_value = [
            EXPENSE_COLUMNS,
            ["old1", "2024-01-01", "1", "Food", ""],
            ["old2", "2024-01-02", "2", "Food", ""],
        ]
        client.get_expenses_sheet.side_effect = [RuntimeError("503 transient"), sheet, sheet, sheet]
        service = LedgerService(store=GoogleSheetsLedgerStore(client))

        with pytest.raises(StorageError):
            service.add_expense("2024-01-05", "5", "Food")
        sheet.clear.assert_not_called()

        assert service.add_expense("2024-01-05", "5", "Food").accepted is True
        written = sheet.update.call_args.kwargs["values"]
        assert [row[0] for row in written[1:3]] == ["old1", "old2"]
        assert len(written) == 4

    def test_save_rewrites_sheet(self, client):
        sheet = client.get_expenses_sheet.return_value
        GoogleSheetsLedgerStore(client).save([make("a", "10.50", "lunch")])

        sheet.clear.assert_called_once()
        sheet.update.assert_called_once_with(
            values=[EXPENSE_COLUMNS, ["a", "2024-01-05", "10.50", "Food", "lunch"]],
            range_name="A1",
            value_input_option="RAW",
        )

    def test_budget_round_trip(self, client):
        sheet = client.get_settings_sheet.return_value
        store = GoogleSheetsLedgerStore(client)

        store.save_budget(Decimal("2500"))
        sheet.update_acell.assert_called_with("B1", "2500")

        sheet.acell.return_value.value = "2500"
        assert store.load_budget() == Decimal("2500")

    def test_clear_budget(self, client):
        sheet = client.get_settings_sheet.return_value
        GoogleSheetsLedgerStore(client).save_budget(None)
        sheet.update_acell.assert_called_with("B1", "")

    @pytest.mark.parametrize("raw", [None, "", "0", "abc"])
    def test_unusable_budget_cell(self, client, raw):
        client.get_settings_sheet.return_value.acell.return_value.value = raw
        assert GoogleSheetsLedgerStore(client).load_budget() is None
