"""Tests for settings loaded from the environment."""

import pytest
from pathlib import Path

from pydantic import ValidationError

from expense_tracker.config import AppSettings, GoogleSheetsSettings


class TestAppSettings:
    """Tests for AppSettings."""

    def test_defaults(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        for name in ("STORAGE_BACKEND", "DATA_FILE", "LOG_LEVEL", "LOG_JSON"):
            monkeypatch.delenv(name, raising=False)

        settings = AppSettings()
        assert settings.storage_backend == "json_file"
        assert settings.data_file == Path("data/expenses.json")
        assert settings.log_level == "INFO"

    def test_reads_environment(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("STORAGE_BACKEND", "memory")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        monkeypatch.setenv("LOG_JSON", "false")

        settings = AppSettings()
        assert settings.storage_backend == "memory"
        assert settings.log_level == "DEBUG"
        assert settings.log_json is False

    def test_rejects_unknown_backend(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("STORAGE_BACKEND", "postgres")
        with pytest.raises(ValidationError):
            AppSettings()

    def test_rejects_unknown_log_level(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("LOG_LEVEL", "loud")
        with pytest.raises(ValidationError):
            AppSettings()


class TestGoogleSheetsSettings:
    def test_prefixed_environment(self, monkeypatch, tmp_path):
        credentials = tmp_path / "credentials.json"
        credentials.write_text("{}", encoding="utf-8")
        monkeypatch.setenv("GOOGLE_SHEETS_CREDENTIALS_PATH", str(credentials))
        monkeypatch.setenv("GOOGLE_SHEETS_SPREADSHEET_ID", "sheet-123")

        settings = GoogleSheetsSettings()
        assert settings.spreadsheet_id == "sheet-123"
        assert settings.expenses_sheet_name == "Expenses"
        assert settings.settings_sheet_name == "Settings"

    def test_missing_credentials_file_warns(self, monkeypatch, tmp_path):
        monkeypatch.setenv("GOOGLE_SHEETS_CREDENTIALS_PATH", str(tmp_path / "missing.json"))
        monkeypatch.setenv("GOOGLE_SHEETS_SPREADSHEET_ID", "sheet-123")

        with pytest.warns(UserWarning):
            GoogleSheetsSettings()
