"""Tests for environment-driven configuration."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from bookkeeping.config import (
    LedgerSettings,
    Settings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "BOOKKEEPING_STORAGE_BACKEND",
        "BOOKKEEPING_STORAGE_DATA_DIR",
        "BOOKKEEPING_STORAGE_RECORDS_KEY",
        "BOOKKEEPING_LEDGER_GROUP_PAGE_SIZE",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestDefaults:
    def test_storage_defaults(self):
        storage = StorageSettings()
        assert storage.backend == "file"
        assert storage.data_dir == Path(".bookkeeping")
        assert storage.records_key == "bookkeeping_records_v1"

    def test_ledger_defaults(self):
        ledger = LedgerSettings()
        assert ledger.group_page_size == 10
        assert ledger.export_indent == 2


class TestEnvironmentOverrides:
    def test_storage_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("BOOKKEEPING_STORAGE_BACKEND", "memory")
        monkeypatch.setenv("BOOKKEEPING_STORAGE_DATA_DIR", str(tmp_path))
        storage = Settings().storage
        assert storage.backend == "memory"
        assert storage.data_dir == tmp_path

    def test_page_size_from_env(self, monkeypatch):
        monkeypatch.setenv("BOOKKEEPING_LEDGER_GROUP_PAGE_SIZE", "25")
        assert Settings().ledger.group_page_size == 25

    def test_log_level_from_env(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        assert Settings().app.log_level == "DEBUG"


class TestInvalidSettings:
    @pytest.mark.parametrize("key", ["", "../records", "a/b", "has space"])
    def test_records_key_must_be_file_safe(self, key):
        with pytest.raises(ValidationError):
            StorageSettings(records_key=key)

    def test_unknown_backend(self):
        with pytest.raises(ValidationError):
            StorageSettings(backend="cloud")

    @pytest.mark.parametrize("size", [0, 501])
    def test_page_size_bounds(self, size):
        with pytest.raises(ValidationError):
            LedgerSettings(group_page_size=size)

    def test_validate_all_settings_reports_bad_section(self, monkeypatch):
        monkeypatch.setenv("BOOKKEEPING_LEDGER_GROUP_PAGE_SIZE", "0")
        results = validate_all_settings()
        assert results["storage"] is True
        assert results["app"] is True
        assert results["ledger"] is False
        assert "group_page_size" in results["ledger_error"]

    def test_validate_all_settings_clean(self):
        assert validate_all_settings() == {"storage": True, "ledger": True, "app": True}


def test_get_settings_is_cached():
    assert get_settings() is get_settings()
