"""
Unit Tests - Configuration
"""
from datetime import date

import pytest
from pydantic import ValidationError

from sales_analytics.config import Settings
from sales_analytics.config.settings import DatabaseSettings, ReportingSettings, WarehouseSettings


class TestSettings:
    """Tests for settings sections"""

    def test_test_settings(self, test_settings):
        assert test_settings.app_env == "testing"
        assert not test_settings.is_production

    def test_invalid_environment(self):
        with pytest.raises(ValidationError):
            Settings(app_env="moon")

    def test_warehouse_from_env(self, monkeypatch):
        monkeypatch.setenv("WAREHOUSE_SOURCE", "DATABASE")
        monkeypatch.setenv("WAREHOUSE_FILE_FORMAT", "parquet")

        settings = WarehouseSettings()

        assert settings.source == "database"
        assert settings.file_format == "parquet"

    def test_invalid_file_format(self):
        with pytest.raises(ValidationError):
            WarehouseSettings(file_format="xlsx")

    def test_database_url_override(self):
        assert DatabaseSettings(url="sqlite+aiosqlite:///x.db").async_url == "sqlite+aiosqlite:///x.db"
        assert DatabaseSettings().async_url.startswith("postgresql+asyncpg://")

    def test_reference_date(self, monkeypatch):
        monkeypatch.setenv("REPORTING_REFERENCE_DATE", "2014-01-01")

        assert ReportingSettings().resolve_reference_date() == date(2014, 1, 1)

    def test_reference_date_defaults_to_today(self, monkeypatch):
        monkeypatch.delenv("REPORTING_REFERENCE_DATE", raising=False)

        assert ReportingSettings().resolve_reference_date() == date.today()
