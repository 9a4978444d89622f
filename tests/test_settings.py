"""Tests for configuration loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from permission_journal.config import (
    AppSettings,
    InsightSettings,
    Settings,
    StoreSettings,
    get_settings,
    validate_all_settings,
)


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestStoreSettings:
    """Tests for StoreSettings."""

    def test_defaults(self, monkeypatch):
        """Test store defaults."""
        monkeypatch.delenv("JOURNAL_STORE_DB_PATH", raising=False)
        settings = StoreSettings()
        assert settings.db_path.endswith("MoneyPermissionJournal.sqlite")
        assert "~" not in settings.db_path
        assert settings.in_memory is False
        assert settings.init_timeout_seconds == 10.0

    def test_environment_overrides(self, monkeypatch, tmp_path):
        """Test JOURNAL_STORE_ variables override defaults."""
        monkeypatch.setenv("JOURNAL_STORE_DB_PATH", str(tmp_path / "j.sqlite"))
        monkeypatch.setenv("JOURNAL_STORE_IN_MEMORY", "true")
        settings = StoreSettings()
        assert settings.db_path == str(tmp_path / "j.sqlite")
        assert settings.in_memory is True

    def test_tilde_is_expanded(self):
        """Test ~ expands to the home directory."""
        settings = StoreSettings(db_path="~/journal.sqlite")
        assert settings.db_path == str(Path.home() / "journal.sqlite")

    @pytest.mark.parametrize("timeout", [0, -1, 500])
    def test_timeout_bounds(self, timeout):
        """Test the timeout must be positive and bounded."""
        with pytest.raises(ValidationError):
            StoreSettings(init_timeout_seconds=timeout)

    def test_blank_path_rejected(self):
        """Test a blank database path fails validation."""
        with pytest.raises(ValidationError):
            StoreSettings(db_path="  ")


class TestOtherSettings:
    """Tests for InsightSettings, AppSettings and the root container."""

    def test_insight_defaults(self):
        """Test insight defaults."""
        settings = InsightSettings()
        assert settings.high_impact_threshold == 8
        assert settings.uncategorized_label == "Uncategorized"

    def test_log_level_normalized(self):
        """Test log levels are upper-cased and checked."""
        assert AppSettings(log_level="debug").log_level == "DEBUG"
        with pytest.raises(ValidationError):
            AppSettings(log_level="loud")

    def test_log_format_restricted(self):
        """Test only json and console formats are accepted."""
        with pytest.raises(ValidationError):
            AppSettings(log_format="xml")

    def test_get_settings_is_cached(self):
        """Test get_settings returns one instance."""
        assert get_settings() is get_settings()

    def test_validate_all_settings(self, monkeypatch):
        """Test each settings group reports its own failure."""
        assert validate_all_settings(Settings()) == {"store": True, "insights": True, "app": True}

        monkeypatch.setenv("JOURNAL_INSIGHTS_HIGH_IMPACT_THRESHOLD", "99")
        results = validate_all_settings(Settings())
        assert results["insights"] is False
        assert "insights_error" in results
