"""Tests for Settings configuration class."""

from pathlib import Path

import pytest

ENV_VARS = ["TRACKER_DB_PATH", "DEFAULT_PAGE_LIMIT", "MAX_PAGE_LIMIT", "LOG_LEVEL"]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep developer environment variables out of these tests."""
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)


class TestSettingsDefaults:
    """Test that Settings loads sensible defaults."""

    def test_settings_loads_with_defaults(self):
        """Settings should load with default values when no env vars are set."""
        from src.config.settings import Settings

        settings = Settings(_env_file=None)

        assert settings.tracker_db_path == Path("./data/tracker.db")
        assert settings.default_page_limit == 20
        assert settings.max_page_limit == 100
        assert settings.log_level == "INFO"


class TestSettingsFromEnvironment:
    """Test that Settings reads from environment variables."""

    def test_settings_reads_db_path_from_env(self, monkeypatch):
        """Settings should read TRACKER_DB_PATH from environment."""
        monkeypatch.setenv("TRACKER_DB_PATH", "/custom/tracker.db")

        from src.config.settings import Settings

        settings = Settings(_env_file=None)
        assert settings.tracker_db_path == Path("/custom/tracker.db")

    def test_settings_reads_page_limits_from_env(self, monkeypatch):
        """Settings should read page limits from environment."""
        monkeypatch.setenv("DEFAULT_PAGE_LIMIT", "10")
        monkeypatch.setenv("MAX_PAGE_LIMIT", "50")

        from src.config.settings import Settings

        settings = Settings(_env_file=None)
        assert settings.default_page_limit == 10
        assert settings.max_page_limit == 50

    def test_settings_normalizes_log_level(self, monkeypatch):
        """Settings should accept log levels in any case."""
        monkeypatch.setenv("LOG_LEVEL", "debug")

        from src.config.settings import Settings

        settings = Settings(_env_file=None)
        assert settings.log_level == "DEBUG"


class TestSettingsValidation:
    """Test that Settings validates values correctly."""

    def test_settings_validates_log_level(self, monkeypatch):
        """Settings should only accept known log levels."""
        monkeypatch.setenv("LOG_LEVEL", "VERBOSE")

        from src.config.settings import Settings

        with pytest.raises(ValueError):
            Settings(_env_file=None)

    def test_settings_validates_page_limit_positive(self, monkeypatch):
        """Settings should require default_page_limit to be positive."""
        monkeypatch.setenv("DEFAULT_PAGE_LIMIT", "0")

        from src.config.settings import Settings

        with pytest.raises(ValueError):
            Settings(_env_file=None)

    def test_settings_rejects_default_above_max(self, monkeypatch):
        """The default page size must fit under the cap."""
        monkeypatch.setenv("DEFAULT_PAGE_LIMIT", "200")

        from src.config.settings import Settings

        with pytest.raises(ValueError, match="default_page_limit"):
            Settings(_env_file=None)


class TestSettingsSingleton:
    """Test the settings singleton helpers."""

    def test_get_settings_caches_until_reset(self):
        from src.config.settings import get_settings, reset_settings

        first = get_settings()
        assert get_settings() is first

        reset_settings()
        assert get_settings() is not first
