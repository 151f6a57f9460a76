"""
Unit tests for schedulen/config.py

Tests Settings defaults, environment variable loading, validation and
configuration caching behavior.
"""

import pytest
from pydantic import ValidationError

from schedulen.config import DEVELOPMENT_SESSION_SECRET, Settings, get_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep host environment variables out of these tests."""
    for name in (
        "PYTHON_ENV",
        "LOG_LEVEL",
        "DATABASE_URL",
        "SESSION_SECRET_KEY",
        "UNTIMED_EXPORT_START",
        "ATTENDEES_LABEL",
    ):
        monkeypatch.delenv(name, raising=False)


class TestSettingsDefaults:
    """Test Settings initialization with default values."""

    def test_settings_defaults(self):
        """Settings should initialize with correct default values."""
        settings = Settings(_env_file=None)

        assert settings.python_env == "development"
        assert settings.log_level == "INFO"
        assert settings.database_url == "sqlite:///./data/schedulen.db"
        assert settings.db_pool_size == 20
        assert settings.db_pool_timeout == 2.0
        assert settings.session_secret_key == DEVELOPMENT_SESSION_SECRET
        assert settings.session_max_age_seconds == 86400
        assert settings.ical_product_id == "-//ScheduleN//ScheduleN App//EN"
        assert settings.attendees_label == "Attendees"
        assert settings.untimed_export_start is None

    def test_is_development_default(self):
        settings = Settings(_env_file=None)
        assert settings.is_development is True
        assert settings.is_production is False

    def test_database_kind(self):
        assert Settings(_env_file=None).uses_sqlite is True
        postgres = Settings(_env_file=None, database_url="postgresql://u:p@db/schedulen")
        assert postgres.uses_postgresql is True
        assert postgres.uses_sqlite is False


class TestSettingsEnvironmentVariables:
    """Test Settings loading from environment variables."""

    def test_settings_from_env_vars(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("DATABASE_URL", "sqlite:///./other.db")
        monkeypatch.setenv("ATTENDEES_LABEL", "参加者")

        settings = Settings(_env_file=None)

        assert settings.log_level == "DEBUG"
        assert settings.database_url == "sqlite:///./other.db"
        assert settings.attendees_label == "参加者"

    def test_invalid_log_level_rejected(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "LOUD")
        with pytest.raises(ValidationError):
            Settings(_env_file=None)


class TestUntimedExportStart:
    """Test validation of the fixed-time fallback for untimed options."""

    @pytest.mark.parametrize("value,expected", [("10:00", "10:00"), ("9:30", "09:30"), ("", None)])
    def test_normalized(self, value, expected):
        assert Settings(_env_file=None, untimed_export_start=value).untimed_export_start == expected

    @pytest.mark.parametrize("value", ["10", "25:00", "10:60", "ten"])
    def test_invalid(self, value):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, untimed_export_start=value)


class TestProductionValidation:
    """Test validate_production_config()."""

    def test_development_always_passes(self):
        Settings(_env_file=None).validate_production_config()

    def test_production_rejects_sqlite_and_dev_secret(self):
        settings = Settings(_env_file=None, python_env="production")

        with pytest.raises(ValueError) as exc_info:
            settings.validate_production_config()

        message = str(exc_info.value)
        assert "PostgreSQL" in message
        assert "SESSION_SECRET_KEY" in message

    def test_production_valid(self):
        settings = Settings(
            _env_file=None,
            python_env="production",
            database_url="postgresql://u:p@db/schedulen",
            session_secret_key="a-real-secret",
        )
        settings.validate_production_config()


class TestGetSettings:
    """Test settings caching."""

    def test_get_settings_is_cached(self):
        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
        finally:
            get_settings.cache_clear()
