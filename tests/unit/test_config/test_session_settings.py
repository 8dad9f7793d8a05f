"""Tests for SessionSettings and nested models."""

import pytest
from pydantic import ValidationError

from sqlsession.config.models import LoggingConfig, SessionSettings, SqlTimingConfig


class TestSessionSettings:
    """Test root settings model."""

    def test_defaults(self) -> None:
        settings = SessionSettings()
        assert settings.driver_names_for_column_name_key_retrieval == ["psycopg", "psycopg2", "pg8000"]
        assert settings.logging_sql_and_time == SqlTimingConfig()
        assert settings.logging == LoggingConfig()

    def test_blank_driver_names_are_dropped(self) -> None:
        settings = SessionSettings(driver_names_for_column_name_key_retrieval=[" psycopg ", "", "  "])
        assert settings.driver_names_for_column_name_key_retrieval == ["psycopg"]

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SQLSESSION_LOGGING_SQL_ERRORS", "false")
        monkeypatch.setenv("SQLSESSION_LOGGING_SQL_AND_TIME__ENABLED", "true")

        settings = SessionSettings()
        assert settings.logging_sql_errors is False
        assert settings.logging_sql_and_time.enabled is True


class TestSqlTimingConfig:
    """Test SQL timing log settings."""

    def test_threshold_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            SqlTimingConfig(warning_threshold_millis=0)

    def test_level_restricted(self) -> None:
        with pytest.raises(ValidationError):
            SqlTimingConfig(level="ERROR")


class TestLoggingConfig:
    """Test logging settings."""

    def test_invalid_format(self) -> None:
        with pytest.raises(ValidationError):
            LoggingConfig(format="xml")
