"""Pydantic configuration models for sqlsession."""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings


class SqlTimingConfig(BaseModel):
    """Per-statement SQL and elapsed time logging."""

    enabled: bool = False
    level: Literal["TRACE", "DEBUG", "INFO"] = "DEBUG"
    single_line_mode: bool = False
    warning_enabled: bool = False
    warning_threshold_millis: int = Field(default=3000, ge=1)


class LoggingConfig(BaseModel):
    """Logging configuration for loguru."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["console", "json"] = "console"
    file: Path | None = None
    rotation: str = "10 MB"
    retention: str = "7 days"


class SessionSettings(BaseSettings):
    """Root configuration for sqlsession.

    Process-wide defaults consulted by every session unless the
    session's SettingsProvider overrides them.
    """

    driver_names_for_column_name_key_retrieval: list[str] = Field(
        default_factory=lambda: ["psycopg", "psycopg2", "pg8000"]
    )
    logging_sql_errors: bool = True
    logging_connections: bool = True
    jta_data_source_compatible: bool = False
    logging_sql_and_time: SqlTimingConfig = Field(default_factory=SqlTimingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {
        "env_prefix": "SQLSESSION_",
        "env_nested_delimiter": "__",
    }

    @field_validator("driver_names_for_column_name_key_retrieval")
    @classmethod
    def strip_driver_names(cls, v: list[str]) -> list[str]:
        """Drop blank entries and surrounding whitespace."""
        return [name.strip() for name in v if name.strip()]
