"""Process-wide settings and per-session overrides.

GlobalSettings holds the active SessionSettings plus the hooks that
cannot live in a pydantic model (formatter, failure listeners).
A SettingsProvider carries optional per-session overrides; every
lookup falls back to the global value at call time, so changes made
through configure() reach sessions that are already open.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

from sqlsession.config.models import SessionSettings, SqlTimingConfig


class SqlFormatter(Protocol):
    """Pretty-printer used when logging failed SQL."""

    def format(self, sql: str) -> str:
        """Return a human-readable rendering of sql."""
        ...


QueryFailureListener = Callable[[str, Sequence[Any], Exception], None]
TaggedQueryFailureListener = Callable[[str, Sequence[Any], Exception, Sequence[str]], None]


def _ignore_failure(*_: Any) -> None:
    pass


@dataclass
class GlobalSettings:
    """Mutable process-wide defaults."""

    config: SessionSettings = field(default_factory=SessionSettings)
    sql_formatter: SqlFormatter | None = None
    query_failure_listener: QueryFailureListener = _ignore_failure
    tagged_query_failure_listener: TaggedQueryFailureListener = _ignore_failure


global_settings = GlobalSettings()


def configure(
    config: SessionSettings | None = None,
    *,
    sql_formatter: SqlFormatter | None = None,
    query_failure_listener: QueryFailureListener | None = None,
    tagged_query_failure_listener: TaggedQueryFailureListener | None = None,
) -> GlobalSettings:
    """Replace process-wide defaults. Arguments left as None are kept."""
    if config is not None:
        global_settings.config = config
    if sql_formatter is not None:
        global_settings.sql_formatter = sql_formatter
    if query_failure_listener is not None:
        global_settings.query_failure_listener = query_failure_listener
    if tagged_query_failure_listener is not None:
        global_settings.tagged_query_failure_listener = tagged_query_failure_listener
    return global_settings


def reset_global_settings() -> None:
    """Restore the built-in defaults."""
    global_settings.config = SessionSettings()
    global_settings.sql_formatter = None
    global_settings.query_failure_listener = _ignore_failure
    global_settings.tagged_query_failure_listener = _ignore_failure


@dataclass(frozen=True)
class SettingsProvider:
    """Per-session settings overrides.

    Any field left as None resolves to the matching global value
    each time it is read.
    """

    driver_names_for_column_name_key_retrieval: Sequence[str] | None = None
    logging_sql_errors: bool | None = None
    logging_connections: bool | None = None
    jta_data_source_compatible: bool | None = None
    logging_sql_and_time: SqlTimingConfig | None = None
    sql_formatter: SqlFormatter | None = None
    query_failure_listener: QueryFailureListener | None = None
    tagged_query_failure_listener: TaggedQueryFailureListener | None = None

    @classmethod
    def default(cls) -> "SettingsProvider":
        """Provider with no overrides."""
        return cls()

    def column_name_key_drivers(self) -> Sequence[str]:
        if self.driver_names_for_column_name_key_retrieval is not None:
            return self.driver_names_for_column_name_key_retrieval
        return global_settings.config.driver_names_for_column_name_key_retrieval

    def is_logging_sql_errors(self) -> bool:
        if self.logging_sql_errors is not None:
            return self.logging_sql_errors
        return global_settings.config.logging_sql_errors

    def is_logging_connections(self) -> bool:
        if self.logging_connections is not None:
            return self.logging_connections
        return global_settings.config.logging_connections

    def is_jta_data_source_compatible(self) -> bool:
        if self.jta_data_source_compatible is not None:
            return self.jta_data_source_compatible
        return global_settings.config.jta_data_source_compatible

    def sql_timing(self) -> SqlTimingConfig:
        if self.logging_sql_and_time is not None:
            return self.logging_sql_and_time
        return global_settings.config.logging_sql_and_time

    def formatter(self) -> SqlFormatter | None:
        if self.sql_formatter is not None:
            return self.sql_formatter
        return global_settings.sql_formatter

    def failure_listener(self) -> QueryFailureListener:
        if self.query_failure_listener is not None:
            return self.query_failure_listener
        return global_settings.query_failure_listener

    def tagged_failure_listener(self) -> TaggedQueryFailureListener:
        if self.tagged_query_failure_listener is not None:
            return self.tagged_query_failure_listener
        return global_settings.tagged_query_failure_listener
