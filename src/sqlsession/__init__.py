"""sqlsession: session-scoped SQL execution over DB-API drivers."""

from sqlsession.connection import ConnectionAttributes
from sqlsession.cursor import ResultCursorSequence, WrappedRow
from sqlsession.errors import (
    ColumnNotFoundError,
    ConfigurationError,
    GeneratedKeyNotRetrievableError,
    InvalidKeySelectorError,
    NoSessionError,
    ReadOnlySessionError,
    SqlSessionError,
    StaleRowError,
    TooManyRowsError,
    TransactionNotActiveError,
)
from sqlsession.keys import ByIndex, ByName
from sqlsession.models import SessionConfig
from sqlsession.session import ActiveSession, DBSession, NoSession, RowStream
from sqlsession.settings import GlobalSettings, SettingsProvider, configure, global_settings

__version__ = "0.1.0"

__all__ = [
    "ActiveSession",
    "ByIndex",
    "ByName",
    "ColumnNotFoundError",
    "ConfigurationError",
    "ConnectionAttributes",
    "DBSession",
    "GeneratedKeyNotRetrievableError",
    "GlobalSettings",
    "InvalidKeySelectorError",
    "NoSession",
    "NoSessionError",
    "ReadOnlySessionError",
    "ResultCursorSequence",
    "RowStream",
    "SessionConfig",
    "SettingsProvider",
    "SqlSessionError",
    "StaleRowError",
    "TooManyRowsError",
    "TransactionNotActiveError",
    "WrappedRow",
    "__version__",
    "configure",
    "global_settings",
]
