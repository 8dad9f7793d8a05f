"""SQLite adapter built on the standard library sqlite3 driver."""

import sqlite3
import time
from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager, nullcontext
from pathlib import Path
from typing import Any

from sqlsession.adapters.dbapi import DbApiConnection, DbApiStatement
from sqlsession.connection import ConnectionAttributes
from sqlsession.session import ActiveSession, DBSession
from sqlsession.settings import SettingsProvider

# SQLite VM instructions between deadline checks.
_PROGRESS_STEPS = 1000


@contextmanager
def _progress_deadline(raw: sqlite3.Connection, seconds: int) -> Iterator[None]:
    deadline = time.monotonic() + seconds
    raw.set_progress_handler(lambda: int(time.monotonic() > deadline), _PROGRESS_STEPS)
    try:
        yield
    finally:
        raw.set_progress_handler(None, _PROGRESS_STEPS)


class SqliteStatement(DbApiStatement):
    """Statement whose query timeout interrupts the SQLite VM.

    An interrupted statement raises sqlite3.OperationalError. The
    deadline covers execution, not rows fetched afterwards.
    """

    def _deadline(self) -> AbstractContextManager[Any]:
        if not self.query_timeout:
            return nullcontext()
        return _progress_deadline(self.raw, self.query_timeout)


class SqliteConnection(DbApiConnection):
    """DriverConnection over sqlite3.Connection."""

    statement_class = SqliteStatement

    def set_autocommit(self, enabled: bool) -> None:
        self.raw.isolation_level = None if enabled else ""

    def attributes(self) -> ConnectionAttributes:
        return ConnectionAttributes(
            driver_name="sqlite3",
            product_name="SQLite",
            product_version=sqlite3.sqlite_version,
        )


def connect_sqlite(
    database: Path | str,
    read_only: bool = False,
    settings: SettingsProvider | None = None,
    **kwargs: Any,
) -> SqliteConnection:
    """
    Open a SQLite database.

    Args:
        database: File path or ":memory:".
        read_only: Open the file with mode=ro so writes fail in SQLite itself.
        settings: Generated-key retrieval settings for the connection.
        **kwargs: Passed through to sqlite3.connect().
    """
    if read_only and str(database) != ":memory:":
        uri = f"{Path(database).resolve().as_uri()}?mode=ro"
        raw = sqlite3.connect(uri, uri=True, **kwargs)
    else:
        raw = sqlite3.connect(str(database), **kwargs)
    return SqliteConnection(raw, settings)


def open_sqlite_session(
    database: Path | str,
    read_only: bool = False,
    settings: SettingsProvider | None = None,
    time_zone: str | None = None,
) -> ActiveSession:
    """Open a SQLite database and bind it to an auto-commit session."""
    conn = connect_sqlite(database, read_only=read_only, settings=settings)
    try:
        attributes = conn.attributes()
        if time_zone is not None:
            attributes = ConnectionAttributes(**{**attributes.model_dump(), "time_zone": time_zone})
        return DBSession.create(conn, read_only=read_only, attributes=attributes, settings=settings)
    except Exception:
        conn.close()
        raise
