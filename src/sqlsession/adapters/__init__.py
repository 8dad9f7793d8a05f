"""Driver adapters implementing the sqlsession driver port."""

from sqlsession.adapters.dbapi import DbApiConnection, DbApiStatement
from sqlsession.adapters.sqlite import SqliteConnection, connect_sqlite, open_sqlite_session

__all__ = [
    "DbApiConnection",
    "DbApiStatement",
    "SqliteConnection",
    "connect_sqlite",
    "open_sqlite_session",
]
