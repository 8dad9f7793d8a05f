"""Tests for the SQLite adapter."""

import sqlite3
from pathlib import Path

import pytest

from sqlsession import ReadOnlySessionError
from sqlsession.adapters.sqlite import SqliteConnection, connect_sqlite, open_sqlite_session

ENDLESS_QUERY = """
with recursive counter(x) as (select 1 union all select x + 1 from counter)
select count(*) from counter
"""


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """SQLite file with one user row."""
    path = tmp_path / "test.db"
    conn = sqlite3.connect(path)
    conn.execute("create table user (id integer primary key, name text)")
    conn.execute("insert into user (name) values ('Alice')")
    conn.commit()
    conn.close()
    return path


class TestSqliteConnection:
    """sqlite3-specific connection behavior."""

    def test_attributes(self) -> None:
        conn = connect_sqlite(":memory:")
        attributes = conn.attributes()
        conn.close()

        assert attributes.driver_name == "sqlite3"
        assert attributes.product_name == "SQLite"
        assert attributes.product_version == sqlite3.sqlite_version

    def test_autocommit_switch(self) -> None:
        conn = connect_sqlite(":memory:")
        conn.set_autocommit(True)
        assert conn.raw.isolation_level is None
        conn.set_autocommit(False)
        assert conn.raw.isolation_level == ""
        conn.close()

    def test_query_timeout_interrupts(self) -> None:
        conn = connect_sqlite(":memory:")
        statement = conn.prepare_statement(ENDLESS_QUERY)
        statement.set_query_timeout(1)

        with pytest.raises(sqlite3.OperationalError):
            statement.execute_query()

        # the handler is removed once the statement finishes
        assert conn.raw.execute("select 1").fetchone() == (1,)
        conn.close()

    def test_read_only_file(self, db_path: Path) -> None:
        conn = connect_sqlite(db_path, read_only=True)
        assert isinstance(conn, SqliteConnection)

        with pytest.raises(sqlite3.OperationalError):
            conn.raw.execute("insert into user (name) values ('Bob')")
        conn.close()


class TestOpenSqliteSession:
    """open_sqlite_session()."""

    def test_session_in_auto_commit(self, db_path: Path) -> None:
        with open_sqlite_session(db_path) as session:
            session.update("insert into user (name) values (?)", "Bob")

        conn = sqlite3.connect(db_path)
        assert conn.execute("select count(*) from user").fetchone() == (2,)
        conn.close()

    def test_read_only_session(self, db_path: Path) -> None:
        with open_sqlite_session(db_path, read_only=True) as session:
            assert session.list("select name from user", extract=lambda rs: rs.string("name")) == ["Alice"]
            with pytest.raises(ReadOnlySessionError):
                session.update("delete from user")

    def test_time_zone(self, db_path: Path) -> None:
        with open_sqlite_session(db_path, time_zone="UTC") as session:
            assert session.attributes.time_zone == "UTC"
            assert session.attributes.driver_name == "sqlite3"

    def test_bad_time_zone_closes_connection(self, db_path: Path) -> None:
        with pytest.raises(ValueError):
            open_sqlite_session(db_path, time_zone="Nowhere/Land")
