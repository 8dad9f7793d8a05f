"""Shared pytest fixtures for sqlsession tests.

FakeConnection records every statement it prepares so tests can
assert on preparation mode, bindings, configuration and closing.
"""

from collections.abc import Iterator, Sequence
from typing import Any

import pytest
from loguru import logger

from sqlsession.settings import reset_global_settings


class FakeCursor:
    """ResultCursor over a fixed list of rows."""

    def __init__(self, columns: Sequence[str] = (), rows: Sequence[Sequence[Any]] = ()) -> None:
        self.description = tuple((c, None, None, None, None, None, None) for c in columns) or None
        self.rows = list(rows)
        self.fetches = 0
        self.closed = False

    def fetchone(self) -> Sequence[Any] | None:
        self.fetches += 1
        if self.fetches > len(self.rows):
            return None
        return self.rows[self.fetches - 1]

    def close(self) -> None:
        self.closed = True


class FakeStatement:
    """PreparedStatement that records its calls."""

    def __init__(self, conn: "FakeConnection", sql: str, return_generated_keys: bool, key_columns: Any) -> None:
        self.conn = conn
        self.sql = sql
        self.return_generated_keys = return_generated_keys
        self.key_columns = list(key_columns) if key_columns is not None else None
        self.calls: list[tuple[Any, ...]] = []
        self.bound: list[tuple[Any, ...]] = []
        self.batches: list[tuple[Any, ...]] = []
        self.closed = False

    def set_fetch_size(self, rows: int) -> None:
        self.calls.append(("set_fetch_size", rows))

    def set_query_timeout(self, seconds: int) -> None:
        self.calls.append(("set_query_timeout", seconds))

    def bind(self, params: Sequence[Any]) -> None:
        self.calls.append(("bind", tuple(params)))
        self.bound.append(tuple(params))

    def add_batch(self) -> None:
        self.calls.append(("add_batch",))
        self.batches.append(self.bound[-1])

    def execute(self) -> bool:
        self._record("execute")
        return bool(self.conn.columns)

    def execute_query(self) -> FakeCursor:
        self._record("execute_query")
        return FakeCursor(self.conn.columns, self.conn.rows)

    def execute_update(self) -> int:
        self._record("execute_update")
        return self.conn.update_count

    def execute_batch(self) -> list[int]:
        self._record("execute_batch")
        return [self.conn.update_count] * len(self.batches)

    def generated_keys(self) -> FakeCursor:
        self.calls.append(("generated_keys",))
        column = self.key_columns[0] if self.key_columns else "GENERATED_KEY"
        return FakeCursor((column,), self.conn.key_rows)

    def close(self) -> None:
        self.calls.append(("close",))
        self.closed = True

    def count(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)

    def _record(self, name: str) -> None:
        self.calls.append((name,))
        if self.conn.execute_error is not None:
            raise self.conn.execute_error


class FakeConnection:
    """DriverConnection returning FakeStatements."""

    def __init__(self) -> None:
        self.statements: list[FakeStatement] = []
        self.columns: tuple[str, ...] = ()
        self.rows: list[tuple[Any, ...]] = []
        self.key_rows: list[tuple[Any, ...]] = [(42,)]
        self.update_count = 1
        self.autocommit: bool | None = None
        self.close_count = 0
        self.prepare_error: Exception | None = None
        self.execute_error: Exception | None = None
        self.close_error: Exception | None = None

    def prepare_statement(
        self,
        sql: str,
        *,
        return_generated_keys: bool = False,
        key_columns: Sequence[str] | None = None,
    ) -> FakeStatement:
        if self.prepare_error is not None:
            raise self.prepare_error
        statement = FakeStatement(self, sql, return_generated_keys, key_columns)
        self.statements.append(statement)
        return statement

    def set_autocommit(self, enabled: bool) -> None:
        self.autocommit = enabled

    def close(self) -> None:
        self.close_count += 1
        if self.close_error is not None:
            raise self.close_error


class FakeTransaction:
    def __init__(self, active: bool) -> None:
        self.active = active

    def is_active(self) -> bool:
        return self.active


@pytest.fixture
def fake_conn() -> FakeConnection:
    """Provide a recording driver connection."""
    return FakeConnection()


@pytest.fixture
def make_cursor() -> type[FakeCursor]:
    return FakeCursor


@pytest.fixture
def make_tx() -> type[FakeTransaction]:
    return FakeTransaction


@pytest.fixture(autouse=True)
def _reset_settings() -> Iterator[None]:
    """Keep process-wide settings isolated between tests."""
    reset_global_settings()
    yield
    reset_global_settings()


class CapturedLogs(list[dict[str, Any]]):
    """Loguru records captured during a test."""

    def at(self, level: str) -> list[str]:
        return [r["message"] for r in self if r["level"].name == level]


@pytest.fixture
def log_records() -> Iterator[CapturedLogs]:
    """Capture loguru records emitted during the test."""
    records = CapturedLogs()
    handler_id = logger.add(lambda message: records.append(message.record), level="TRACE")
    yield records
    logger.remove(handler_id)
