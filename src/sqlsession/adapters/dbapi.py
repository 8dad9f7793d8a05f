"""PEP 249 (DB-API 2.0) adapter for the driver port.

DB-API has no prepared statement object, no batch API that reports
per-row counts, and no uniform way to fetch generated keys. This
adapter emulates them:

- a statement keeps its SQL and bindings and runs them on a fresh
  cursor per execution;
- fetch size maps to cursor.arraysize;
- generated keys come from a RETURNING clause when key columns are
  named, or when the driver is one that needs column-name key
  retrieval (RETURNING *, first column); otherwise from
  cursor.lastrowid;
- a batch executes each parameter set in turn on one cursor, so
  every count and every key belongs to exactly one parameter set.
  executemany() only reports a total, which cannot be split.
"""

from collections.abc import Iterator, Sequence
from contextlib import AbstractContextManager, nullcontext
from typing import Any

from loguru import logger

from sqlsession.connection import ConnectionAttributes
from sqlsession.keys import uses_column_name_retrieval
from sqlsession.settings import SettingsProvider

GENERATED_KEY_COLUMN = "GENERATED_KEY"

# Batch count for a statement that succeeded without a known row count.
SUCCESS_NO_INFO = -2


class GeneratedKeysCursor:
    """In-memory ResultCursor over collected generated keys."""

    def __init__(self, column: str, keys: Sequence[Any]) -> None:
        self.description = ((column, None, None, None, None, None, None),)
        self._rows: Iterator[tuple[Any]] = iter([(key,) for key in keys])

    def fetchone(self) -> tuple[Any] | None:
        return next(self._rows, None)

    def close(self) -> None:
        self._rows = iter(())


class DbApiStatement:
    """Prepared-statement emulation over a DB-API connection.

    returning_all makes a generated-keys statement append
    RETURNING * and read its keys from the first returned column,
    for drivers whose lastrowid is always None.
    """

    def __init__(
        self,
        raw: Any,
        sql: str,
        *,
        return_generated_keys: bool = False,
        key_columns: Sequence[str] | None = None,
        returning_all: bool = False,
    ) -> None:
        self.raw = raw
        self.sql = sql
        self.key_columns = tuple(key_columns or ())
        self.return_generated_keys = return_generated_keys or bool(self.key_columns)
        self.returning_all = returning_all and self.return_generated_keys and not self.key_columns
        self.fetch_size: int | None = None
        self.query_timeout: int | None = None
        self._params: tuple[Any, ...] = ()
        self._batch: list[tuple[Any, ...]] = []
        self._cursor: Any = None
        self._generated: list[Any] = []

    @property
    def executed_sql(self) -> str:
        if self.key_columns:
            returning = ", ".join(self.key_columns)
        elif self.returning_all:
            returning = "*"
        else:
            return self.sql
        return f"{self.sql.rstrip().rstrip(';')} RETURNING {returning}"

    def set_fetch_size(self, rows: int) -> None:
        self.fetch_size = rows

    def set_query_timeout(self, seconds: int) -> None:
        self.query_timeout = seconds

    def bind(self, params: Sequence[Any]) -> None:
        self._params = tuple(params)

    def add_batch(self) -> None:
        self._batch.append(self._params)

    def execute(self) -> bool:
        return self._run(self._params).description is not None

    def execute_query(self) -> Any:
        return self._run(self._params)

    def execute_update(self) -> int:
        return max(self._run(self._params).rowcount, 0)

    def execute_batch(self) -> list[int]:
        """Run every enqueued parameter set and return one count per set.

        A set whose row count the driver does not report gets
        SUCCESS_NO_INFO.
        """
        batch, self._batch = self._batch, []
        if not batch:
            return []
        self._generated = []
        cursor = self._new_cursor()
        counts = []
        with self._deadline():
            for params in batch:
                cursor.execute(self.executed_sql, params)
                if self.return_generated_keys:
                    self._collect_keys(cursor)
                counts.append(cursor.rowcount if cursor.rowcount >= 0 else SUCCESS_NO_INFO)
        return counts

    def generated_keys(self) -> GeneratedKeysCursor:
        column = self.key_columns[0] if self.key_columns else GENERATED_KEY_COLUMN
        return GeneratedKeysCursor(column, self._generated)

    def close(self) -> None:
        self._close_cursor()
        self._batch = []

    def _run(self, params: Sequence[Any]) -> Any:
        self._generated = []
        cursor = self._new_cursor()
        with self._deadline():
            cursor.execute(self.executed_sql, params)
        if self.return_generated_keys:
            self._collect_keys(cursor)
        return cursor

    def _collect_keys(self, cursor: Any) -> None:
        if self.key_columns or self.returning_all:
            self._generated.extend(row[0] for row in cursor.fetchall())
        elif getattr(cursor, "lastrowid", None) is not None:
            self._generated.append(cursor.lastrowid)

    def _deadline(self) -> AbstractContextManager[Any]:
        """Context enforcing query_timeout. DB-API has no standard hook."""
        return nullcontext()

    def _new_cursor(self) -> Any:
        self._close_cursor()
        cursor = self.raw.cursor()
        if self.fetch_size:
            cursor.arraysize = self.fetch_size
        self._cursor = cursor
        return cursor

    def _close_cursor(self) -> None:
        cursor, self._cursor = self._cursor, None
        if cursor is not None:
            try:
                cursor.close()
            except Exception as e:
                logger.debug("Failed to close cursor: {}", e)


class DbApiConnection:
    """DriverConnection over a raw DB-API connection.

    settings decides, on every prepare, whether a generated-keys
    statement reads its keys through RETURNING * (drivers listed in
    driver_names_for_column_name_key_retrieval) or through lastrowid.
    """

    statement_class: type[DbApiStatement] = DbApiStatement

    def __init__(self, raw: Any, settings: SettingsProvider | None = None) -> None:
        self.raw = raw
        self.settings = settings or SettingsProvider.default()

    def prepare_statement(
        self,
        sql: str,
        *,
        return_generated_keys: bool = False,
        key_columns: Sequence[str] | None = None,
    ) -> DbApiStatement:
        returning_all = return_generated_keys and uses_column_name_retrieval(
            self.settings, self.attributes()
        )
        return self.statement_class(
            self.raw,
            sql,
            return_generated_keys=return_generated_keys,
            key_columns=key_columns,
            returning_all=returning_all,
        )

    def set_autocommit(self, enabled: bool) -> None:
        if hasattr(self.raw, "autocommit"):
            self.raw.autocommit = enabled
        else:
            logger.debug("{} has no autocommit switch", type(self.raw).__name__)

    def close(self) -> None:
        self.raw.close()

    def attributes(self) -> ConnectionAttributes:
        """Describe the connection; the driver name is the top-level module."""
        driver_name = type(self.raw).__module__.split(".")[0]
        return ConnectionAttributes(driver_name=driver_name)
