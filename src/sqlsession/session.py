"""Database sessions.

A session owns one driver connection for a unit of work (an
auto-commit call, an explicit transaction, or a read-only block)
and runs every statement of that unit through a StatementExecutor:

    with DBSession.create(conn, attributes=attrs) as session:
        session.set_fetch_size(100)
        ids = session.list("select id from user where age > ?", 18, extract=lambda rs: rs.int("id"))

NoSession stands for "no session available"; it carries no
connection and refuses configuration and statements.

Sessions are not thread-safe. Statements run synchronously in
call order.
"""

from __future__ import annotations

import builtins
import functools
from collections.abc import Callable, Iterable, Iterator, Sequence
from types import TracebackType
from typing import Any, Generic, Self, TypeVar

from loguru import logger

from sqlsession.connection import ConnectionAttributes
from sqlsession.cursor import ResultCursorSequence, WrappedRow
from sqlsession.errors import (
    GeneratedKeyNotRetrievableError,
    NoSessionError,
    ReadOnlySessionError,
    TooManyRowsError,
    TransactionNotActiveError,
)
from sqlsession.keys import FIRST_COLUMN, ByName, KeySelector, key_selector, resolve_generated_key
from sqlsession.models import SessionConfig
from sqlsession.ports.driver import DriverConnection, PreparedStatement, Transaction
from sqlsession.settings import SettingsProvider
from sqlsession.statement import StatementExecutor, create_statement_executor

A = TypeVar("A")
B = TypeVar("B")

StatementFilter = Callable[[PreparedStatement], None]


def _no_filter(_: PreparedStatement) -> None:
    pass


class RowStream(Generic[A]):
    """Lazy result iterator that keeps its statement open.

    The statement is closed when the rows are exhausted, when
    extraction fails, when close() is called, or when the stream is
    garbage collected. Use it as a context manager:

        with session.traversable("select id from user", extract=get_id) as ids:
            for user_id in ids:
                ...
    """

    def __init__(self, executor: StatementExecutor, extract: Callable[[WrappedRow], A]) -> None:
        self._executor = executor
        self._extract = extract
        try:
            self._rows = executor.execute_query()
        except Exception:
            executor.close()
            raise

    def __iter__(self) -> Iterator[A]:
        return self

    def __next__(self) -> A:
        try:
            row = next(self._rows)
        except Exception:
            # includes StopIteration
            self.close()
            raise
        try:
            return self._extract(row)
        except Exception:
            self.close()
            raise

    def __enter__(self) -> RowStream[A]:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        self._executor.close()

    def __del__(self) -> None:
        self.close()


class DBSession:
    """Base session: configuration, statement API and connection lifecycle."""

    def __init__(
        self,
        conn: DriverConnection | None,
        attributes: ConnectionAttributes,
        tx: Transaction | None = None,
        read_only: bool = False,
        settings: SettingsProvider | None = None,
    ) -> None:
        self._conn = conn
        self._attributes = attributes
        self._tx = tx
        self._read_only = read_only
        self._settings = settings or SettingsProvider.default()
        self._config = SessionConfig()
        self._closed = False

    @staticmethod
    def create(
        conn: DriverConnection,
        tx: Transaction | None = None,
        read_only: bool = False,
        attributes: ConnectionAttributes | None = None,
        settings: SettingsProvider | None = None,
    ) -> ActiveSession:
        """Open an ActiveSession on conn."""
        return ActiveSession(
            conn,
            attributes or ConnectionAttributes(),
            tx=tx,
            read_only=read_only,
            settings=settings,
        )

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    # =========================================================================
    # Configuration
    # =========================================================================

    @property
    def connection(self) -> DriverConnection:
        if self._conn is None:
            raise NoSessionError("No connection is bound to this session.")
        return self._conn

    @property
    def attributes(self) -> ConnectionAttributes:
        return self._attributes

    @property
    def settings(self) -> SettingsProvider:
        return self._settings

    @property
    def tx(self) -> Transaction | None:
        return self._tx

    @property
    def is_read_only(self) -> bool:
        return self._read_only

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def config(self) -> SessionConfig:
        return self._config

    @property
    def fetch_size(self) -> int | None:
        return self._config.fetch_size

    @property
    def query_timeout(self) -> int | None:
        return self._config.query_timeout

    @property
    def tags(self) -> tuple[str, ...]:
        return self._config.tags

    def set_fetch_size(self, size: int | None) -> Self:
        """Set the fetch size hint; None restores the driver default."""
        self._config = self._config.replace(fetch_size=size)
        return self

    def set_query_timeout(self, seconds: int | None) -> Self:
        """Set the statement timeout in seconds; None restores the driver default."""
        self._config = self._config.replace(query_timeout=seconds)
        return self

    def set_tags(self, *tags: str) -> Self:
        """Replace the tags reported with failures and timing logs."""
        self._config = self._config.replace(tags=tuple(tags))
        return self

    # =========================================================================
    # Queries
    # =========================================================================

    def single(self, template: str, *params: Any, extract: Callable[[WrappedRow], A]) -> A | None:
        """
        Return the only row of a query, or None when there is none.

        Raises:
            TooManyRowsError: If the query produced more than one row.
        """
        with self.to_statement_executor(template, params) as executor:
            rows = [extract(row) for row in executor.execute_query()]
        if not rows:
            return None
        if len(rows) > 1:
            raise TooManyRowsError(1, len(rows))
        return rows[0]

    def first(self, template: str, *params: Any, extract: Callable[[WrappedRow], A]) -> A | None:
        """Return the first row of a query, ignoring any further rows."""
        with self.traversable(template, *params, extract=extract) as rows:
            return next(rows, None)

    def collection(
        self,
        template: str,
        *params: Any,
        extract: Callable[[WrappedRow], A],
        factory: Callable[[Iterable[A]], B] = builtins.list,
    ) -> B:
        """Build factory(rows) from every extracted row, in cursor order."""
        with self.to_statement_executor(template, params) as executor:
            return factory(extract(row) for row in executor.execute_query())

    def list(self, template: str, *params: Any, extract: Callable[[WrappedRow], A]) -> builtins.list[A]:
        """Return every extracted row as a list, in cursor order."""
        return self.collection(template, *params, extract=extract, factory=builtins.list)

    def traversable(self, template: str, *params: Any, extract: Callable[[WrappedRow], A]) -> RowStream[A]:
        """Return a lazy iterator over extracted rows.

        Use the result in a with block; the statement stays open until
        the iterator is exhausted or closed. For the first row only,
        first() does this for you.
        """
        return RowStream(self.to_statement_executor(template, params), extract)

    def foreach(self, template: str, *params: Any, fn: Callable[[WrappedRow], None]) -> None:
        """Apply fn to every row in cursor order."""
        with self.to_statement_executor(template, params) as executor:
            for row in executor.execute_query():
                fn(row)

    def fold_left(
        self, template: str, *params: Any, initial: A, op: Callable[[A, WrappedRow], A]
    ) -> A:
        """Left-fold rows into an accumulator in cursor order."""
        with self.to_statement_executor(template, params) as executor:
            return functools.reduce(op, executor.execute_query(), initial)

    # =========================================================================
    # Updates
    # =========================================================================

    def execute(self, template: str, *params: Any) -> bool:
        """Run a statement; True when its first result is a result set."""
        self._ensure_not_read_only(template)
        with self.to_statement_executor(template, params) as executor:
            return executor.execute()

    def execute_with_filters(
        self, before: StatementFilter, after: StatementFilter, template: str, *params: Any
    ) -> bool:
        """Like execute(), with hooks on the prepared statement around execution."""
        self._ensure_not_read_only(template)
        with self.to_statement_executor(template, params) as executor:
            before(executor.underlying)
            result = executor.execute()
            after(executor.underlying)
            return result

    def update(self, template: str, *params: Any) -> int:
        """Run a mutating statement and return the affected row count."""
        self._ensure_not_read_only(template)
        with self.to_statement_executor(template, params) as executor:
            return executor.execute_update()

    def execute_update(self, template: str, *params: Any) -> int:
        return self.update(template, *params)

    def update_with_filters(
        self,
        before: StatementFilter,
        after: StatementFilter,
        template: str,
        *params: Any,
        return_generated_keys: bool = False,
    ) -> int:
        """Like update(), with hooks on the prepared statement around execution."""
        self._ensure_not_read_only(template)
        with self.to_statement_executor(template, params, return_generated_keys=return_generated_keys) as executor:
            before(executor.underlying)
            count = executor.execute_update()
            after(executor.underlying)
            return count

    def update_with_auto_generated_key_name_and_filters(
        self,
        return_generated_keys: bool,
        generated_key_name: str,
        before: StatementFilter,
        after: StatementFilter,
        template: str,
        *params: Any,
    ) -> int:
        """Like update_with_filters(), naming the generated key column."""
        self._ensure_not_read_only(template)
        with self.to_statement_executor(
            template,
            params,
            return_generated_keys=return_generated_keys,
            generated_key_name=generated_key_name,
        ) as executor:
            before(executor.underlying)
            count = executor.execute_update()
            after(executor.underlying)
            return count

    def update_and_return_generated_key(self, template: str, *params: Any) -> int:
        """Run an insert and return the generated key at index 1."""
        return self.update_and_return_specified_generated_key(template, *params, key=1)

    def update_and_return_specified_generated_key(
        self, template: str, *params: Any, key: str | int | KeySelector
    ) -> int:
        """
        Run an insert and return the generated key selected by key.

        key is a column name, a 1-based index, or a ByName/ByIndex
        selector. When the selected column cannot be read, the value
        at index 1 is returned and a warning is logged.

        Raises:
            InvalidKeySelectorError: If key is neither a name nor an index.
            GeneratedKeyNotRetrievableError: If no generated key row was produced.
        """
        self._ensure_not_read_only(template)
        selector = key_selector(key)
        keys: builtins.list[int] = []

        def collect(statement: PreparedStatement) -> None:
            for row in ResultCursorSequence(statement.generated_keys(), self._attributes):
                keys.append(resolve_generated_key(selector, row))

        if isinstance(selector, ByName):
            self.update_with_auto_generated_key_name_and_filters(
                True, selector.name, _no_filter, collect, template, *params
            )
        else:
            self.update_with_filters(
                _no_filter, collect, template, *params, return_generated_keys=True
            )

        if not keys:
            raise GeneratedKeyNotRetrievableError(template)
        return keys[-1]

    # =========================================================================
    # Batches
    # =========================================================================

    def batch(self, template: str, params_list: Iterable[Sequence[Any]]) -> builtins.list[int]:
        """
        Run one statement for every parameter set in a single batch.

        Returns one count per parameter set, in input order. An empty
        params_list returns [] without preparing a statement.
        """
        self._ensure_not_read_only(template)
        batches = [tuple(params) for params in params_list]
        if not batches:
            return []
        with self.to_batch_statement_executor(template, batches) as executor:
            return executor.execute_batch()

    def batch_and_return_generated_key(
        self, template: str, params_list: Iterable[Sequence[Any]]
    ) -> builtins.list[int]:
        """
        Run a batch and return the generated keys at index 1.

        Keys come back in the driver's generated-keys cursor order,
        which is not guaranteed to match the order of params_list.
        """
        return self._batch_with_keys(template, FIRST_COLUMN, params_list)

    def batch_and_return_specified_generated_key(
        self, template: str, key: str, params_list: Iterable[Sequence[Any]]
    ) -> builtins.list[int]:
        """Run a batch and return the generated keys of column key.

        Keys come back in the driver's generated-keys cursor order,
        which is not guaranteed to match the order of params_list.
        """
        return self._batch_with_keys(template, ByName(key), params_list)

    def _batch_with_keys(
        self, template: str, selector: KeySelector, params_list: Iterable[Sequence[Any]]
    ) -> builtins.list[int]:
        self._ensure_not_read_only(template)
        batches = [tuple(params) for params in params_list]
        if not batches:
            return []
        key_name = selector.name if isinstance(selector, ByName) else None
        with self.to_batch_statement_executor(
            template, batches, return_generated_keys=True, generated_key_name=key_name
        ) as executor:
            executor.execute_batch()
            return [resolve_generated_key(selector, row) for row in executor.generated_keys()]

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def close(self) -> None:
        """Close the connection once. Close failures are never raised."""
        if self._closed or self._conn is None:
            return
        self._closed = True
        try:
            self._conn.close()
        except Exception as e:
            logger.debug("Ignored failure while closing connection: {}", e)
        if self._settings.is_logging_connections():
            logger.debug("A connection is closed.")

    # =========================================================================
    # Executors
    # =========================================================================

    def to_statement_executor(
        self,
        template: str,
        params: Sequence[Any] = (),
        return_generated_keys: bool = False,
        generated_key_name: str | None = None,
    ) -> StatementExecutor:
        """
        Prepare template with this session's connection and config.

        params are bound immediately. The caller owns the executor and
        must close it, normally with a with block. Read-only checks are
        not applied here.
        """
        return create_statement_executor(
            self.connection,
            template,
            params,
            attributes=self._attributes,
            settings=self._settings,
            config=self._config,
            return_generated_keys=return_generated_keys,
            generated_key_name=generated_key_name,
        )

    def to_batch_statement_executor(
        self,
        template: str,
        params_list: Iterable[Sequence[Any]] = (),
        return_generated_keys: bool = False,
        generated_key_name: str | None = None,
    ) -> StatementExecutor:
        """
        Prepare template as a batch with every parameter set in params_list enqueued.

        More sets can be added through bind_params() and add_batch()
        before execute_batch(). The caller owns the executor.
        """
        executor = create_statement_executor(
            self.connection,
            template,
            attributes=self._attributes,
            settings=self._settings,
            config=self._config,
            return_generated_keys=return_generated_keys,
            generated_key_name=generated_key_name,
            is_batch=True,
        )
        try:
            for params in params_list:
                executor.bind_params(params)
                executor.add_batch()
        except Exception:
            executor.close()
            raise
        return executor

    # =========================================================================
    # Internals
    # =========================================================================

    def _ensure_not_read_only(self, template: str) -> None:
        if self._read_only:
            raise ReadOnlySessionError(template)


class ActiveSession(DBSession):
    """Session bound to a live connection.

    Without a transaction the connection is switched to auto-commit,
    unless the data source is managed by an external transaction
    manager (jta_data_source_compatible).

    Raises:
        TransactionNotActiveError: If tx is given but not active.
    """

    def __init__(
        self,
        conn: DriverConnection,
        attributes: ConnectionAttributes,
        tx: Transaction | None = None,
        read_only: bool = False,
        settings: SettingsProvider | None = None,
    ) -> None:
        super().__init__(conn, attributes, tx=tx, read_only=read_only, settings=settings)
        if tx is None:
            if not self._settings.is_jta_data_source_compatible():
                conn.set_autocommit(True)
        elif not tx.is_active():
            raise TransactionNotActiveError("Transaction is not active. Please call begin() first.")


class _NoSession(DBSession):
    """Sentinel for the absence of a session."""

    def __init__(self) -> None:
        super().__init__(None, ConnectionAttributes(), read_only=True)

    def __repr__(self) -> str:
        return "NoSession"

    def set_fetch_size(self, size: int | None) -> Self:
        raise NoSessionError("set_fetch_size() cannot be called on NoSession.")

    def set_query_timeout(self, seconds: int | None) -> Self:
        raise NoSessionError("set_query_timeout() cannot be called on NoSession.")

    def set_tags(self, *tags: str) -> Self:
        raise NoSessionError("set_tags() cannot be called on NoSession.")


NoSession = _NoSession()
