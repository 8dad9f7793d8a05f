"""Statement preparation and execution.

A StatementExecutor owns one prepared statement for the duration of
one session call. It is a context manager: leaving the block closes
the statement (and with it any open cursor) on every exit path.
Driver failures are logged, passed to the configured failure
listeners and re-raised unchanged.
"""

import time
from collections.abc import Callable, Sequence
from types import TracebackType
from typing import Any, TypeVar

from loguru import logger

from sqlsession.connection import ConnectionAttributes
from sqlsession.cursor import ResultCursorSequence
from sqlsession.keys import PreparationMode, preparation_mode
from sqlsession.models import SessionConfig
from sqlsession.ports.driver import DriverConnection, PreparedStatement
from sqlsession.settings import SettingsProvider

T = TypeVar("T")


def report_statement_failure(
    stage: str,
    template: str,
    params: Sequence[Any],
    error: Exception,
    tags: Sequence[str],
    settings: SettingsProvider,
) -> None:
    """Log a failed statement and notify the failure listeners.

    Never raises: formatter and listener errors are logged and dropped.
    """
    formatted = template
    formatter = settings.formatter()
    if formatter is not None:
        try:
            formatted = formatter.format(template)
        except Exception as e:
            logger.debug("Failed to format SQL because {}", e)

    if settings.is_logging_sql_errors():
        logger.error("Failed {} the statement (Reason: {}):\n\n  {}\n", stage, error, formatted)
    else:
        logger.debug("Logging SQL errors is disabled.")

    try:
        settings.failure_listener()(template, params, error)
    except Exception as e:
        logger.warning("Query failure listener raised: {}", e)
    try:
        settings.tagged_failure_listener()(template, params, error, tags)
    except Exception as e:
        logger.warning("Tagged query failure listener raised: {}", e)


class StatementExecutor:
    """Runs one prepared statement, single-shot or as a batch."""

    def __init__(
        self,
        underlying: PreparedStatement,
        template: str,
        attributes: ConnectionAttributes,
        settings: SettingsProvider,
        tags: Sequence[str] = (),
        is_batch: bool = False,
    ) -> None:
        self.underlying = underlying
        self.template = template
        self.attributes = attributes
        self.settings = settings
        self.tags = tuple(tags)
        self.is_batch = is_batch
        self.params: tuple[Any, ...] = ()
        self.batch_params: list[tuple[Any, ...]] = []
        self._closed = False

    def __enter__(self) -> "StatementExecutor":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def bind_params(self, params: Sequence[Any]) -> None:
        self.params = tuple(params)
        self._run("binding parameters for", lambda: self.underlying.bind(self.params))

    def add_batch(self) -> None:
        if not self.is_batch:
            raise RuntimeError("add_batch() called on a non-batch statement executor")
        self.underlying.add_batch()
        self.batch_params.append(self.params)

    def execute(self) -> bool:
        return self._run("executing", self.underlying.execute)

    def execute_query(self) -> ResultCursorSequence:
        cursor = self._run("executing", self.underlying.execute_query)
        return ResultCursorSequence(cursor, self.attributes)

    def execute_update(self) -> int:
        return self._run("executing", self.underlying.execute_update)

    def execute_batch(self) -> list[int]:
        return list(self._run("executing", self.underlying.execute_batch))

    def generated_keys(self) -> ResultCursorSequence:
        """Generated-key cursor of the last execution."""
        return ResultCursorSequence(self.underlying.generated_keys(), self.attributes)

    def close(self) -> None:
        """Close the statement once; close failures are logged, not raised."""
        if self._closed:
            return
        self._closed = True
        try:
            self.underlying.close()
        except Exception as e:
            logger.debug("Failed to close statement: {}", e)

    def _run(self, stage: str, operation: Callable[[], T]) -> T:
        started = time.perf_counter()
        try:
            result = operation()
        except Exception as e:
            report_statement_failure(
                stage, self.template, self._reported_params(), e, self.tags, self.settings
            )
            raise
        if stage == "executing":
            self._log_timing((time.perf_counter() - started) * 1000.0)
        return result

    def _reported_params(self) -> Sequence[Any]:
        if self.is_batch and self.batch_params:
            return list(self.batch_params)
        return self.params

    def _log_timing(self, elapsed_ms: float) -> None:
        timing = self.settings.sql_timing()
        if not (timing.enabled or timing.warning_enabled):
            return
        sql = " ".join(self.template.split()) if timing.single_line_mode else self.template
        params = self._reported_params()
        millis = int(elapsed_ms)
        if timing.enabled:
            logger.log(
                timing.level,
                "SQL execution completed\n\n  [SQL Execution]\n   {} ; {}\n   tags: {}\n  ({} ms)\n",
                sql,
                params,
                list(self.tags),
                millis,
            )
        if timing.warning_enabled and millis >= timing.warning_threshold_millis:
            logger.warning(
                "SQL execution took {} ms (threshold {} ms): {} ; {}",
                millis,
                timing.warning_threshold_millis,
                sql,
                params,
            )


def create_statement_executor(
    conn: DriverConnection,
    template: str,
    params: Sequence[Any] = (),
    *,
    attributes: ConnectionAttributes,
    settings: SettingsProvider,
    config: SessionConfig,
    return_generated_keys: bool = False,
    generated_key_name: str | None = None,
    is_batch: bool = False,
) -> StatementExecutor:
    """
    Prepare template on conn and wrap it in a StatementExecutor.

    Fetch size and query timeout from config are applied when set.
    Non-batch executors have params bound before they are returned;
    batch executors are bound by the caller, one parameter set at a time.

    Raises:
        Exception: Whatever the driver raised, after it has been reported.
    """
    mode = preparation_mode(return_generated_keys, generated_key_name, settings, attributes)
    try:
        if mode is PreparationMode.KEY_COLUMNS:
            statement = conn.prepare_statement(template, key_columns=[generated_key_name])
        elif mode is PreparationMode.GENERATED_KEYS:
            statement = conn.prepare_statement(template, return_generated_keys=True)
        else:
            statement = conn.prepare_statement(template)
    except Exception as e:
        report_statement_failure("preparing", template, params, e, config.tags, settings)
        raise

    executor = StatementExecutor(
        statement, template, attributes, settings, tags=config.tags, is_batch=is_batch
    )
    try:
        if config.fetch_size is not None:
            statement.set_fetch_size(config.fetch_size)
        if config.query_timeout is not None:
            statement.set_query_timeout(config.query_timeout)
    except Exception as e:
        executor.close()
        report_statement_failure("preparing", template, params, e, config.tags, settings)
        raise

    if not is_batch:
        try:
            executor.bind_params(params)
        except Exception:
            executor.close()
            raise
    return executor
