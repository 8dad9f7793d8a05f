"""Port interfaces for the database driver collaborator."""

from collections.abc import Sequence
from typing import Any, Protocol


class ResultCursor(Protocol):
    """Forward-only row source in DB-API shape.

    description follows PEP 249: a sequence of 7-item column
    descriptors whose first item is the column name, or None when
    the statement produced no result set.
    """

    @property
    def description(self) -> Sequence[Sequence[Any]] | None:
        """Column descriptors of the current result."""
        ...

    def fetchone(self) -> Sequence[Any] | None:
        """Advance and return the next row, or None when exhausted."""
        ...

    def close(self) -> None:
        """Release the cursor."""
        ...


class PreparedStatement(Protocol):
    """A statement prepared from one SQL template."""

    def set_fetch_size(self, rows: int) -> None:
        """Hint how many rows the driver fetches per round trip."""
        ...

    def set_query_timeout(self, seconds: int) -> None:
        """Abort execution after the given number of seconds."""
        ...

    def bind(self, params: Sequence[Any]) -> None:
        """Bind positional parameters, replacing previous bindings."""
        ...

    def add_batch(self) -> None:
        """Enqueue the current bindings for the next execute_batch()."""
        ...

    def execute(self) -> bool:
        """Execute and report whether the first result is a result set."""
        ...

    def execute_query(self) -> ResultCursor:
        """Execute and return the result cursor."""
        ...

    def execute_update(self) -> int:
        """Execute and return the affected row count."""
        ...

    def execute_batch(self) -> Sequence[int]:
        """Execute all enqueued bindings in one round trip."""
        ...

    def generated_keys(self) -> ResultCursor:
        """Cursor over keys generated by the last execution."""
        ...

    def close(self) -> None:
        """Release the statement and any open cursor."""
        ...


class DriverConnection(Protocol):
    """Connection able to prepare statements in three modes."""

    def prepare_statement(
        self,
        sql: str,
        *,
        return_generated_keys: bool = False,
        key_columns: Sequence[str] | None = None,
    ) -> PreparedStatement:
        """Prepare sql plainly, with the generated-keys flag, or naming key columns."""
        ...

    def set_autocommit(self, enabled: bool) -> None:
        """Switch auto-commit mode."""
        ...

    def close(self) -> None:
        """Close the connection."""
        ...


class Transaction(Protocol):
    """Externally managed transaction bound to a session."""

    def is_active(self) -> bool:
        """Whether the transaction has begun and not yet ended."""
        ...
