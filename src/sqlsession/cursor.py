"""Lazy, forward-only row sequences over driver cursors.

A ResultCursorSequence hands out one WrappedRow per fetched row.
The view reads the row the cursor is positioned on; once the
sequence advances, earlier views refuse access with StaleRowError.
Columns are addressed by name (case-insensitive) or by 1-based
ordinal, following SQL's column numbering.
"""

from __future__ import annotations

import datetime as dt
from collections.abc import Iterator, Sequence
from decimal import Decimal
from typing import Any

from sqlsession.connection import ConnectionAttributes
from sqlsession.errors import ColumnNotFoundError, StaleRowError
from sqlsession.ports.driver import ResultCursor

Column = str | int

_TRUE_STRINGS = frozenset({"1", "t", "true", "y", "yes"})


class ResultCursorSequence:
    """Single-pass iterator of WrappedRow views over a result cursor."""

    def __init__(self, cursor: ResultCursor, attributes: ConnectionAttributes) -> None:
        self._cursor = cursor
        self._attributes = attributes
        self._position = 0
        self._exhausted = False
        self._columns: tuple[str, ...] | None = None
        self._lookup: dict[str, int] | None = None

    def __iter__(self) -> Iterator[WrappedRow]:
        return self

    def __next__(self) -> WrappedRow:
        if self._exhausted:
            raise StopIteration
        values = self._cursor.fetchone()
        self._position += 1
        if values is None:
            self._exhausted = True
            raise StopIteration
        return WrappedRow(self, values, self._position)

    @property
    def position(self) -> int:
        """Number of fetches performed so far."""
        return self._position

    @property
    def attributes(self) -> ConnectionAttributes:
        return self._attributes

    @property
    def column_names(self) -> tuple[str, ...]:
        if self._columns is None:
            description = self._cursor.description or ()
            self._columns = tuple(str(d[0]) for d in description)
        return self._columns

    def column_index(self, name: str) -> int:
        """0-based position of a column name, ignoring case."""
        if self._lookup is None:
            lookup: dict[str, int] = {}
            for i, col in enumerate(self.column_names):
                lookup.setdefault(col.lower(), i)
            self._lookup = lookup
        try:
            return self._lookup[name.lower()]
        except KeyError:
            raise ColumnNotFoundError(name) from None


class WrappedRow:
    """Typed accessors over the current row of a ResultCursorSequence.

    SQL NULL reads as None from every accessor.
    """

    __slots__ = ("_source", "_values", "_position")

    def __init__(
        self, source: ResultCursorSequence, values: Sequence[Any], position: int
    ) -> None:
        self._source = source
        self._values = values
        self._position = position

    def __getitem__(self, column: Column) -> Any:
        return self.any(column)

    def __repr__(self) -> str:
        return f"WrappedRow(position={self._position}, values={tuple(self._values)!r})"

    @property
    def column_names(self) -> tuple[str, ...]:
        return self._source.column_names

    def to_dict(self) -> dict[str, Any]:
        self._ensure_current()
        return dict(zip(self.column_names, self._values))

    def any(self, column: Column) -> Any:
        self._ensure_current()
        return self._values[self._index(column)]

    def get(self, column: Column, default: Any = None) -> Any:
        """Like any(), returning default when the column does not exist."""
        try:
            return self.any(column)
        except ColumnNotFoundError:
            return default

    def string(self, column: Column) -> str | None:
        value = self.any(column)
        if value is None:
            return None
        if isinstance(value, (bytes, bytearray, memoryview)):
            return bytes(value).decode("utf-8")
        return str(value)

    def int(self, column: Column) -> int | None:
        value = self.any(column)
        if value is None:
            return None
        if isinstance(value, Decimal):
            return int(value)
        if isinstance(value, float) and not value.is_integer():
            raise ValueError(f"Column {column!r} holds a non-integral value: {value}")
        return int(value)

    def long(self, column: Column) -> int | None:
        return self.int(column)

    def float(self, column: Column) -> float | None:
        value = self.any(column)
        return None if value is None else float(value)

    def decimal(self, column: Column) -> Decimal | None:
        value = self.any(column)
        if value is None:
            return None
        if isinstance(value, float):
            return Decimal(repr(value))
        return Decimal(value)

    def boolean(self, column: Column) -> bool | None:
        value = self.any(column)
        if value is None:
            return None
        if isinstance(value, str):
            return value.strip().lower() in _TRUE_STRINGS
        return bool(value)

    def bytes(self, column: Column) -> bytes | None:
        value = self.any(column)
        if value is None:
            return None
        if isinstance(value, str):
            return value.encode("utf-8")
        return bytes(value)

    def datetime(self, column: Column) -> dt.datetime | None:
        value = self.any(column)
        if value is None:
            return None
        if isinstance(value, str):
            value = dt.datetime.fromisoformat(value)
        elif isinstance(value, dt.date) and not isinstance(value, dt.datetime):
            value = dt.datetime.combine(value, dt.time())
        zone = self._source.attributes.zone_info
        if zone is not None and value.tzinfo is None:
            value = value.replace(tzinfo=zone)
        return value

    def date(self, column: Column) -> dt.date | None:
        value = self.any(column)
        if value is None:
            return None
        if isinstance(value, dt.datetime):
            return value.date()
        if isinstance(value, str):
            return dt.date.fromisoformat(value[:10])
        return value

    def _index(self, column: Column) -> int:
        if isinstance(column, bool):
            raise ColumnNotFoundError(column)
        if isinstance(column, int):
            if 1 <= column <= len(self._values):
                return column - 1
            raise ColumnNotFoundError(column)
        return self._source.column_index(column)

    def _ensure_current(self) -> None:
        if self._source.position != self._position:
            raise StaleRowError(
                f"Row {self._position} is no longer current; the cursor is at {self._source.position}"
            )
