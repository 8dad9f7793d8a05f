"""Generated-key strategy and extraction.

Drivers disagree on how auto-generated keys come back. Some only
return the key when the statement is prepared with explicit key
column names; others accept a generic "return generated keys" flag
and label the column however they like. The strategy is looked up
per call from the settings, and extraction falls back to the first
column when the requested name or index cannot be read.
"""

from dataclasses import dataclass
from enum import Enum

from loguru import logger

from sqlsession.connection import ConnectionAttributes
from sqlsession.cursor import WrappedRow
from sqlsession.errors import InvalidKeySelectorError
from sqlsession.settings import SettingsProvider


@dataclass(frozen=True)
class ByName:
    """Select a generated key by column name."""

    name: str


@dataclass(frozen=True)
class ByIndex:
    """Select a generated key by 1-based column index."""

    index: int


KeySelector = ByName | ByIndex

FIRST_COLUMN = ByIndex(1)


class PreparationMode(str, Enum):
    """How a statement is prepared with respect to generated keys."""

    PLAIN = "plain"
    GENERATED_KEYS = "generated_keys"
    KEY_COLUMNS = "key_columns"


def key_selector(key: object) -> KeySelector:
    """Coerce a column name, 1-based index or selector into a KeySelector."""
    if isinstance(key, (ByName, ByIndex)):
        return key
    if isinstance(key, str):
        return ByName(key)
    if isinstance(key, int) and not isinstance(key, bool):
        return ByIndex(key)
    raise InvalidKeySelectorError(key)


def uses_column_name_retrieval(settings: SettingsProvider, attributes: ConnectionAttributes) -> bool:
    """Whether the connection's driver needs key columns named up front."""
    driver_name = attributes.driver_name
    return driver_name is not None and driver_name in settings.column_name_key_drivers()


def preparation_mode(
    return_generated_keys: bool,
    generated_key_name: str | None,
    settings: SettingsProvider,
    attributes: ConnectionAttributes,
) -> PreparationMode:
    """Pick the statement preparation mode for one call."""
    if not return_generated_keys:
        return PreparationMode.PLAIN
    if generated_key_name is not None and uses_column_name_retrieval(settings, attributes):
        return PreparationMode.KEY_COLUMNS
    return PreparationMode.GENERATED_KEYS


def resolve_generated_key(key: KeySelector, row: WrappedRow) -> int:
    """
    Read a generated key from a generated-keys row.

    If the requested column cannot be read, a warning is logged and
    the value at index 1 is returned instead.

    Raises:
        InvalidKeySelectorError: If key is neither ByName nor ByIndex.
    """
    if isinstance(key, ByName):
        target: str | int = key.name
    elif isinstance(key, ByIndex):
        target = key.index
    else:
        raise InvalidKeySelectorError(key)

    try:
        return _read_key(row, target)
    except Exception as e:
        logger.warning(
            "Failed to get generated key value via {} ({}). Going to retrieve it via index 1.",
            target,
            e,
        )
        return _read_key(row, 1)


def _read_key(row: WrappedRow, column: str | int) -> int:
    value = row.long(column)
    if value is None:
        raise ValueError(f"Generated key column {column!r} is NULL")
    return value
