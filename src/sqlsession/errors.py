"""sqlsession error types.

All custom exceptions inherit from SqlSessionError to allow
catching any sqlsession-specific error. Driver exceptions are
never wrapped; they propagate with their own types.
"""


class SqlSessionError(Exception):
    """Base exception for all sqlsession errors."""

    pass


class ConfigurationError(SqlSessionError):
    """Invalid configuration."""

    pass


class ReadOnlySessionError(SqlSessionError):
    """Mutating statement issued on a read-only session."""

    def __init__(self, template: str) -> None:
        super().__init__(f"Cannot execute this operation in a read-only session (template:{template})")
        self.template = template


class TooManyRowsError(SqlSessionError):
    """A single-row query produced more rows than expected."""

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(f"Too many rows (expected: {expected}, actual: {actual})")
        self.expected = expected
        self.actual = actual


class GeneratedKeyNotRetrievableError(SqlSessionError):
    """The driver produced no generated-key row."""

    def __init__(self, template: str) -> None:
        super().__init__(f"Failed to retrieve the generated key (template:{template})")
        self.template = template


class InvalidKeySelectorError(ConfigurationError):
    """Generated-key selector is neither a column name nor an index."""

    def __init__(self, key: object) -> None:
        super().__init__(f"Failed to retrieve the generated key (key:{key!r})")
        self.key = key


class TransactionNotActiveError(SqlSessionError):
    """A session was given a transaction that is not active."""

    pass


class NoSessionError(SqlSessionError):
    """Operation invoked on the NoSession sentinel."""

    pass


class ColumnNotFoundError(SqlSessionError):
    """Row accessor referenced a column the result does not have."""

    def __init__(self, column: str | int) -> None:
        super().__init__(f"Column not found: {column!r}")
        self.column = column


class StaleRowError(SqlSessionError):
    """Row view used after its cursor moved past it."""

    pass
