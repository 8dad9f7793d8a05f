"""Tests for sqlsession error types."""

from sqlsession.errors import (
    ColumnNotFoundError,
    ConfigurationError,
    GeneratedKeyNotRetrievableError,
    InvalidKeySelectorError,
    NoSessionError,
    ReadOnlySessionError,
    SqlSessionError,
    StaleRowError,
    TooManyRowsError,
    TransactionNotActiveError,
)


class TestErrorHierarchy:
    """Test error class hierarchy."""

    def test_all_errors_inherit_from_sqlsession_error(self) -> None:
        """All custom errors should inherit from SqlSessionError."""
        for error_type in (
            ColumnNotFoundError,
            ConfigurationError,
            GeneratedKeyNotRetrievableError,
            InvalidKeySelectorError,
            NoSessionError,
            ReadOnlySessionError,
            StaleRowError,
            TooManyRowsError,
            TransactionNotActiveError,
        ):
            assert issubclass(error_type, SqlSessionError)

    def test_invalid_key_selector_is_configuration_error(self) -> None:
        assert issubclass(InvalidKeySelectorError, ConfigurationError)

    def test_sqlsession_error_inherits_from_exception(self) -> None:
        assert issubclass(SqlSessionError, Exception)


class TestErrorDetails:
    """Test attributes carried by errors."""

    def test_too_many_rows_counts(self) -> None:
        error = TooManyRowsError(1, 3)
        assert error.expected == 1
        assert error.actual == 3
        assert "expected: 1" in str(error)
        assert "actual: 3" in str(error)

    def test_read_only_names_template(self) -> None:
        error = ReadOnlySessionError("delete from user")
        assert error.template == "delete from user"
        assert "delete from user" in str(error)

    def test_generated_key_not_retrievable_names_template(self) -> None:
        error = GeneratedKeyNotRetrievableError("insert into user(name) values (?)")
        assert "insert into user(name) values (?)" in str(error)

    def test_invalid_key_selector_keeps_key(self) -> None:
        error = InvalidKeySelectorError(1.5)
        assert error.key == 1.5
        assert "1.5" in str(error)

    def test_column_not_found_keeps_column(self) -> None:
        assert ColumnNotFoundError("email").column == "email"
