"""Test package initialization."""

import sqlsession


def test_version_exists() -> None:
    """Test that version is defined."""
    assert hasattr(sqlsession, "__version__")
    assert isinstance(sqlsession.__version__, str)


def test_version_format() -> None:
    """Test that version follows semver format."""
    version = sqlsession.__version__
    parts = version.split(".")
    assert len(parts) == 3, f"Version should have 3 parts: {version}"
    for part in parts:
        assert part.isdigit(), f"Version part should be numeric: {part}"
