"""Tests for loguru configuration."""

import logging
import sys
from collections.abc import Iterator
from pathlib import Path

import pytest
from loguru import logger

from sqlsession.config.models import LoggingConfig
from sqlsession.utils.logging import configure_logging


@pytest.fixture(autouse=True)
def _restore_logging() -> Iterator[None]:
    """Put loguru and stdlib logging back the way they were."""
    root_handlers = logging.root.handlers[:]
    root_level = logging.root.level
    yield
    logger.remove()
    logger.add(sys.stderr)
    logging.root.handlers = root_handlers
    logging.root.setLevel(root_level)


def test_file_output(tmp_path: Path) -> None:
    """Messages at or above the level reach the log file."""
    log_file = tmp_path / "sqlsession.log"
    configure_logging(LoggingConfig(level="INFO", file=log_file))

    logger.debug("hidden message")
    logger.info("visible message")
    logger.complete()

    content = log_file.read_text()
    assert "visible message" in content
    assert "hidden message" not in content


def test_json_format(tmp_path: Path) -> None:
    """JSON format serializes records."""
    log_file = tmp_path / "sqlsession.log"
    configure_logging(LoggingConfig(level="INFO", format="json", file=log_file))

    logger.info("structured")
    logger.complete()

    assert '"message": "structured"' in log_file.read_text()


def test_stdlib_logging_is_intercepted(tmp_path: Path) -> None:
    """Driver logs sent through the logging module end up in loguru."""
    log_file = tmp_path / "sqlsession.log"
    configure_logging(LoggingConfig(level="WARNING", file=log_file))

    logging.getLogger("psycopg").warning("server closed the connection")
    logger.complete()

    assert "server closed the connection" in log_file.read_text()
