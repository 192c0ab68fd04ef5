"""Tests for blade.logging_config."""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator

import pytest

from blade.logging_config import LOGGER_NAME, configure_logging


@pytest.fixture(autouse=True)
def reset_logger() -> Iterator[None]:
    """Leave the blade logger without handlers after each test."""
    yield
    logging.getLogger(LOGGER_NAME).handlers.clear()


def test_configure_logging_verbose_writes_info_to_stdout() -> None:
    """Verbose mode should log INFO messages to stdout."""
    configure_logging(True)
    logger = logging.getLogger(LOGGER_NAME)

    assert logger.level == logging.INFO
    assert logger.propagate is False
    assert len(logger.handlers) == 1
    handler = logger.handlers[0]
    assert isinstance(handler, logging.StreamHandler)
    assert handler.stream is sys.stdout


def test_configure_logging_quiet_writes_warnings_to_stderr(
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Quiet mode should only show warnings, prefixed, on stderr."""
    configure_logging(False)
    logger = logging.getLogger(LOGGER_NAME)

    logger.info("hidden")
    logger.warning("Variable '$id' is declared but never used")

    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err == "warning: Variable '$id' is declared but never used\n"


def test_configure_logging_replaces_handlers() -> None:
    """Reconfiguring should not stack handlers."""
    configure_logging(True)
    configure_logging(False)
    configure_logging(True)

    assert len(logging.getLogger(LOGGER_NAME).handlers) == 1
