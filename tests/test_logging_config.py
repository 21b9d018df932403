"""
Tests for CLI logging setup.
"""

import logging

import pytest

from meeting_signup.core.logging_config import LIBRARY_LOG_LEVELS, setup_logging


@pytest.fixture(autouse=True)
def restore_logging():
    """Put root handlers and library levels back after each test."""
    root_logger = logging.getLogger()
    handlers, level = list(root_logger.handlers), root_logger.level
    library_levels = {name: logging.getLogger(name).level for name in LIBRARY_LOG_LEVELS}
    yield
    for handler in root_logger.handlers:
        if handler not in handlers:
            handler.close()
    root_logger.handlers[:] = handlers
    root_logger.setLevel(level)
    for name, library_level in library_levels.items():
        logging.getLogger(name).setLevel(library_level)


def test_default_levels():
    setup_logging()

    assert logging.getLogger().level == logging.INFO
    assert logging.getLogger("slack_sdk").level == logging.WARNING
    assert logging.getLogger("uvicorn.access").level == logging.WARNING
    assert logging.getLogger("slack_sdk.socket_mode").level == logging.INFO


def test_verbose_lowers_library_levels_to_info():
    setup_logging(verbose=True)

    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("slack_sdk").level == logging.INFO
    assert logging.getLogger("uvicorn.access").level == logging.INFO
    assert "%(lineno)d" in logging.getLogger().handlers[0].formatter._fmt


def test_log_file_created_with_parent_dirs(tmp_path):
    log_file = tmp_path / "logs" / "bot.log"

    setup_logging(log_file=str(log_file))
    logging.getLogger("meeting_signup.test").info("enrolled U1")
    for handler in logging.getLogger().handlers:
        handler.flush()

    assert len(logging.getLogger().handlers) == 2
    assert "enrolled U1" in log_file.read_text()
