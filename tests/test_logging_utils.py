"""Tests for logging configuration helpers."""
from __future__ import annotations

import logging
from logging.handlers import QueueHandler
from pathlib import Path

import pytest

from prefix_catalog_search.logging_utils import (
    LoggingContext,
    configure_logging,
    configure_worker_logging,
    logging_session,
    resolve_level,
    stop_listener,
)


@pytest.fixture(autouse=True)
def restore_root_logger():
    root_logger = logging.getLogger()
    handlers = list(root_logger.handlers)
    level = root_logger.level
    yield
    root_logger.handlers[:] = handlers
    root_logger.setLevel(level)


@pytest.mark.parametrize(
    "name, level",
    [("debug", logging.DEBUG), ("INFO", logging.INFO), (" warning ", logging.WARNING), ("fatal", logging.CRITICAL), (None, logging.INFO)],
)
def test_resolve_level(name, level: int):
    """Level names are case and whitespace insensitive, defaulting to info."""
    assert resolve_level(name) == level


def test_resolve_level_rejects_unknown():
    with pytest.raises(ValueError, match="Unsupported log level: loud"):
        resolve_level("loud")


def test_file_logging(tmp_path: Path):
    """Records go to the log file with the shared format."""
    log_file = tmp_path / "run.log"
    context = configure_logging("info", str(log_file))
    assert context == LoggingContext()
    logging.getLogger("prefix_catalog_search.test").info("hello %s", "file")
    for handler in logging.getLogger().handlers:
        handler.flush()
    content = log_file.read_text(encoding="utf-8")
    assert "INFO prefix_catalog_search.test - hello file" in content


def test_queue_logging_session(tmp_path: Path):
    """With a queue, records reach the handler once the listener stops."""
    log_file = tmp_path / "queued.log"
    with logging_session("debug", str(log_file), use_queue=True) as context:
        assert context.queue is not None
        assert isinstance(logging.getLogger().handlers[0], QueueHandler)
        logging.getLogger("prefix_catalog_search.test").debug("queued record")
    assert "queued record" in log_file.read_text(encoding="utf-8")


def test_worker_logging_without_queue():
    """Workers without a queue discard their records."""
    configure_worker_logging(None, "warning")
    root_logger = logging.getLogger()
    assert root_logger.level == logging.WARNING
    assert isinstance(root_logger.handlers[0], logging.NullHandler)


def test_stop_listener_without_queue():
    stop_listener(configure_logging("error"))
