"""Logging setup shared by the CLI and scan worker processes."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from logging.handlers import QueueHandler, QueueListener
from multiprocessing import Queue
from typing import Iterator


LOG_FORMAT = "%(asctime)s %(processName)s %(levelname)s %(name)s - %(message)s"

LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "fatal": logging.CRITICAL,
    "critical": logging.CRITICAL,
}


@dataclass(frozen=True)
class LoggingContext:
    """Handles to the logging queue and listener, when scan workers are used."""

    queue: Queue | None = None
    listener: QueueListener | None = None


def resolve_level(level: str | None) -> int:
    """Map a level name such as "info" to its logging constant."""
    normalized = (level or "info").strip().lower()
    try:
        return LOG_LEVELS[normalized]
    except KeyError:
        raise ValueError(f"Unsupported log level: {level}") from None


def _make_handler(log_file: str | None) -> logging.Handler:
    handler: logging.Handler
    if log_file:
        handler = logging.FileHandler(log_file, encoding="utf-8")
    else:
        handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


def _reset_root(level: str) -> logging.Logger:
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(resolve_level(level))
    return root_logger


def configure_logging(
    level: str,
    log_file: str | None = None,
    use_queue: bool = False,
) -> LoggingContext:
    """Configure root logging; with use_queue, records from workers pass through a queue."""
    root_logger = _reset_root(level)
    handler = _make_handler(log_file)
    if not use_queue:
        root_logger.addHandler(handler)
        return LoggingContext()

    queue: Queue = Queue()
    root_logger.addHandler(QueueHandler(queue))
    listener = QueueListener(queue, handler, respect_handler_level=True)
    listener.start()
    return LoggingContext(queue=queue, listener=listener)


def configure_worker_logging(queue: Queue | None, level: str) -> None:
    """Route a worker process's log records to the parent's queue."""
    root_logger = _reset_root(level)
    if queue is None:
        root_logger.addHandler(logging.NullHandler())
        return
    root_logger.addHandler(QueueHandler(queue))


def stop_listener(context: LoggingContext) -> None:
    """Stop the queue listener if one was started."""
    if context.listener:
        context.listener.stop()


@contextmanager
def logging_session(level: str, log_file: str | None = None, use_queue: bool = False) -> Iterator[LoggingContext]:
    """Configure logging for the duration of a block and flush the queue on exit."""
    context = configure_logging(level, log_file, use_queue=use_queue)
    try:
        yield context
    finally:
        stop_listener(context)
