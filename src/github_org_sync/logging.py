"""Logging for the sync engine, built on loguru.

Every record carries ``extra[name]``: the module name bound by
``get_logger`` for our own code, or the stdlib logger name for records
intercepted from SQLAlchemy and httpx. Sync code additionally binds
``repo``, ``entity`` and ``number`` so a failure can be traced to one item.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal

from loguru import logger

if TYPE_CHECKING:
    from loguru import Logger, Record

LogLevel = Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

CONSOLE_FORMAT = (
    "<dim>{time:HH:mm:ss}</dim> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[name]}</cyan> - "
    "<level>{message}</level>"
)

FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | "
    "{extra[name]}:{function}:{line} | {extra} | {message}"
)

_LIBRARY_LOGGERS = ("sqlalchemy.engine", "httpx", "httpcore")


def _default_name(record: Record) -> None:
    record["extra"].setdefault("name", record["name"])


class InterceptHandler(logging.Handler):
    """Forward standard library log records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Skip logging's own frames so the record points at the library caller
        frame, depth = logging.currentframe(), 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(
    level: LogLevel = "INFO",
    *,
    verbose: bool = False,
    quiet: bool = False,
    log_file: Path | None = None,
    rotation: str = "10 MB",
    retention: str = "7 days",
    serialize: bool = False,
) -> None:
    """Configure console (and optionally file) logging.

    ``verbose`` forces DEBUG and wins over ``quiet``, which forces WARNING.
    The file sink, when enabled, always records DEBUG and above.
    """
    effective: LogLevel = "DEBUG" if verbose else "WARNING" if quiet else level

    logger.remove()
    logger.configure(patcher=_default_name)
    logger.add(
        sys.stderr,
        level=effective,
        format=CONSOLE_FORMAT,
        colorize=True,
        diagnose=False,
    )
    if log_file:
        logger.add(
            log_file,
            level="DEBUG",
            format=FILE_FORMAT,
            rotation=rotation,
            retention=retention,
            compression="gz",
            serialize=serialize,
        )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    # SQL echo and per-request HTTP lines only when debugging
    library_level = logging.DEBUG if effective in ("TRACE", "DEBUG") else logging.WARNING
    for name in _LIBRARY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)


def get_logger(name: str) -> Logger:
    """Module logger: ``logger = get_logger(__name__)``."""
    return logger.bind(name=name)


def bind_repo(full_name: str) -> Logger:
    return logger.bind(name="sync", repo=full_name)


def bind_item(full_name: str, kind: str, number: int | None) -> Logger:
    """Logger bound to one synced item.

    Args:
        full_name: Repository in owner/name form
        kind: Entity kind (issue, pull_request, comment, ...)
        number: Issue/PR number, if the item has one
    """
    return logger.bind(name="sync", repo=full_name, entity=kind, number=number)


class LogContext:
    """Bind context to every record logged inside the block.

    Usage:
        with LogContext(org="acme", entity="issue"):
            logger.info("Processing")
    """

    def __init__(self, **context: Any) -> None:
        self._context = context
        self._scope: Any = None

    def __enter__(self) -> Logger:
        self._scope = logger.contextualize(**self._context)
        self._scope.__enter__()
        return logger

    def __exit__(self, *exc_info: Any) -> None:
        if self._scope is not None:
            self._scope.__exit__(*exc_info)
            self._scope = None


def reset_logging() -> None:
    """Remove every sink (tests call this between cases)."""
    logger.remove()
