"""Logging configuration and utilities."""

import functools
import logging
import logging.handlers
import sys
import time
from pathlib import Path
from typing import Optional

import structlog
import colorlog
from structlog.typing import Processor


_HANDLER_MARK = "_foldersync_handler"


def setup_logging(
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
    log_file: Optional[str] = None
) -> None:
    """Set up logging configuration.

    Explicit arguments take precedence over ``AppSettings.logging``. Calling
    this again replaces the handlers installed by a previous call.
    """
    from ..config.settings import get_settings

    settings = get_settings()

    level = (log_level or settings.logging.level).upper()
    format_type = log_format or settings.logging.format
    file_path = log_file if log_file is not None else settings.logging.file_path

    root = logging.getLogger()
    root.setLevel(getattr(logging, level))
    for handler in list(root.handlers):
        if getattr(handler, _HANDLER_MARK, False):
            root.removeHandler(handler)
            handler.close()

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if format_type == "json":
        processors.append(structlog.processors.JSONRenderer(sort_keys=True))
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    if file_path:
        setup_file_logging(file_path, level)

    setup_console_logging(level)


def _install(handler: logging.Handler, level: str) -> None:
    handler.setLevel(getattr(logging, level.upper()))
    setattr(handler, _HANDLER_MARK, True)
    logging.getLogger().addHandler(handler)


def setup_file_logging(file_path: str, level: str) -> None:
    """Append plain-text records to a rotating log file (10MB, five backups)."""
    path = Path(file_path).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)

    handler = logging.handlers.RotatingFileHandler(
        path,
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8"
    )
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)-8s %(name)s %(message)s"))
    _install(handler, level)


def setup_console_logging(level: str) -> None:
    """Colored records on stdout."""
    handler = colorlog.StreamHandler(sys.stdout)
    handler.setFormatter(colorlog.ColoredFormatter(
        "%(log_color)s%(asctime)s %(levelname)-8s%(reset)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        log_colors={
            "DEBUG": "cyan",
            "INFO": "green",
            "WARNING": "yellow",
            "ERROR": "red",
            "CRITICAL": "bold_red",
        }
    ))
    _install(handler, level)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


class LoggerMixin:
    """Gives a class a ``logger`` named after the class."""

    @property
    def logger(self) -> structlog.stdlib.BoundLogger:
        return get_logger(type(self).__name__)


def _log_outcome(func, started: float, level: str, error: Optional[BaseException] = None) -> None:
    logger = get_logger(func.__module__)
    duration_ms = round((time.perf_counter() - started) * 1000, 1)
    if error is None:
        getattr(logger, level)("Call finished", call=func.__qualname__, duration_ms=duration_ms)
    else:
        logger.error(
            "Call failed",
            call=func.__qualname__,
            duration_ms=duration_ms,
            error_type=type(error).__name__,
            error=str(error)
        )


def log_execution_time(func):
    """Log how long ``func`` took; failures are logged and re-raised."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        started = time.perf_counter()
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            _log_outcome(func, started, "error", e)
            raise
        _log_outcome(func, started, "debug")
        return result

    return wrapper


def log_async_execution_time(func):
    """Coroutine variant of ``log_execution_time``, logging success at info."""

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        started = time.perf_counter()
        try:
            result = await func(*args, **kwargs)
        except Exception as e:
            _log_outcome(func, started, "error", e)
            raise
        _log_outcome(func, started, "info")
        return result

    return wrapper
