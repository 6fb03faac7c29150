"""
Structured logging utilities for programs built on async_parallel.

Library modules only log through ``logging.getLogger(__name__)`` and never
attach handlers. A host program that wants to see pool activity calls
``setup_logging()`` once, which renders those records (and anything logged
through ``get_logger()``) with structlog's console renderer.
"""

import logging
import os
import sys
from typing import IO, Any, Optional

import structlog
from structlog.typing import Processor

ENV_LOG_LEVEL = "ASYNC_PARALLEL_LOG_LEVEL"
_PKG_LOGGER_NAME = "async_parallel"


def _resolve_level(level: Optional[str]) -> int:
    level_name = (level or os.environ.get(ENV_LOG_LEVEL) or "INFO").strip().upper()
    numeric = getattr(logging, level_name, None)
    return numeric if isinstance(numeric, int) else logging.INFO


def setup_logging(
    level: Optional[str] = None,
    force_colors: Optional[bool] = None,
    stream: Optional[IO[str]] = None,
) -> logging.Handler:
    """
    Route ``async_parallel`` log records through structlog's console renderer.

    Pool and combinator debug messages come from stdlib loggers and share the
    timestamp, level and contextvars processors with structlog loggers.

    Args:
        level: Log level string (DEBUG, INFO, WARNING, ERROR). Defaults to
            ASYNC_PARALLEL_LOG_LEVEL, then INFO.
        force_colors: Colored output on or off; None follows ``stream.isatty()``.
        stream: Output stream, stderr by default.

    Returns:
        The installed handler, so callers can remove it again.
    """
    numeric_level = _resolve_level(level)
    stream = stream or sys.stderr

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", utc=False),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    structlog.configure(
        processors=shared_processors
        + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    console_processor = structlog.dev.ConsoleRenderer(
        colors=force_colors if force_colors is not None else stream.isatty(),
        exception_formatter=structlog.dev.plain_traceback,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            console_processor,
        ],
    )

    handler = logging.StreamHandler(stream)
    handler.setFormatter(formatter)

    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    pkg_logger.handlers.clear()
    pkg_logger.addHandler(handler)
    pkg_logger.setLevel(numeric_level)
    pkg_logger.propagate = False
    return handler


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """
    Get a structlog logger under the ``async_parallel`` namespace.

    Example:
        >>> logger = get_logger("jobs")
        >>> logger.info("Batch finished", batch=3, failures=0)
    """
    if name is None:
        logger_name = _PKG_LOGGER_NAME
    elif name == _PKG_LOGGER_NAME or name.startswith(f"{_PKG_LOGGER_NAME}."):
        logger_name = name
    else:
        logger_name = f"{_PKG_LOGGER_NAME}.{name}"

    return structlog.get_logger(logger_name)


def bind_log_context(**kwargs: Any) -> None:
    """
    Attach key-value pairs to every later message in the current context.

    Example:
        >>> bind_log_context(job="nightly-sync")
        >>> logger.info("Starting")  # Will include job
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_log_context(*keys: str) -> None:
    """Drop the named keys from the bound log context."""
    structlog.contextvars.unbind_contextvars(*keys)


def clear_log_context() -> None:
    """Drop every key from the bound log context."""
    structlog.contextvars.clear_contextvars()
