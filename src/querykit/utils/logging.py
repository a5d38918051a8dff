"""Structured logging framework using structlog.

This module provides centralized configuration for the package's own
diagnostics (not the per-handle query log channels) with:
- ISO-8601 timestamps
- JSON rendering for structured logs
- Context binding support

Configuration is loaded from querykit.config.settings:
- LOG_LEVEL: Set log level (DEBUG, INFO, WARNING, ERROR, CRITICAL). Default: INFO

Usage:
    >>> from querykit.utils.logging import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.info("query_log.worker_started", queue_size=1000)
"""

import logging
import os
from typing import Any

import structlog
from structlog.types import Processor

from querykit.config import Settings

_HANDLER_NAME = "querykit.stdout"


def _get_log_level() -> int:
    """Get log level from settings.

    Settings are read directly: get_settings() logs, and structlog is not
    configured yet when this runs.

    Returns:
        Logging level constant (e.g., logging.INFO, logging.DEBUG)
    """
    try:
        level_name = Settings().LOG_LEVEL
    except Exception:
        # Invalid settings must not prevent logging from starting
        level_name = os.getenv("QUERYKIT_LOG_LEVEL", "INFO").upper()

    return getattr(logging, level_name, logging.INFO)


def _configure_structlog() -> None:
    """Configure structlog with JSON rendering on top of stdlib logging.

    Sets up:
    - ISO-8601 timestamps
    - Logger name
    - Log level
    - JSON renderer
    """
    level = _get_log_level()
    package_logger = logging.getLogger("querykit")
    package_logger.setLevel(level)

    if not any(h.get_name() == _HANDLER_NAME for h in package_logger.handlers):
        stdout_handler = logging.StreamHandler()
        stdout_handler.set_name(_HANDLER_NAME)
        stdout_handler.setFormatter(logging.Formatter("%(message)s"))
        package_logger.addHandler(stdout_handler)

    # A configuration installed by the host application is left in place
    if structlog.is_configured():
        return

    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


# Configure structlog on module import
_configure_structlog()


def get_logger(name: str) -> Any:
    """Get a structlog BoundLogger instance.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Returns:
        A structlog BoundLogger configured with JSON rendering

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.warning("query_log.write_failed", error="boom")
    """
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> Any:
    """Create a logger with bound context fields.

    Args:
        **kwargs: Context fields to bind (e.g., table="person", driver="sqlite")

    Returns:
        A BoundLogger with the specified context already bound

    Example:
        >>> logger = bind_context(handle="primary", driver="postgresql")
        >>> logger.info("database.handle.created")
        # Emits: {"handle": "primary", "driver": "postgresql",
        #         "event": "database.handle.created", ...}
    """
    return structlog.get_logger().bind(**kwargs)
