"""
Centralized logging configuration for the famalbum package.

Structured logging is set up with structlog on top of the standard library
``logging`` module. Development environments get a console renderer, every
other environment gets one JSON object per line.
"""

import logging
import os
import sys
from typing import Any

import structlog

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def get_log_level() -> int:
    """
    Get log level from the LOG_LEVEL environment variable.

    Returns:
        int: Log level constant from the logging module (INFO when unset or unknown)
    """
    return _LEVELS.get(os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)


def is_development_environment() -> bool:
    """Check if running in a development environment."""
    return os.getenv("ENVIRONMENT", "development").lower() in ["development", "dev", "local"]


def configure_structured_logging() -> None:
    """
    Configure structured logging for the whole package.

    Safe to call more than once; the last call wins.
    """
    log_level = get_log_level()
    is_dev = is_development_environment()
    use_colors = is_dev and sys.stderr.isatty()

    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        stream=sys.stderr,
    )

    processors: list[Any] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if is_dev:
        processors.append(structlog.dev.ConsoleRenderer(colors=use_colors))
    else:
        processors.append(structlog.processors.JSONRenderer())

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.getLogger().setLevel(log_level)

    logger = structlog.get_logger("famalbum.logging")
    logger.info(
        "logging_configured",
        log_level=logging.getLevelName(log_level),
        environment="development" if is_dev else "production",
        colors_enabled=use_colors,
    )


def get_logger(name: str | None = None) -> Any:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (optional, defaults to the calling module)

    Returns:
        structlog.BoundLogger: Configured logger instance
    """
    if name is None:
        import inspect

        frame = inspect.currentframe()
        if frame and frame.f_back:
            name = frame.f_back.f_globals.get("__name__", "unknown")

    return structlog.get_logger(name)


def log_performance(operation: str, duration: float, **context: Any) -> None:
    """
    Log the duration of an operation.

    Args:
        operation: Name of the operation
        duration: Duration in seconds
        **context: Additional context information
    """
    logger = get_logger("famalbum.performance")
    logger.info("performance_metric", operation=operation, duration_seconds=duration, **context)


def log_user_action(user_id: str, action: str, **context: Any) -> None:
    """
    Log user-attributed changes for the audit trail.

    Args:
        user_id: User the action concerns
        action: Action performed
        **context: Additional context information
    """
    logger = get_logger("famalbum.user_actions")
    logger.info("user_action", user_id=user_id, action=action, **context)


def log_error(error: Exception, context: dict[str, Any] | None = None) -> None:
    """
    Log errors with structured context.

    Args:
        error: Exception that occurred
        context: Additional context information
    """
    logger = get_logger("famalbum.errors")

    error_context = {
        "error_type": type(error).__name__,
        "error_message": str(error),
    }

    if context:
        error_context.update(context)

    logger.error("error_occurred", **error_context)

