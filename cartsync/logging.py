"""
Centralized logging configuration for cartsync.

Usage:
    from cartsync.logging import get_logger
    logger = get_logger(__name__)

    logger.info("Cart synced")
    logger.warning("Backend add failed: %s", err)

Host applications that own logging can call ``configure_logging(force=True)``
or attach their own root handlers before importing cartsync.
"""

import logging
import os
import sys
from functools import cache

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FORMAT_SIMPLE = "%(levelname)s - %(name)s - %(message)s"

# Loggers of the HTTP stack used by the transport
_QUIET_LOGGERS = ("httpx", "httpcore")


def _level_from_env() -> int:
    """LOG_LEVEL from environment, INFO when unset or unknown."""
    level_name = os.environ.get("LOG_LEVEL", "INFO").upper()
    return getattr(logging, level_name, logging.INFO)


def configure_logging(level: int | None = None, force: bool = False) -> None:
    """
    Attach a stdout handler to the root logger.

    Does nothing when the root logger already has handlers, unless
    ``force`` is set.

    Args:
        level: Log level; defaults to LOG_LEVEL from the environment
        force: Replace existing root handlers
    """
    root = logging.getLogger()
    if root.handlers and not force:
        return
    if force:
        for existing in list(root.handlers):
            root.removeHandler(existing)

    level = _level_from_env() if level is None else level
    root.setLevel(level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    is_production = os.environ.get("CARTSYNC_ENV", "").lower() == "production"
    handler.setFormatter(logging.Formatter(LOG_FORMAT_SIMPLE if is_production else LOG_FORMAT))
    root.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


configure_logging()


@cache
def get_logger(name: str) -> logging.Logger:
    """
    Get or create a logger with the given name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)


def _escape_log_injection(value: str) -> str:
    """Escape control characters that could forge log entries (CWE-117)."""
    return (
        value.replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
        .replace("\x00", "")
    )


def sanitize_id_for_logging(id_value: str | None) -> str:
    """
    Sanitize an ID for logging: escape it and keep only the first 8 chars.

    Args:
        id_value: ID value to sanitize (can be None)

    Returns:
        Sanitized ID string or "N/A" if empty
    """
    if not id_value:
        return "N/A"
    safe_value = _escape_log_injection(str(id_value))
    return safe_value[:8] if len(safe_value) > 8 else safe_value


def sanitize_string_for_logging(value: str | None, max_length: int = 50) -> str:
    """
    Sanitize a free-form string (e.g. a product title) for logging.

    Args:
        value: String value to sanitize (can be None)
        max_length: Maximum length to keep (default: 50)

    Returns:
        Sanitized string or "N/A" if empty
    """
    if not value:
        return "N/A"
    safe_value = _escape_log_injection(str(value))
    if len(safe_value) <= max_length:
        return safe_value
    return safe_value[:max_length] + "..."


def describe_line(item) -> str:
    """Short, log-safe label for a cart line: title, product ref, quantity."""
    title = sanitize_string_for_logging(getattr(item, "title", None), max_length=30)
    product = sanitize_id_for_logging(getattr(item, "product_id", None))
    return f"{title} [{product}] x{getattr(item, 'quantity', '?')}"


__all__ = [
    "LOG_FORMAT",
    "LOG_FORMAT_SIMPLE",
    "configure_logging",
    "describe_line",
    "get_logger",
    "sanitize_id_for_logging",
    "sanitize_string_for_logging",
]
