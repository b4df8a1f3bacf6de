"""
Logging for the storefront package.

Usage:
    from storefront.logging import get_logger
    logger = get_logger(__name__)

    logger.info("Cart %s cleared", sanitize_id_for_logging(key))

The package logger ("storefront") takes its level from LOG_LEVEL. A stdout
handler is attached to the root logger only when the host application has
not configured logging itself.
"""

import hashlib
import logging
import os
import sys
from functools import cache

PACKAGE_LOGGER = "storefront"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FORMAT_SIMPLE = "%(levelname)s - %(name)s - %(message)s"

# Transport loggers of the Upstash client
QUIET_LOGGERS = ("httpx", "httpcore")


def _level_from_name(level_name: str | None) -> int:
    name = (level_name or "INFO").upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def configure_logging(level: str | None = None, style: str | None = None) -> None:
    """
    Apply storefront logging settings.

    Args:
        level: Level name for the package logger, defaults to LOG_LEVEL
        style: "simple" drops timestamps, defaults to LOG_STYLE
    """
    level_value = _level_from_name(level or os.environ.get("LOG_LEVEL"))
    logging.getLogger(PACKAGE_LOGGER).setLevel(level_value)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root = logging.getLogger()
    if root.handlers:
        return

    style = (style or os.environ.get("LOG_STYLE", "")).lower()
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT_SIMPLE if style == "simple" else LOG_FORMAT))
    root.addHandler(handler)


configure_logging()


@cache
def get_logger(name: str) -> logging.Logger:
    """Get a logger; names outside the package are nested under it."""
    if name != PACKAGE_LOGGER and not name.startswith(PACKAGE_LOGGER + "."):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)


def sanitize_id_for_logging(id_value: str | None) -> str:
    """
    Render a session or user key for logs.

    Keys are caller-controlled and may identify a shopper, so only a short
    prefix is shown, with control characters escaped (CWE-117).

    Args:
        id_value: Key to sanitize (can be None)

    Returns:
        First 8 characters of the escaped key, or "N/A" if empty
    """
    if not id_value:
        return "N/A"
    safe_value = (
        str(id_value)
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
        .replace("\x00", "")
    )
    return safe_value[:8]


def key_fingerprint(key: str) -> str:
    """Stable short hash of a cart key, for correlating log lines
    of the same cart without writing the key itself."""
    return hashlib.sha256(key.encode("utf-8")).hexdigest()[:12]


__all__ = [
    "LOG_FORMAT",
    "LOG_FORMAT_SIMPLE",
    "configure_logging",
    "get_logger",
    "key_fingerprint",
    "sanitize_id_for_logging",
]
