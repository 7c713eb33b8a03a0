"""Logging for the ``gibrocash`` package and the HTTP stack beneath it.

Library modules only call ``get_logger("gibrocash.<module>")``. Handlers are
attached once, by :func:`configure_logging`, when the CLI starts. The level
comes from ``GIBROCASH_LOG_LEVEL`` via :func:`gibrocash.settings.read_log_level`.

``httpx`` and ``httpcore`` log one INFO line per request (including the full
URL). They are held at WARNING unless the package itself runs at DEBUG.
"""

from __future__ import annotations

import logging
import sys
from typing import IO

_PKG_LOGGER_NAME = "gibrocash"
_HTTP_LOGGER_NAMES = ("httpx", "httpcore")
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_CONFIGURED = False


def parse_level(level: int | str | None) -> int:
    """Map a level name or number to a ``logging`` level; unknown means INFO."""

    if isinstance(level, int):
        return level
    text = (level or "").strip().upper()
    if text.isdigit():
        return int(text)
    numeric = logging.getLevelName(text) if text else None
    return numeric if isinstance(numeric, int) else logging.INFO


def configure_logging(level: int | str | None = None, *, stream: IO[str] | None = None) -> None:
    """Attach the package's single stderr handler; later calls are no-ops."""

    global _CONFIGURED
    if _CONFIGURED:
        return

    resolved = parse_level(level)
    logger = logging.getLogger(_PKG_LOGGER_NAME)
    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler):
            logger.removeHandler(h)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(resolved)
    logger.propagate = False

    http_level = logging.DEBUG if resolved <= logging.DEBUG else logging.WARNING
    for name in _HTTP_LOGGER_NAMES:
        http_logger = logging.getLogger(name)
        http_logger.setLevel(http_level)
        if resolved <= logging.DEBUG:
            http_logger.addHandler(handler)

    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if not _CONFIGURED and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["LOG_FORMAT", "configure_logging", "get_logger", "parse_level"]
