"""Logging bootstrap for the ``sms_ledger`` package.

Library modules only call ``logging.getLogger(__name__)``. Entrypoints (the
CLI callback and the API app factory) call :func:`configure_logging` once to
attach a single stream handler to the package root logger.
"""

from __future__ import annotations

import logging
import sys
from typing import IO

PACKAGE_LOGGER_NAME = "sms_ledger"
DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

_configured = False


def parse_level(level: int | str) -> int:
    """Resolve a numeric level from an int, numeric string or level name."""

    if isinstance(level, int):
        return level
    normalized = level.strip().upper()
    if normalized.isdigit():
        return int(normalized)
    numeric = logging.getLevelName(normalized)
    if isinstance(numeric, int):
        return numeric
    return logging.INFO


def configure_logging(
    level: int | str = logging.INFO,
    *,
    stream: IO[str] = sys.stderr,
) -> None:
    """Attach one stream handler to the package logger, at most once."""

    global _configured
    package_logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    package_logger.setLevel(parse_level(level))
    if _configured:
        return

    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
    package_logger.addHandler(handler)
    package_logger.propagate = False
    _configured = True
