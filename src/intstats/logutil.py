"""Logging for intstats.

One lazily configured ``intstats`` logger. Library code logs TSV column
widening and kept-raw fields at DEBUG and CLI failures at ERROR; the CLI
flips to DEBUG with ``--verbose``. Embedding applications that configure
their own handlers keep them.
"""
from __future__ import annotations

import logging
from typing import Optional

_LOGGER: Optional[logging.Logger] = None


def get_logger() -> logging.Logger:
    global _LOGGER
    if _LOGGER is None:
        logger = logging.getLogger("intstats")
        # Only add a handler if the application hasn't configured logging.
        if not logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter("[%(name)s] %(levelname)s: %(message)s")
            handler.setFormatter(formatter)
            logger.addHandler(handler)
        logger.setLevel(logging.WARNING)
        _LOGGER = logger
    return _LOGGER


def set_verbose(enabled: bool) -> None:
    get_logger().setLevel(logging.DEBUG if enabled else logging.WARNING)

__all__ = ["get_logger", "set_verbose"]
