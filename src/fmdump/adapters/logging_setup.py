"""Logging configuration for the adapter and CLI layers.

Standard `logging` with a Rich handler on stderr. The core never logs: decode
warnings are data, and the adapters decide whether to report them.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "fmdump"

_configured = False


def configure_logging(level: str | int = "WARNING") -> logging.Logger:
    """Install the Rich handler once; later calls only adjust the level."""

    global _configured
    logger = logging.getLogger(LOGGER_NAME)
    if not _configured:
        handler = RichHandler(
            console=Console(stderr=True),
            show_path=False,
            rich_tracebacks=False,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)
        logger.propagate = False
        _configured = True
    logger.setLevel(level)
    return logger


def get_logger(name: str) -> logging.Logger:
    """Child logger under the `fmdump` namespace."""

    if name.startswith(LOGGER_NAME):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")
