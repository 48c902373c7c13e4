"""
Logging utilities for the Society Console.

Provides a logger factory that creates configured Python loggers with
consistent formatting across the listing, session and gateway layers.

Environment variables used:
- LOG_LEVEL: Default level for every console logger (INFO)
- LOG_LEVEL_<MODULE>: Level for one module, e.g. LOG_LEVEL_LISTING=DEBUG
- LOG_FORMAT: logging.Formatter format string
"""

import logging
import os
from pathlib import Path

_PACKAGE = "society_console"
_DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def logger(name: str) -> logging.Logger:
    """
    Create and configure a logger for the given name.

    If name is a file path (e.g., __file__), the module stem is used so
    log lines read "society_console.listing" rather than the full path.

    Args:
        name: Logger name or __file__ path.

    Returns:
        Configured logging.Logger instance.
    """
    if "/" in name or "\\" in name:
        name = f"{_PACKAGE}.{Path(name).stem}"

    log = logging.getLogger(name)

    # Handlers are attached once per logger name
    if not log.handlers:
        log.setLevel(level_for(name))
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter(os.getenv("LOG_FORMAT") or _DEFAULT_FORMAT, datefmt=_DATE_FORMAT)
        )
        log.addHandler(handler)

    return log


def level_for(name: str) -> int:
    """
    Resolve the level for a logger name.

    A module override (LOG_LEVEL_LISTING for "society_console.listing")
    wins over LOG_LEVEL; unknown level names fall back to INFO.
    """
    module = name.rsplit(".", 1)[-1].upper()
    raw = os.getenv(f"LOG_LEVEL_{module}") or os.getenv("LOG_LEVEL") or "INFO"
    level = logging.getLevelName(raw.strip().upper())
    return level if isinstance(level, int) else logging.INFO
