"""Logging configuration for the relay."""

import logging
import os
import sys

LOG_LEVEL_ENV = "CLOUDRELAY_LOG_LEVEL"


def _resolve_level(level: str | int | None) -> int:
    if isinstance(level, int):
        return level
    name = (level or os.getenv(LOG_LEVEL_ENV) or "INFO").strip().upper()
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(level: str | int | None = None) -> logging.Logger:
    """Set up the relay logger with a stdout handler.

    The level comes from ``level`` if given, else from CLOUDRELAY_LOG_LEVEL,
    else INFO.
    """
    logger = logging.getLogger("cloudrelay")
    resolved = _resolve_level(level)
    logger.setLevel(resolved)

    # Clear any existing handlers
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(resolved)

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # Propagate so pytest's caplog and host applications still see records
    logger.propagate = True

    return logger
