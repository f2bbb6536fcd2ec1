"""Logging module for the relay."""

from .setup import LOG_LEVEL_ENV, setup_logging

__all__ = [
    "LOG_LEVEL_ENV",
    "setup_logging",
]
