"""Logging setup helpers."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def resolve_level(level: str | int) -> int:
    """Translate a config level name ("info") into a logging level."""
    if isinstance(level, int):
        return level
    return _LEVELS.get(level.lower(), logging.INFO)


def setup_logging(level: str | int = "info") -> None:
    """
    Configure root logging for promptcore consumers.

    Args:
        level: Level name from LoggingSettings or a logging constant
    """
    logging.basicConfig(
        level=resolve_level(level),
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
    )
    logging.getLogger("promptcore").setLevel(resolve_level(level))
