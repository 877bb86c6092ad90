"""Logging setup and the extra TRACE level used for raw payloads."""

from __future__ import annotations

import logging

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def resolve_level(level_name: str | None) -> int:
    """Map a level name (``trace``, ``debug``...) to its number, INFO if unknown."""
    if not level_name:
        return logging.INFO
    name = level_name.strip().upper()
    if name == "TRACE":
        return TRACE
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def setup_logging(level_name: str = "INFO") -> None:
    logging.basicConfig(level=resolve_level(level_name), format=_FORMAT)
