"""
Logging utilities for the tool engine.

Every module logs through a child of the ``agent_tool_engine`` logger;
:func:`setup_logging` attaches the handlers once for the whole package.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

PACKAGE_LOGGER = "agent_tool_engine"
DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Log one INFO line per request
HTTP_LOGGERS = ("httpx", "httpcore")

_root_logger = logging.getLogger(PACKAGE_LOGGER)


def _parse_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    return getattr(logging, level.upper(), logging.INFO)


def setup_logging(
    level: str | int = "INFO",
    format: str | None = None,
    stream: TextIO | None = None,
    file: str | None = None,
) -> None:
    """
    Configure logging for the tool engine.

    Replaces any handlers installed by an earlier call. HTTP client loggers
    are held at WARNING unless ``level`` is DEBUG.

    Example:
        setup_logging("DEBUG")
        setup_logging("INFO", file="agent.log")
    """
    level = _parse_level(level)
    formatter = logging.Formatter(format or DEFAULT_FORMAT)

    _root_logger.setLevel(level)
    for handler in _root_logger.handlers:
        handler.close()
    _root_logger.handlers.clear()

    handlers: list[logging.Handler] = [logging.StreamHandler(stream or sys.stderr)]
    if file:
        handlers.append(logging.FileHandler(file, encoding="utf-8"))
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.setLevel(level)
        _root_logger.addHandler(handler)

    http_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in HTTP_LOGGERS:
        logging.getLogger(name).setLevel(http_level)


def get_logger(name: str) -> logging.Logger:
    """Child logger for a submodule, e.g. ``get_logger("adapters")``."""
    if name.startswith(f"{PACKAGE_LOGGER}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{PACKAGE_LOGGER}.{name}")
