"""Logging setup for the library and the CLI.

The library only ever asks for named loggers; handlers are installed once by
`init_logger` (the CLI does it, tests do it from ``conftest.py``).
"""

import logging
import os
import sys
from typing import TextIO

__all__ = [
    "LogObjects",
    "get_logger",
    "init_logger",
    "is_debug",
    "set_debug",
    "should_colorize",
]

_ESC = "\x1b["
_RESET = f"{_ESC}0m"

# level -> ANSI codes
_LEVEL_STYLES = {
    logging.WARNING: "33;2",
    logging.ERROR: "31;2",
    logging.CRITICAL: "31;1",
}


class LogObjects:
    """Process wide logging state."""

    debug: bool = bool(os.environ.get("DEBUG"))
    handlers: list[logging.Handler] = []


def is_debug() -> bool:
    """Return True when debug logging is enabled."""
    return LogObjects.debug


def set_debug(value: bool) -> None:
    """Enable or disable debug logging for loggers created afterwards."""
    LogObjects.debug = value


def should_colorize(stream: TextIO | None = None) -> bool:
    """Tell if ANSI colors should be used on `stream` (stderr by default).

    ``NO_COLOR`` wins over ``FORCE_COLOR``, which wins over TTY detection.
    """
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("FORCE_COLOR"):
        return True
    if stream is None:
        stream = sys.stderr
    return hasattr(stream, "isatty") and stream.isatty()


class ScreenLogFormatter(logging.Formatter):
    """Console formatter, coloring warnings and errors when the terminal allows it."""

    def __init__(self, colors: bool | None = None) -> None:
        super().__init__()
        log_format = r"%(name)20s - %(message)s // %(filename)s:%(lineno)d" if is_debug() else r"%(message)s"
        use_colors = should_colorize() if colors is None else colors
        self._default = logging.Formatter(log_format)
        self._formatters: dict[int, logging.Formatter] = {}
        if use_colors:
            for level, codes in _LEVEL_STYLES.items():
                self._formatters[level] = logging.Formatter(f"{_ESC}{codes}m{log_format}{_RESET}")

    def format(self, record: logging.LogRecord) -> str:
        return self._formatters.get(record.levelno, self._default).format(record)


def init_logger(filename: str | None = None, force_debug: bool = False) -> None:
    """Initialize the logging handlers.

    Args:
        filename: Optional file receiving a copy of every record
        force_debug: If True, force debug level
    """
    if force_debug:
        set_debug(True)
    for name in list(logging.Logger.manager.loggerDict):
        if name == "hyprsock" or name.startswith("hyprsock."):
            logger = logging.getLogger(name)
            for handler in LogObjects.handlers:
                logger.removeHandler(handler)
    LogObjects.handlers.clear()
    if filename:
        file_handler = logging.FileHandler(filename)
        file_handler.setFormatter(logging.Formatter(fmt=r"%(asctime)s [%(levelname)s] %(name)s :: %(message)s"))
        LogObjects.handlers.append(file_handler)
    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(ScreenLogFormatter())
    LogObjects.handlers.append(stream_handler)


def get_logger(name: str = "hyprsock", level: int | None = None) -> logging.Logger:
    """Return a named logger attached to the configured handlers.

    Args:
        name: logger's name, ``hyprsock.`` is prepended when missing
        level: logger's level (DEBUG in debug mode, WARNING otherwise, if not set)
    """
    if name != "hyprsock" and not name.startswith("hyprsock."):
        name = f"hyprsock.{name}"
    logger = logging.getLogger(name)
    if level is None:
        logger.setLevel(logging.DEBUG if is_debug() else logging.WARNING)
    else:
        logger.setLevel(level)
    if LogObjects.handlers:
        logger.propagate = False
        for handler in LogObjects.handlers:
            if handler not in logger.handlers:
                logger.addHandler(handler)
    return logger
