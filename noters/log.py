"""Logging setup for Noters."""

import logging
import sys
from typing import Final, TextIO

#: The name of the package logger every module logger hangs off.
LOGGER_NAME: Final[str] = "noters"
#: The log line format.
LOG_FORMAT: Final[str] = "%(levelname)s %(message)s"


def setup_logging(level: str = "INFO", stream: TextIO | None = None) -> logging.Logger:
    """
    Send Noters log records to ``stream``.

    Calling this again only changes the level.

    Args:
        level: Log level name

    Keyword Args:
        stream: Where to write log lines.  Defaults to ``sys.stderr``.

    Returns:
        The package logger

    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    if logger.handlers:
        return logger

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.debug(f"Logging initialized at level {level}")
    return logger
