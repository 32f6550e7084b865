"""
Logging for docquery.

Every module logs through a child of the ``docquery`` logger:

    logger = get_logger(__name__)

Nothing is printed until an application calls ``setup_logger`` (or
``Settings.configure_logging``), which attaches one handler to the package
logger. Planning and paging are logged at DEBUG.
"""

import logging
import sys
from typing import IO, Optional, Union

from ..core.exceptions import ValidationError


DEFAULT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

ROOT_LOGGER = "docquery"

LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

LevelLike = Union[str, int]

# Marks handlers installed by setup_logger so that reconfiguring replaces
# only those
_HANDLER_ATTR = "_docquery_handler"


def resolve_level(level: LevelLike) -> int:
    """
    Turn a level name or number into a logging level.

    Raises:
        ValidationError: If the name is not one of LEVELS
    """
    if isinstance(level, bool):
        raise ValidationError(f"invalid log level: {level!r}")
    if isinstance(level, int):
        return level
    name = str(level).strip().upper()
    if name not in LEVELS:
        raise ValidationError(
            f"invalid log level {level!r}, expected one of {', '.join(LEVELS)}"
        )
    return getattr(logging, name)


def setup_logger(
    level: LevelLike = "INFO",
    format_string: Optional[str] = None,
    stream: Optional[IO[str]] = None,
    log_file: Optional[str] = None,
) -> logging.Logger:
    """
    Configure the package logger.

    Calling it again replaces the handlers an earlier call installed;
    handlers added by the application are left alone.

    Args:
        level: Level name (DEBUG, INFO, ...) or number
        format_string: Custom format string
        stream: Stream for console output (default: stderr)
        log_file: Optional file to log to as well

    Returns:
        The ``docquery`` logger
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(resolve_level(level))

    for handler in [h for h in logger.handlers if getattr(h, _HANDLER_ATTR, False)]:
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(format_string or DEFAULT_FORMAT, datefmt=DEFAULT_DATE_FORMAT)
    handlers = [logging.StreamHandler(stream or sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    for handler in handlers:
        handler.setFormatter(formatter)
        setattr(handler, _HANDLER_ATTR, True)
        logger.addHandler(handler)

    return logger


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    """
    Get a logger under the ``docquery`` namespace.

    Names outside the namespace (e.g. a test module's ``__name__``) are
    nested under it so that ``setup_logger`` still governs them.
    """
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


class LogContext:
    """
    Temporarily change a logger's level.

    Example:
        >>> with LogContext("DEBUG"):
        ...     executor.get_all(query)  # planning is logged
    """

    def __init__(self, level: LevelLike, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(ROOT_LOGGER)
        self.new_level = resolve_level(level)
        self.old_level = self.logger.level

    def __enter__(self) -> logging.Logger:
        self.old_level = self.logger.level
        self.logger.setLevel(self.new_level)
        return self.logger

    def __exit__(self, *args) -> None:
        self.logger.setLevel(self.old_level)
