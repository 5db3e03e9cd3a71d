"""
Logging setup shared by the API server, the client workflow and the smoke script.

Call ``setup_logging`` once at process start, then take a module logger:

    from saveyourgoblin.utils.logger import get_logger, setup_logging

    setup_logging(level="DEBUG", log_file="logs/goblin.log")
    logger = get_logger(__name__)
    logger.info("Regenerated traits")
"""

import logging
import sys
from pathlib import Path
from typing import Literal, Optional

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

RESET = "\033[0m"
NAME_COLOR = "\033[94m"
LEVEL_COLORS = {
    logging.DEBUG: "\033[36m",
    logging.INFO: "\033[32m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[35m",
}

# Quieted to WARNING whatever the application level is
NOISY_LOGGERS = ("httpx", "httpcore", "urllib3", "openai", "sqlalchemy.engine")

_FIELDS = "%(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ColoredFormatter(logging.Formatter):
    """Paints the level and logger name for terminal output."""

    def format(self, record):
        # File handlers format the same record, so color a copy
        painted = logging.makeLogRecord(record.__dict__)
        color = LEVEL_COLORS.get(record.levelno)
        if color:
            painted.levelname = f"{color}{record.levelname}{RESET}"
        painted.name = f"{NAME_COLOR}{record.name}{RESET}"
        return super().format(painted)


def _resolve_level(level: str) -> int:
    return getattr(logging, level.upper(), logging.INFO)


def _formatter(colored: bool, include_timestamp: bool) -> logging.Formatter:
    fmt = f"%(asctime)s | {_FIELDS}" if include_timestamp else _FIELDS
    datefmt = _DATE_FORMAT if include_timestamp else None
    cls = ColoredFormatter if colored else logging.Formatter
    return cls(fmt, datefmt=datefmt)


def setup_logging(
    level: LogLevel = "INFO",
    log_file: Optional[str] = None,
    enable_colors: bool = True,
    include_timestamp: bool = True,
) -> None:
    """
    Replace the root handlers with a stdout handler and an optional file handler.

    Args:
        level: Root level name
        log_file: Path of a log file; parent directories are created
        enable_colors: Color console output when stdout is a terminal
        include_timestamp: Prefix each line with the time
    """
    numeric_level = _resolve_level(level)
    handlers = []

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(_formatter(enable_colors and sys.stdout.isatty(), include_timestamp))
    handlers.append(console)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(_formatter(False, include_timestamp))
        handlers.append(file_handler)

    root = logging.getLogger()
    root.handlers = []
    root.setLevel(numeric_level)
    for handler in handlers:
        handler.setLevel(numeric_level)
        root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    destination = f"stdout and {log_file}" if log_file else "stdout"
    root.info(f"Logging to {destination} at {level}")


def get_logger(name: str) -> logging.Logger:
    """Module logger; pass ``__name__``."""
    return logging.getLogger(name)


class LogLevelContext:
    """
    Temporarily switch a logger's level (the root logger by default).

    Example:
        with LogLevelContext("DEBUG", "saveyourgoblin.client"):
            await controller.accept()
    """

    def __init__(self, level: LogLevel, name: Optional[str] = None):
        self.level = _resolve_level(level)
        self.logger = logging.getLogger(name)
        self.previous: Optional[int] = None

    def __enter__(self):
        self.previous = self.logger.level
        self.logger.setLevel(self.level)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.logger.setLevel(self.previous)
