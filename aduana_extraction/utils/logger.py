"""
Logging Configuration Module.

Every module logger lives under the ``aduana_extraction`` namespace, so
configuring that one logger configures the whole library without touching
the host application's root logger.

Usage:
    from aduana_extraction.utils.logger import setup_logger, get_logger

    setup_logger()
    logger = get_logger(__name__)
    logger.info("Processing carnet...")

Author: ML Engineering Team
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional

import colorama
from colorama import Fore, Style

ROOT_LOGGER_NAME = "aduana_extraction"

DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ColoredFormatter(logging.Formatter):
    """Console formatter that paints each line with its level colour."""

    LEVEL_COLORS = {
        logging.DEBUG: Fore.CYAN,
        logging.INFO: Fore.GREEN,
        logging.WARNING: Fore.YELLOW,
        logging.ERROR: Fore.RED,
        logging.CRITICAL: Fore.RED + Style.BRIGHT,
    }

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        color = self.LEVEL_COLORS.get(record.levelno)
        return f"{color}{line}{Style.RESET_ALL}" if color else line


def _console_handler(fmt: str, datefmt: str, colorize: bool) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    if colorize:
        colorama.init()
        handler.setFormatter(ColoredFormatter(fmt, datefmt=datefmt))
    else:
        handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
    return handler


def _file_handler(log_file: str, fmt: str, datefmt: str,
                  max_bytes: int, backup_count: int) -> logging.Handler:
    path = Path(log_file)
    path.parent.mkdir(parents=True, exist_ok=True)

    handler = logging.handlers.RotatingFileHandler(
        path, maxBytes=max_bytes, backupCount=backup_count, encoding='utf-8'
    )
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
    return handler


def setup_logger(
    level: str = "INFO",
    log_format: Optional[str] = None,
    date_format: Optional[str] = None,
    log_file: Optional[str] = None,
    max_bytes: int = 10485760,
    backup_count: int = 5,
    colorize: bool = True
) -> logging.Logger:
    """
    Configure the ``aduana_extraction`` logger.

    Existing handlers are replaced, so calling this twice does not
    duplicate output.

    Args:
        level: Level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: Record format; defaults to ``DEFAULT_FORMAT``.
        date_format: ``asctime`` format; defaults to ``DEFAULT_DATE_FORMAT``.
        log_file: Rotating log file path. ``None`` logs to the console only.
        max_bytes: Size at which the log file rotates.
        backup_count: Rotated files to keep.
        colorize: Colour console output with colorama.

    Returns:
        The configured library logger.
    """
    numeric_level = getattr(logging, level.upper())
    fmt = log_format or DEFAULT_FORMAT
    datefmt = date_format or DEFAULT_DATE_FORMAT

    library_logger = logging.getLogger(ROOT_LOGGER_NAME)
    library_logger.setLevel(numeric_level)
    library_logger.handlers.clear()
    library_logger.addHandler(_console_handler(fmt, datefmt, colorize))
    if log_file:
        library_logger.addHandler(_file_handler(log_file, fmt, datefmt, max_bytes, backup_count))

    # Records stop here; the host application's handlers stay untouched.
    library_logger.propagate = False

    library_logger.debug(f"Logging initialized at {level.upper()}"
                         + (f", file={log_file}" if log_file else ""))
    return library_logger


def get_logger(name: str) -> logging.Logger:
    """Return a logger nested under the library namespace."""
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def setup_logger_from_config() -> logging.Logger:
    """Configure logging from the ``logging`` section of settings.yaml."""
    from config import get_config

    log_file = get_config("logging.file.path") if get_config("logging.file.enabled", False) else None

    return setup_logger(
        level=get_config("logging.level", "INFO"),
        log_format=get_config("logging.format"),
        date_format=get_config("logging.date_format"),
        log_file=log_file,
        max_bytes=get_config("logging.file.max_bytes", 10485760),
        backup_count=get_config("logging.file.backup_count", 5),
        colorize=get_config("logging.console.colorize", True)
    )
