"""
Logging utilities.

WHAT: Centralized logging configuration
WHY: Consistent log format and easy logger access for every provider module
HOW: Python logging with file and console handlers
"""

import logging
import sys
from pathlib import Path

from ..core.config import settings


def setup_logging(level: str | None = None, log_file: str | None = None) -> None:
    """
    Configure application logging.

    WHAT: Set up the package logger with file and console handlers
    WHY: Provider diagnostics (timings, truncation warnings) end up in one place
    HOW: Create handlers with formatters, set levels from config

    Args:
        level: Override for settings.LOG_LEVEL
        log_file: Override for settings.LOG_FILE
    """
    level_name = (level or settings.LOG_LEVEL).upper()
    log_path = Path(log_file or settings.LOG_FILE)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    # Package logger, so a host application's root logger is left alone
    package_logger = logging.getLogger("infill")
    package_logger.setLevel(getattr(logging, level_name, logging.INFO))

    # Remove existing handlers
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    # Console handler
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.INFO)
    console_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    console_handler.setFormatter(console_formatter)
    package_logger.addHandler(console_handler)

    # File handler
    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(pathname)s:%(lineno)d - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    file_handler.setFormatter(file_formatter)
    package_logger.addHandler(file_handler)

    package_logger.info(f"Logging initialized (level={level_name}, file={log_path})")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a module.

    Args:
        name: Module name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def preview(text: str, limit: int = 50) -> str:
    """Shorten text for debug logs."""
    if len(text) <= limit:
        return text
    return f"{text[:limit]}..."
