"""Centralized logging configuration for tasktree.

This module provides a standardized logging setup with:
- File-based logging with rotation
- Configurable log levels via environment variable
- Structured log format with timestamps
- Automatic log directory creation
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional


# Log file configuration
LOG_DIR = Path.home() / ".tasktree" / "logs"
LOG_FILE = LOG_DIR / "tasktree.log"

# Log format configuration
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Rotation configuration
MAX_BYTES = 10 * 1024 * 1024  # 10MB
BACKUP_COUNT = 5


def setup_logging(log_level: Optional[str] = None) -> None:
    """Initialize application logging with file rotation.

    Creates the log directory if it doesn't exist and configures a rotating
    file handler on the root logger.

    Args:
        log_level: Override log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
                  If None, reads from TASKTREE_LOG_LEVEL environment variable.
                  Defaults to INFO if not specified.

    Example:
        >>> setup_logging()  # Uses default INFO level
        >>> setup_logging(log_level="DEBUG")  # Override to DEBUG
    """
    if log_level is None:
        log_level = os.getenv("TASKTREE_LOG_LEVEL", "INFO")
    log_level = log_level.upper()

    numeric_level = getattr(logging, log_level, None)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO
        log_level = "INFO"

    LOG_DIR.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # Remove existing handlers to avoid duplicates
    root_logger.handlers.clear()

    file_handler = RotatingFileHandler(
        LOG_FILE,
        maxBytes=MAX_BYTES,
        backupCount=BACKUP_COUNT,
        encoding="utf-8"
    )
    file_handler.setLevel(numeric_level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    root_logger.addHandler(file_handler)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging initialized: level={log_level}, file={LOG_FILE}")


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for the specified module.

    Args:
        name: Module name, typically __name__

    Returns:
        Logger instance configured with the module name

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Task added")
    """
    return logging.getLogger(name)
