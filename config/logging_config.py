# Path: config/logging_config.py
# Purpose: Centralize logging configuration for the engine, scripts, and API.
# Layer: config.
# Details: Console handler for interactive use plus an optional rotating file handler with a detailed format.

from __future__ import annotations

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional

DETAILED_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s:%(lineno)d] %(message)s"
SIMPLE_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str | Path] = None,
    console: bool = True,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> logging.Logger:
    """
    Configure application-wide logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to a log file. No file handler is installed when None.
        console: Whether to log to stdout
        max_bytes: Max size of the log file before rotation
        backup_count: Number of rotated log files to keep

    Returns:
        Configured root logger
    """

    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # Reconfiguration replaces previous handlers.
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(numeric_level)
        console_handler.setFormatter(logging.Formatter(SIMPLE_FORMAT))
        root_logger.addHandler(console_handler)

    if log_file is not None:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(DETAILED_FORMAT))
        root_logger.addHandler(file_handler)

    root_logger.debug("Logging initialized (level=%s, file=%s)", log_level, log_file)
    return root_logger


def get_logger(name: str) -> logging.Logger:
    """Return a module logger; configuration is left to :func:`setup_logging`."""

    return logging.getLogger(name)


__all__ = ["setup_logging", "get_logger"]
