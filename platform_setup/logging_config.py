"""Logging configuration for the Platform Server setup tool.

Provides centralized logging setup with file and console handlers.
Log files are stored in the application's log directory.
"""
from __future__ import annotations

import logging
import sys
from pathlib import Path

from platform_setup.paths import get_log_directory

LOGGER_NAME = "platform_setup"
LOG_FILENAME = "platform_setup.log"


def setup_logging(debug: bool = False, log_dir: Path | None = None) -> logging.Logger:
    """Configure application-wide logging.

    Sets up logging to a file and, in debug mode, to the console.

    Args:
        debug: If True, also log to console at DEBUG level
        log_dir: Directory for the log file, defaults to the application log directory

    Returns:
        The root logger for the application
    """
    log_dir = log_dir or get_log_directory()
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILENAME

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)

    # Repeated calls must not stack handlers
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    logger.addHandler(file_handler)

    if debug:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.DEBUG)
        console_handler.setFormatter(logging.Formatter("%(levelname)s - %(name)s - %(message)s"))
        logger.addHandler(console_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a child logger for a specific component.

    Args:
        name: Component name (e.g., 'installer', 'server_config')

    Returns:
        A logger instance for the component
    """
    return logging.getLogger(f"{LOGGER_NAME}.{name}")
