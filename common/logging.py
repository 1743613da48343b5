"""
Logging functionality for the note conversion tools.

This module provides functions for setting up logging with consistent formatting
and support for both console and file output.
"""

import logging
import sys
from typing import Optional

LOGGER_NAME = "notes_porter"
LOG_FORMAT = "%(asctime)s | %(levelname)8s | %(message)s"

logger = None


def setup_logging(log_file: Optional[str] = None, level: int = logging.INFO) -> None:
    """
    Initialize logger and log format.

    Parameters
    ----------
    log_file : str, optional
        Path to the log file. If provided, logs will be written to this file in addition to console output.
    level : int, optional
        Logging level for the tool logger (default: logging.INFO).
    """
    global logger
    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler(stream=sys.stdout)
    console_handler.setFormatter(formatter)

    handlers = [console_handler]

    if log_file:
        try:
            file_handler = logging.FileHandler(log_file, mode='a', encoding="utf-8")
            file_handler.setFormatter(formatter)
            handlers.append(file_handler)
            print(f"Logging to file: {log_file}")
        except Exception as e:
            print(f"Warning: Could not set up logging to file {log_file}: {e}")

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    # Handlers are attached here only, so records must not reach the root logger twice
    logger.propagate = False

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    for handler in handlers:
        logger.addHandler(handler)


def get_logger() -> logging.Logger:
    """
    Get the configured logger instance.

    Returns
    -------
    logging.Logger
        The configured logger instance.

    Raises
    ------
    RuntimeError
        If setup_logging has not been called before this function.
    """
    if logger is None:
        raise RuntimeError("Logger not initialized. Call setup_logging() first.")
    return logger


def get_or_setup_logger() -> logging.Logger:
    """
    Get the logger, initializing it with default settings if necessary.

    Returns
    -------
    logging.Logger
        The configured logger instance.
    """
    try:
        return get_logger()
    except RuntimeError:
        setup_logging()
        return get_logger()
