"""Logging for Duna Swap.

Every run appends to ``duna_swap.log`` in the config directory; the file
rotates so repeated CLI invocations do not grow it without bound. With
``--debug`` the same records are echoed to stderr, leaving stdout to the
JSON command output.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

ROOT_LOGGER = "duna_swap"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
CONSOLE_FORMAT = "%(levelname)s - %(name)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
MAX_LOG_BYTES = 1_000_000
LOG_BACKUPS = 3


def _file_handler(log_file: Path) -> logging.Handler:
    handler = RotatingFileHandler(log_file, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS, encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def _console_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    return handler


def setup_logging(debug: bool = False, log_dir: Optional[Path] = None) -> logging.Logger:
    """Attach fresh handlers to the ``duna_swap`` logger.

    Handlers from an earlier call are closed first, so calling this more
    than once (as the tests do) never duplicates output.

    Args:
        debug: Also log to stderr
        log_dir: Folder for the log file, defaults to the config directory

    Returns:
        The application's top-level logger
    """
    from .config.paths import AppPaths

    log_dir = log_dir or AppPaths.CONFIG_DIR
    log_dir.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(logging.DEBUG)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)

    logger.addHandler(_file_handler(log_dir / AppPaths.LOG_FILE_NAME))
    if debug:
        logger.addHandler(_console_handler())

    logger.debug(f"Logging to {log_dir / AppPaths.LOG_FILE_NAME} (debug={debug})")
    return logger


def get_logger(name: str) -> logging.Logger:
    """Child logger for one module, e.g. ``get_logger("swap_service")``."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
