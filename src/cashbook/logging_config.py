"""Package-wide logging setup for the command line."""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(verbose: bool = False, log_file: Optional[Path] = None) -> logging.Logger:
    """Configure the ``cashbook`` logger with console and optional file handlers.

    The console shows warnings (everything with ``verbose``); the rotating log
    file keeps INFO and above. Calling this again replaces earlier handlers.

    Args:
        verbose: Show debug output on stderr
        log_file: Optional path of the rotating log file

    Returns:
        The configured package logger
    """
    logger = logging.getLogger("cashbook")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    if log_file is not None:
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                log_file,
                maxBytes=1_000_000,
                backupCount=5,
                encoding="utf-8",
            )
            file_handler.setLevel(logging.INFO)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
        except OSError as exc:
            print(f"Warning: unable to initialize log file at '{log_file}': {exc}", file=sys.stderr)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    return logger


def reset_logging() -> None:
    """Detach and close the handlers installed by ``configure_logging``."""
    logger = logging.getLogger("cashbook")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
