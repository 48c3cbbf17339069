"""Logging configuration for rec."""

import logging
import sys
from pathlib import Path

from rec.config import get_config_dir


def get_log_file() -> Path:
    return get_config_dir() / "logs" / "rec.log"


def setup_logging(level: int = logging.WARNING, log_file: Path | None = None) -> logging.Logger:
    """
    Set up logging configuration.

    The console handler writes to stderr so stdout carries only the transcript.
    The file handler always records DEBUG and above.

    Args:
        level: Console logging level (default: WARNING)
        log_file: Log file path (default: <config dir>/logs/rec.log)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger("rec")
    logger.setLevel(logging.DEBUG)

    # Avoid adding handlers multiple times
    if logger.handlers:
        return logger

    # Console handler
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )
    console_handler.setFormatter(console_formatter)
    logger.addHandler(console_handler)

    # File handler
    log_file = log_file or get_log_file()
    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        file_handler.setFormatter(file_formatter)
        logger.addHandler(file_handler)
    except OSError as e:
        # OSError (incl. PermissionError): log directory or file cannot be created
        logger.warning(f"Could not set up file logging: {e}")

    return logger
