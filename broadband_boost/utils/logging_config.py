"""
BroadbandBoost - Logging Configuration

This module provides centralized logging configuration for the application.
"""

import logging
import logging.handlers
import sys
from pathlib import Path


LOG_FILE_NAME = "broadband_boost.log"


def setup_logging(
    level: int = logging.INFO,
    log_dir: Path = Path("data/logs")
) -> logging.Logger:
    """
    Configure application-wide logging.

    Args:
        level: Logging level (default: INFO)
        log_dir: Directory for broadband_boost.log

    Returns:
        Root logger instance
    """
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / LOG_FILE_NAME

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    # Console handler goes to stderr; stdout carries the JSON output of the CLI
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_format = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    console_handler.setFormatter(console_format)
    root_logger.addHandler(console_handler)

    # File handler with detailed format and rotation
    file_handler = logging.handlers.RotatingFileHandler(
        log_path,
        maxBytes=10 * 1024 * 1024,  # 10 MB
        backupCount=5,
        encoding="utf-8"
    )
    file_handler.setLevel(logging.DEBUG)
    file_format = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(funcName)s:%(lineno)d | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    file_handler.setFormatter(file_format)
    root_logger.addHandler(file_handler)

    quiet_third_party_loggers()

    return root_logger


def quiet_third_party_loggers() -> None:
    """Raise third-party library loggers to WARNING."""
    noisy_libraries = [
        "urllib3",
        "botocore",
        "snowflake.connector"
    ]

    for lib in noisy_libraries:
        logging.getLogger(lib).setLevel(logging.WARNING)


class LogContext:
    """
    Context manager for temporary logging level changes.

    Used by the CLI to turn on per-customer predicate tracing for a single
    evaluation without touching global configuration.
    """

    def __init__(self, logger_name: str, level: int):
        """
        Initialize log context.

        Args:
            logger_name: Name of logger to modify
            level: Temporary logging level
        """
        self.logger = logging.getLogger(logger_name)
        self.new_level = level
        self.original_level: int = logging.NOTSET

    def __enter__(self) -> logging.Logger:
        """Enter context and set new level."""
        self.original_level = self.logger.level
        self.logger.setLevel(self.new_level)
        return self.logger

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Exit context and restore original level."""
        self.logger.setLevel(self.original_level)
        return False
