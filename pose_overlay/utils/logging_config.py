"""Logging configuration for the pose overlay tools."""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Model runtimes that log heavily at import and load time
NOISY_LOGGERS = ("urllib3", "requests", "absl", "tensorflow", "h5py", "matplotlib")


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    log_format: str = DEFAULT_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
    max_bytes: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5,
    console_output: bool = True,
) -> logging.Logger:
    """
    Set up logging for the application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Path to log file (optional).
        log_format: Log message format.
        date_format: Date format for log messages.
        max_bytes: Maximum size of log file before rotation.
        backup_count: Number of backup log files to keep.
        console_output: Whether to output logs to console.

    Returns:
        Root logger instance.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    formatter = logging.Formatter(log_format, date_format)

    if console_output:
        # stderr keeps stdout free for command output
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(numeric_level)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    # TensorFlow's C++ side logs through its own channel
    os.environ.setdefault("TF_CPP_MIN_LOG_LEVEL", "2")

    root_logger.debug(f"Logging configured: level={level}, file={log_file}")

    return root_logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a specific module.

    Args:
        name: Name of the logger (typically __name__).

    Returns:
        Logger instance.
    """
    return logging.getLogger(name)


class LoggerMixin:
    """
    Mixin class that provides a logger property.

    Example:
        class OverlayLoop(LoggerMixin):
            def run(self):
                self.logger.info("Starting")
    """

    @property
    def logger(self) -> logging.Logger:
        """Get logger for this class."""
        if not hasattr(self, "_logger"):
            self._logger = logging.getLogger(
                f"{self.__class__.__module__}.{self.__class__.__name__}"
            )
        return self._logger


class ProgressLogger:
    """
    Logs progress of a long headless run at fixed percentage steps.

    With an unknown total (live camera) it logs every ``log_interval`` items
    instead.
    """

    def __init__(
        self,
        logger: logging.Logger,
        total: Optional[int],
        description: str = "Processing",
        log_interval: int = 10,
    ):
        """
        Initialize progress logger.

        Args:
            logger: Logger instance to use.
            total: Total number of items, or None if unknown.
            description: Description of the operation.
            log_interval: Log every N percent (or every N items without a total).
        """
        self.logger = logger
        self.total = total if total and total > 0 else None
        self.description = description
        self.log_interval = max(1, log_interval)
        self.current = 0
        self.last_logged = 0 if self.total is None else -self.log_interval

    def update(self, n: int = 1) -> None:
        """Record n processed items."""
        self.current += n

        if self.total is None:
            if self.current - self.last_logged >= self.log_interval:
                self.logger.info(f"{self.description}: {self.current} frames")
                self.last_logged = self.current
            return

        percent = int((self.current / self.total) * 100)
        if percent >= self.last_logged + self.log_interval:
            self.logger.info(
                f"{self.description}: {percent}% ({self.current}/{self.total})"
            )
            self.last_logged = percent

    def finish(self) -> None:
        """Log completion of the operation."""
        total = self.total if self.total is not None else self.current
        self.logger.info(f"{self.description}: Complete ({self.current}/{total})")
