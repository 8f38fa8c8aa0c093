"""Logging configuration for Worksort.

This module sets up structured logging with file rotation and separate
logs for different concerns (main, assignments, runs).
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

# Log format constants
DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DETAILED_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(filename)s:%(lineno)d | %(message)s"
SIMPLE_FORMAT = "%(levelname)s: %(message)s"

# Default settings
DEFAULT_LOG_LEVEL = logging.INFO
DEFAULT_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
DEFAULT_BACKUP_COUNT = 5


class WorksortLogger:
    """Centralized logger management for Worksort.

    Manages multiple log files for different concerns:
        - main.log: General application logging
        - assignments.log: Every counted bucket move
        - runs.log: Per-pass results of each run
    """

    _instance: Optional["WorksortLogger"] = None
    _initialized: bool = False

    def __new__(cls) -> "WorksortLogger":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        if self._initialized:
            return

        self.logs_dir: Path | None = None
        self.log_level: int = DEFAULT_LOG_LEVEL
        self.loggers: dict[str, logging.Logger] = {}
        self._initialized = True

    def setup(
        self,
        logs_dir: Path,
        log_level: int = DEFAULT_LOG_LEVEL,
        console_output: bool = True,
    ) -> None:
        """Initialize logging with specified configuration.

        Args:
            logs_dir: Directory for log files.
            log_level: Logging level (e.g., logging.INFO).
            console_output: Whether to also log to console.
        """
        self.logs_dir = logs_dir
        self.log_level = log_level

        logs_dir.mkdir(parents=True, exist_ok=True)

        root_logger = logging.getLogger("worksort")
        root_logger.setLevel(log_level)
        root_logger.handlers.clear()

        main_handler = self._create_file_handler(
            logs_dir / "main.log",
            DETAILED_FORMAT,
        )
        root_logger.addHandler(main_handler)

        if console_output:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(log_level)
            console_handler.setFormatter(logging.Formatter(SIMPLE_FORMAT))
            root_logger.addHandler(console_handler)

        self.loggers["main"] = root_logger

        self._setup_assignment_logger(logs_dir)
        self._setup_run_logger(logs_dir)

    def _create_file_handler(
        self,
        log_path: Path,
        format_string: str,
        max_bytes: int = DEFAULT_MAX_BYTES,
        backup_count: int = DEFAULT_BACKUP_COUNT,
    ) -> RotatingFileHandler:
        """Create a rotating file handler.

        Args:
            log_path: Path to the log file.
            format_string: Log format string.
            max_bytes: Maximum file size before rotation.
            backup_count: Number of backup files to keep.

        Returns:
            Configured RotatingFileHandler.
        """
        handler = RotatingFileHandler(
            log_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        handler.setLevel(self.log_level)
        handler.setFormatter(logging.Formatter(format_string))
        return handler

    def _setup_assignment_logger(self, logs_dir: Path) -> None:
        """Setup the assignment logger."""
        logger = logging.getLogger("worksort.assignments")
        logger.setLevel(self.log_level)
        logger.propagate = False  # Don't also log to main
        logger.handlers.clear()

        handler = self._create_file_handler(
            logs_dir / "assignments.log",
            "%(asctime)s | %(levelname)-8s | ASSIGN | %(message)s",
        )
        logger.addHandler(handler)
        self.loggers["assignments"] = logger

    def _setup_run_logger(self, logs_dir: Path) -> None:
        """Setup the run results logger."""
        logger = logging.getLogger("worksort.runs")
        logger.setLevel(self.log_level)
        logger.propagate = False
        logger.handlers.clear()

        handler = self._create_file_handler(
            logs_dir / "runs.log",
            "%(asctime)s | %(levelname)-8s | RUN | %(message)s",
        )
        logger.addHandler(handler)
        self.loggers["runs"] = logger

    def get_logger(self, name: str = "main") -> logging.Logger:
        """Get a logger by name.

        Args:
            name: Logger name ("main", "assignments", "runs").

        Returns:
            The requested logger, or a child of the main logger.
        """
        if name in self.loggers:
            return self.loggers[name]

        return logging.getLogger(f"worksort.{name}")


# Global logger instance
_logger_manager = WorksortLogger()


def setup_logging(
    logs_dir: Path,
    log_level: int = DEFAULT_LOG_LEVEL,
    console_output: bool = True,
) -> None:
    """Initialize the logging system.

    This should be called once at application startup.

    Args:
        logs_dir: Directory for log files.
        log_level: Logging level (default: INFO).
        console_output: Whether to also log to console (default: True).
    """
    _logger_manager.setup(logs_dir, log_level, console_output)


def get_logger(name: str = "main") -> logging.Logger:
    """Get a logger instance.

    Args:
        name: Logger name. Options:
            - "main": General application logging
            - "assignments": Bucket move logging
            - "runs": Pass result logging

    Returns:
        Logger instance.
    """
    return _logger_manager.get_logger(name)


def log_assignment(
    pass_name: str,
    element_id: str,
    bucket_name: str,
) -> None:
    """Log a counted bucket move.

    Args:
        pass_name: Pass that moved the element.
        element_id: ID of the moved element.
        bucket_name: Bucket the element was moved to.
    """
    logger = get_logger("assignments")
    logger.info(f"{pass_name} | {element_id} | -> {bucket_name}")


def log_pass_result(
    pass_name: str,
    examined: int,
    moved: int,
    missing: int = 0,
) -> None:
    """Log the result of one pass.

    Args:
        pass_name: Name of the pass.
        examined: Number of elements examined.
        moved: Number of elements moved.
        missing: Number of elements blocked by missing buckets.
    """
    logger = get_logger("runs")
    message = f"{pass_name} | examined {examined} | moved {moved}"
    if missing:
        message += f" | missing bucket {missing}"
    logger.info(message)
