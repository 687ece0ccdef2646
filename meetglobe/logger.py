"""
Structured logging for meetglobe.

Provides centralized logging with console and optional file output, keyword
context appended to each message, and counters for registry activity.
"""

import json
import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional


class StructuredLogger:
    """
    Centralized logger with support for console and file outputs.
    Tracks counters for member, meeting and city-resolution activity.
    """

    def __init__(
        self,
        name: str = "meetglobe",
        level: str = "INFO",
        log_dir: Optional[Path] = None,
        enable_file: bool = True,
        enable_console: bool = True,
    ):
        """
        Initialize the structured logger.

        Args:
            name: Logger name
            level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_dir: Directory for log files; no file is written when None
            enable_file: Write logs to file (requires log_dir)
            enable_console: Output logs to console
        """
        self.logger = logging.getLogger(name)
        self.metrics = {
            "members_created": 0,
            "members_reused": 0,
            "meetings_created": 0,
            "meetings_deleted": 0,
            "cities_unresolved": 0,
            "errors_by_type": {},
        }
        self.configure(level, log_dir, enable_file, enable_console)

    def configure(
        self,
        level: str = "INFO",
        log_dir: Optional[Path] = None,
        enable_file: bool = True,
        enable_console: bool = True,
    ):
        """Replace handlers and level, keeping counters."""
        self.logger.setLevel(getattr(logging, level.upper()))
        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()
        self.logger.propagate = False

        if enable_console:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setLevel(getattr(logging, level.upper()))
            console_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            console_handler.setFormatter(console_formatter)
            self.logger.addHandler(console_handler)

        if enable_file and log_dir is not None:
            log_dir = Path(log_dir)
            log_dir.mkdir(parents=True, exist_ok=True)

            log_file = log_dir / f"meetglobe_{datetime.now().strftime('%Y%m%d')}.log"
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)  # Always log everything to file
            file_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            file_handler.setFormatter(file_formatter)
            self.logger.addHandler(file_handler)

    def debug(self, message: str, **kwargs):
        """Log debug message with optional context."""
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs):
        """Log info message with optional context."""
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs):
        """Log warning message with optional context."""
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs):
        """Log error message with optional context."""
        self._log(logging.ERROR, message, kwargs)

    def critical(self, message: str, **kwargs):
        """Log critical message with optional context."""
        self._log(logging.CRITICAL, message, kwargs)

    def _log(self, level: int, message: str, context: dict):
        if context:
            message = f"{message} | Context: {json.dumps(context, default=str)}"
        self.logger.log(level, message)

    # Counters

    def record_member(self, created: bool):
        """Count a find-or-create outcome."""
        key = "members_created" if created else "members_reused"
        self.metrics[key] += 1

    def record_meeting_created(self):
        self.metrics["meetings_created"] += 1

    def record_meeting_deleted(self):
        self.metrics["meetings_deleted"] += 1

    def record_unresolved_city(self):
        self.metrics["cities_unresolved"] += 1

    def record_error(self, error_type: str):
        """Count an error by its type name."""
        errors = self.metrics["errors_by_type"]
        errors[error_type] = errors.get(error_type, 0) + 1

    def get_metrics(self) -> dict:
        """Return a copy of the current counters."""
        metrics_copy = self.metrics.copy()
        metrics_copy["errors_by_type"] = dict(self.metrics["errors_by_type"])
        return metrics_copy

    def log_metrics_summary(self):
        """Log a summary of current counters."""
        metrics = self.get_metrics()

        self.info("=== Session Metrics ===")
        self.info(f"Members: {metrics['members_created']} created, {metrics['members_reused']} reused")
        self.info(f"Meetings: {metrics['meetings_created']} created, {metrics['meetings_deleted']} deleted")
        self.info(f"Unresolved cities: {metrics['cities_unresolved']}")

        if metrics["errors_by_type"]:
            self.info("Error Types:")
            for error_type, count in metrics["errors_by_type"].items():
                self.info(f"  {error_type}: {count}")


_global_logger: Optional[StructuredLogger] = None


def get_logger(
    name: str = "meetglobe",
    level: Optional[str] = None,
    **kwargs
) -> StructuredLogger:
    """
    Get or create the global logger instance.

    Level and log directory default to MEETGLOBE_LOG_LEVEL and
    MEETGLOBE_LOG_DIR when not passed explicitly.

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        **kwargs: Additional arguments passed to StructuredLogger

    Returns:
        StructuredLogger instance
    """
    global _global_logger

    if _global_logger is None:
        if level is None:
            level = os.getenv("MEETGLOBE_LOG_LEVEL", "INFO")
        if "log_dir" not in kwargs and os.getenv("MEETGLOBE_LOG_DIR"):
            kwargs["log_dir"] = Path(os.environ["MEETGLOBE_LOG_DIR"])
        _global_logger = StructuredLogger(name=name, level=level, **kwargs)

    return _global_logger


def reset_logger():
    """Reset the global logger (useful for testing)."""
    global _global_logger
    _global_logger = None
