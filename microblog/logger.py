"""
Structured logging system for microblog.

Provides centralized logging with console and file outputs, log levels,
and counters for monitoring backfill runs.
"""

import logging
import sys
from pathlib import Path
from typing import Optional
from datetime import datetime
import json


class StructuredLogger:
    """
    Centralized logger with support for console and file outputs.
    Tracks metrics for monitoring backfill runs.
    """

    def __init__(
        self,
        name: str = "microblog",
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
            log_dir: Directory for log files (default: logs/)
            enable_file: Write logs to file
            enable_console: Output logs to console
        """
        self.logger = logging.getLogger(name)
        # Level filtering happens per handler
        self.logger.setLevel(logging.DEBUG)
        self.logger.handlers.clear()  # Remove existing handlers

        self.reset_metrics()

        if enable_console:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(getattr(logging, level.upper()))
            console_handler.setFormatter(logging.Formatter(fmt="%(message)s"))
            self.logger.addHandler(console_handler)

        if enable_file:
            if log_dir is None:
                log_dir = Path("logs")
            log_dir.mkdir(parents=True, exist_ok=True)

            log_file = log_dir / f"microblog_{datetime.now().strftime('%Y%m%d')}.log"
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

    # Metric tracking methods

    def reset_metrics(self):
        """Zero all counters, e.g. at the start of a run."""
        self.metrics = {
            "tweets_scanned": 0,
            "tweets_linked": 0,
            "tweets_already_linked": 0,
            "tweets_skipped": 0,
            "users_created": 0,
            "users_reused": 0,
            "conflicts": 0,
            "errors_by_type": {},
        }

    def record_scanned(self, count: int = 1):
        self.metrics["tweets_scanned"] += count

    def record_linked(self):
        self.metrics["tweets_linked"] += 1

    def record_user(self, created: bool):
        """Record a user resolved for a tweet, new or existing."""
        if created:
            self.metrics["users_created"] += 1
        else:
            self.metrics["users_reused"] += 1

    def record_already_linked(self):
        self.metrics["tweets_already_linked"] += 1

    def record_skipped(self):
        self.metrics["tweets_skipped"] += 1

    def record_conflict(self):
        self.metrics["conflicts"] += 1

    def record_failure(self, error_type: str):
        """Record a tweet that could not be linked."""
        if error_type not in self.metrics["errors_by_type"]:
            self.metrics["errors_by_type"][error_type] = 0
        self.metrics["errors_by_type"][error_type] += 1

    def get_metrics(self) -> dict:
        """Return current metrics."""
        metrics_copy = self.metrics.copy()
        metrics_copy["errors_by_type"] = dict(self.metrics["errors_by_type"])
        metrics_copy["tweets_failed"] = sum(metrics_copy["errors_by_type"].values())
        return metrics_copy

    def log_metrics_summary(self):
        """Log a summary of current metrics at DEBUG."""
        metrics = self.get_metrics()

        self.debug("=== Backfill Metrics ===")
        self.debug(f"Tweets: {metrics['tweets_linked']}/{metrics['tweets_scanned']} linked, "
                   f"{metrics['tweets_already_linked']} already linked, "
                   f"{metrics['tweets_skipped']} skipped, {metrics['tweets_failed']} failed")
        self.debug(f"Users: {metrics['users_created']} created, {metrics['users_reused']} reused")
        self.debug(f"Conflicts retried: {metrics['conflicts']}")

        if metrics["errors_by_type"]:
            self.debug("Error Types:")
            for error_type, count in metrics["errors_by_type"].items():
                self.debug(f"  {error_type}: {count}")


# Global logger instance
_global_logger: Optional[StructuredLogger] = None


def get_logger(
    name: str = "microblog",
    level: str = "INFO",
    **kwargs
) -> StructuredLogger:
    """
    Get or create the global logger instance.

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        **kwargs: Additional arguments passed to StructuredLogger

    Returns:
        StructuredLogger instance
    """
    global _global_logger

    if _global_logger is None:
        _global_logger = StructuredLogger(name=name, level=level, **kwargs)

    return _global_logger


def reset_logger():
    """Reset the global logger (useful for testing)."""
    global _global_logger
    if _global_logger is not None:
        for handler in _global_logger.logger.handlers:
            handler.close()
        _global_logger.logger.handlers.clear()
    _global_logger = None
