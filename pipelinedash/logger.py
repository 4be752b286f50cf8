"""
Structured logging system for pipelinedash.

Provides centralized logging with console and optional file output, plus
query and dashboard counters for monitoring how the read layer is used.
"""

import json
import logging
import sys
import threading
from datetime import datetime
from pathlib import Path
from typing import Optional


class StructuredLogger:
    """
    Centralized logger with support for console and file outputs.
    Tracks query and dashboard metrics.
    """

    def __init__(
        self,
        name: str = "pipelinedash",
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
        self.logger.setLevel(getattr(logging, level.upper()))
        self.logger.handlers.clear()  # Remove existing handlers

        # Pointer lookups run on worker threads
        self._lock = threading.Lock()
        self.metrics = {
            "queries_issued": 0,
            "queries_by_kind": {},
            "dashboards_built": 0,
            "dashboards_failed": 0,
            "jobs_returned": 0,
            "errors_by_type": {},
        }

        if enable_console:
            # stderr keeps stdout free for command output such as --json
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setLevel(getattr(logging, level.upper()))
            console_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            console_handler.setFormatter(console_formatter)
            self.logger.addHandler(console_handler)

        if enable_file:
            if log_dir is None:
                log_dir = Path("logs")
            log_dir.mkdir(parents=True, exist_ok=True)

            log_file = log_dir / f"pipelinedash_{datetime.now().strftime('%Y%m%d')}.log"
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

    def record_query(self, kind: str):
        """Record one issued query, e.g. 'team_jobs' or 'next_build_id'."""
        with self._lock:
            self.metrics["queries_issued"] += 1
            by_kind = self.metrics["queries_by_kind"]
            by_kind[kind] = by_kind.get(kind, 0) + 1

    def record_dashboard(self, job_count: int):
        """Record a completed dashboard."""
        with self._lock:
            self.metrics["dashboards_built"] += 1
            self.metrics["jobs_returned"] += job_count

    def record_dashboard_failure(self, error_type: str):
        """Record a dashboard call that raised."""
        with self._lock:
            self.metrics["dashboards_failed"] += 1
            errors = self.metrics["errors_by_type"]
            errors[error_type] = errors.get(error_type, 0) + 1

    def get_metrics(self) -> dict:
        """Return a snapshot of current metrics."""
        with self._lock:
            metrics_copy = dict(self.metrics)
            metrics_copy["queries_by_kind"] = dict(self.metrics["queries_by_kind"])
            metrics_copy["errors_by_type"] = dict(self.metrics["errors_by_type"])

        built = metrics_copy["dashboards_built"]
        metrics_copy["avg_jobs_per_dashboard"] = (
            round(metrics_copy["jobs_returned"] / built, 1) if built else 0
        )
        return metrics_copy

    def log_metrics_summary(self):
        """Log a summary of current metrics."""
        metrics = self.get_metrics()

        self.info("=== Dashboard Metrics ===")
        self.info(f"Queries: {metrics['queries_issued']}")
        self.info(
            f"Dashboards: {metrics['dashboards_built']} built, "
            f"{metrics['dashboards_failed']} failed "
            f"(avg {metrics['avg_jobs_per_dashboard']} jobs)"
        )

        if metrics["queries_by_kind"]:
            self.info("Queries by kind:")
            for kind, count in metrics["queries_by_kind"].items():
                self.info(f"  {kind}: {count}")

        if metrics["errors_by_type"]:
            self.info("Error Types:")
            for error_type, count in metrics["errors_by_type"].items():
                self.info(f"  {error_type}: {count}")


# Global logger instance
_global_logger: Optional[StructuredLogger] = None


def get_logger(
    name: str = "pipelinedash",
    level: Optional[str] = None,
    **kwargs
) -> StructuredLogger:
    """
    Get or create the global logger instance.

    Level and file output default to the environment settings (see env.Settings),
    including values from a .env file in the working directory.

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        **kwargs: Additional arguments passed to StructuredLogger

    Returns:
        StructuredLogger instance
    """
    global _global_logger

    if _global_logger is None:
        from .env import Settings, load_env

        load_env()

        settings = Settings.from_env()
        kwargs.setdefault("log_dir", settings.log_dir)
        kwargs.setdefault("enable_file", kwargs["log_dir"] is not None)
        _global_logger = StructuredLogger(
            name=name, level=level or settings.log_level, **kwargs
        )

    return _global_logger


def reset_logger():
    """Reset the global logger (useful for testing)."""
    global _global_logger
    _global_logger = None
