"""Logging mixins for classes that log with context.

LoggerMixin gives a class a lazily created pipeline logger plus convenience
methods that accept keyword context. StructuredLoggerMixin adds event, metric
and timed-operation helpers used for diagnosable retry and extraction logs.
"""

import logging
import time
from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from .logging_config import get_pipeline_logger


class LoggerMixin:
    """Mixin adding a pipeline logger to a class.

    Subclasses may set ``_logger_name``; the defining module is used otherwise.
    """

    _logger_name: str | None = None

    @property
    def logger(self):
        """Logger for this class, created on first access."""
        if (cached := self.__dict__.get("_logger")) is None:
            cached = self.__dict__["_logger"] = get_pipeline_logger(self._logger_name or type(self).__module__)
        return cached

    def log_debug(self, message: str, **kwargs: Any) -> None:
        self.logger.debug(message, extra=kwargs)

    def log_info(self, message: str, **kwargs: Any) -> None:
        self.logger.info(message, extra=kwargs)

    def log_warning(self, message: str, **kwargs: Any) -> None:
        self.logger.warning(message, extra=kwargs)

    def log_error(self, message: str, exc_info: bool = False, **kwargs: Any) -> None:
        self.logger.error(message, exc_info=exc_info, extra=kwargs)

    def log_critical(self, message: str, exc_info: bool = False, **kwargs: Any) -> None:
        self.logger.critical(message, exc_info=exc_info, extra=kwargs)

    def log_with_context(self, level: str, message: str, context: dict[str, Any]) -> None:
        """Log at a named level with an explicit context dictionary."""
        self.logger.log(logging.getLevelNamesMapping().get(level.upper(), logging.INFO), message, extra=context)


class StructuredLoggerMixin(LoggerMixin):
    """Mixin for structured event and metric logging."""

    def log_event(self, event: str, **kwargs: Any) -> None:
        """Log a named structured event."""
        self.logger.info(event, extra={"event": event, "structured": True, **kwargs})

    def log_metric(self, metric_name: str, value: float, unit: str = "", **tags: Any) -> None:
        """Log a metric value with optional unit and tags."""
        self.logger.info(
            f"Metric: {metric_name}={value}{unit}",
            extra={"metric": metric_name, "value": value, "unit": unit, "tags": tags, "structured": True},
        )

    @contextmanager
    def log_operation(self, operation: str, **context: Any) -> Generator[None, None, None]:
        """Time an operation and log its start, success or failure."""
        start = time.perf_counter()
        self.log_debug(f"Starting {operation}", operation=operation, **context)
        try:
            yield
        except Exception as e:
            duration_ms = (time.perf_counter() - start) * 1000
            self.log_error(
                f"Failed {operation}: {e}",
                exc_info=True,
                operation=operation,
                duration_ms=duration_ms,
                error_type=type(e).__name__,
                **context,
            )
            raise
        duration_ms = (time.perf_counter() - start) * 1000
        self.log_info(f"Completed {operation}", operation=operation, duration_ms=duration_ms, **context)
