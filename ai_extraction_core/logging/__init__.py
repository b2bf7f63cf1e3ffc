"""Logging infrastructure for AI Extraction Core.

@public

This module provides unified, Prefect-integrated logging with structured
output support.

Key components:
    get_pipeline_logger: Factory function for creating library loggers
    setup_logging: Initialize logging configuration from YAML
    LoggerMixin: Base mixin for adding logging to classes
    StructuredLoggerMixin: Mixin for structured event logging
    LoggingConfig: Configuration class for logging settings

Example:
    >>> from ai_extraction_core.logging import get_pipeline_logger
    >>>
    >>> logger = get_pipeline_logger(__name__)
    >>> logger.info("Extraction started")

Note:
    Never import Python's logging module directly. Always use
    get_pipeline_logger() for consistent Prefect integration.
"""

from .logging_config import LoggingConfig, get_pipeline_logger, setup_logging
from .logging_mixin import LoggerMixin, StructuredLoggerMixin

__all__ = [
    "LoggerMixin",
    "StructuredLoggerMixin",
    "LoggingConfig",
    "setup_logging",
    "get_pipeline_logger",
]
