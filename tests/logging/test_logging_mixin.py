"""Tests for logging mixin classes."""

import logging
from unittest.mock import MagicMock

import pytest

from ai_extraction_core.logging.logging_mixin import LoggerMixin, StructuredLoggerMixin


class SampleClass(LoggerMixin):
    """Test class using LoggerMixin."""


class NamedSample(LoggerMixin):
    _logger_name = "ai_extraction_core.custom"


class StructuredSample(StructuredLoggerMixin):
    """Test class using StructuredLoggerMixin."""


@pytest.fixture
def mock_logger(monkeypatch: pytest.MonkeyPatch) -> MagicMock:
    logger = MagicMock()
    monkeypatch.setattr("ai_extraction_core.logging.logging_mixin.get_pipeline_logger", lambda name: logger)
    return logger


class TestLoggerMixin:
    """Test LoggerMixin convenience methods."""

    def test_logger_created_once(self):
        obj = SampleClass()
        assert obj.logger is not None
        assert obj.logger is obj.logger

    def test_logger_name_defaults_to_module(self, monkeypatch: pytest.MonkeyPatch):
        names: list[str] = []
        monkeypatch.setattr("ai_extraction_core.logging.logging_mixin.get_pipeline_logger", lambda name: names.append(name) or MagicMock())
        _ = SampleClass().logger
        _ = NamedSample().logger
        assert names == [__name__, "ai_extraction_core.custom"]

    def test_levels_forward_context(self, mock_logger: MagicMock):
        obj = SampleClass()
        obj.log_debug("debug message", strategy="s")
        obj.log_info("info message")
        obj.log_warning("warning message", retry=1)
        obj.log_error("error message", exc_info=True)
        obj.log_critical("critical message")

        mock_logger.debug.assert_called_once_with("debug message", extra={"strategy": "s"})
        mock_logger.warning.assert_called_once_with("warning message", extra={"retry": 1})
        mock_logger.error.assert_called_once_with("error message", exc_info=True, extra={})
        mock_logger.critical.assert_called_once()

    def test_log_with_context_resolves_level(self, mock_logger: MagicMock):
        obj = SampleClass()
        obj.log_with_context("warning", "careful", {"key": "value"})
        obj.log_with_context("bogus", "fallback", {})
        assert mock_logger.log.call_args_list[0].args == (logging.WARNING, "careful")
        assert mock_logger.log.call_args_list[0].kwargs == {"extra": {"key": "value"}}
        assert mock_logger.log.call_args_list[1].args == (logging.INFO, "fallback")

    def test_real_logger_accepts_context(self):
        obj = SampleClass()
        obj.log_with_context("INFO", "test message", {"key": "value"})
        obj.log_error("error with traceback", exc_info=True)


class TestStructuredLoggerMixin:
    """Test StructuredLoggerMixin convenience methods."""

    def test_log_event(self, mock_logger: MagicMock):
        StructuredSample().log_event("extraction.retry", strategy="s")
        mock_logger.info.assert_called_once_with("extraction.retry", extra={"event": "extraction.retry", "structured": True, "strategy": "s"})

    def test_log_metric(self, mock_logger: MagicMock):
        StructuredSample().log_metric("attempts", 3, "", strategy="s")
        message = mock_logger.info.call_args.args[0]
        assert message == "Metric: attempts=3"
        assert mock_logger.info.call_args.kwargs["extra"]["tags"] == {"strategy": "s"}

    def test_log_operation_success(self, mock_logger: MagicMock):
        with StructuredSample().log_operation("extract", strategy="s"):
            pass
        assert mock_logger.info.call_args.args[0] == "Completed extract"

    def test_log_operation_failure(self, mock_logger: MagicMock):
        with pytest.raises(ValueError, match="test error"), StructuredSample().log_operation("extract", strategy="s"):
            raise ValueError("test error")
        assert mock_logger.error.call_args.args[0] == "Failed extract: test error"
        assert mock_logger.error.call_args.kwargs["extra"]["error_type"] == "ValueError"
