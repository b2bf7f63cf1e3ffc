"""Event sinks for extraction telemetry.

Sinks receive named events with flat attribute maps. They are fire-and-forget:
``emit_event`` guarantees that a failing sink never changes the outcome of an
extraction.
"""

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from lmnr import Laminar

from ai_extraction_core.logging import StructuredLoggerMixin, get_pipeline_logger

logger = get_pipeline_logger(__name__)


@runtime_checkable
class EventSink(Protocol):
    """Receiver of named events."""

    def log(self, event_name: str, attributes: Mapping[str, Any]) -> None: ...


class LoggingEventSink(StructuredLoggerMixin):
    """Structured log records on the ``ai_extraction_core.events`` logger."""

    _logger_name = "ai_extraction_core.events"

    def log(self, event_name: str, attributes: Mapping[str, Any]) -> None:
        self.log_event(event_name, **attributes)


class LaminarEventSink:
    """Attach events to the current Laminar span as prefixed attributes."""

    def log(self, event_name: str, attributes: Mapping[str, Any]) -> None:
        Laminar.set_span_attributes({f"{event_name}.{key}": _span_value(value) for key, value in attributes.items()})  # pyright: ignore[reportArgumentType]


def _span_value(value: Any) -> Any:
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    if isinstance(value, (list, tuple)) and all(isinstance(v, (str, bool, int, float)) for v in value):
        return list(value)
    return str(value)


def emit_event(sink: EventSink | None, event_name: str, **attributes: Any) -> None:
    """Deliver an event, discarding sink failures."""
    if sink is None:
        return
    try:
        sink.log(event_name, attributes)
    except Exception:
        logger.debug(f"Event sink failed for {event_name}", exc_info=True)
