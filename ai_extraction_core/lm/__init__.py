"""Provider layer: adapter interface, OpenAI-compatible transport and event sinks.

@public
"""

from .adapter import Adapter, infer_provider, split_model
from .events import EventSink, LaminarEventSink, LoggingEventSink, emit_event
from .openai_adapter import OpenAIAdapter
from .types import ChatMessage, LMResponse, Provider, Role, TokenUsage

__all__ = [
    "Adapter",
    "ChatMessage",
    "EventSink",
    "LMResponse",
    "LaminarEventSink",
    "LoggingEventSink",
    "OpenAIAdapter",
    "Provider",
    "Role",
    "TokenUsage",
    "emit_event",
    "infer_provider",
    "split_model",
]
