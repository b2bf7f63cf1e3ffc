"""Common test fixtures for extraction tests."""

import pytest

from ai_extraction_core.retry import RetryPolicy
from tests.support.helpers import RecordingEventSink, ScriptedAdapter


@pytest.fixture
def event_sink() -> RecordingEventSink:
    """Event sink that records every emitted event."""
    return RecordingEventSink()


@pytest.fixture
def instant_policy() -> RetryPolicy:
    """Retry policy with zero backoff."""
    return RetryPolicy(deterministic=True)


@pytest.fixture
def openai_adapter() -> ScriptedAdapter:
    """Scripted adapter posing as an OpenAI structured-output model."""
    return ScriptedAdapter("gpt-4o-mini")


@pytest.fixture
def anthropic_adapter() -> ScriptedAdapter:
    """Scripted adapter posing as a tool-capable Claude model."""
    return ScriptedAdapter("anthropic/claude-3-5-sonnet-20241022")
