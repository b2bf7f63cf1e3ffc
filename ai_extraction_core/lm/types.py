"""Provider-facing types.

Messages are plain mutable dictionaries because extraction strategies edit the
outgoing request in place. Responses are frozen Pydantic models.
"""

from enum import StrEnum
from typing import Any, TypedDict

from pydantic import BaseModel, ConfigDict, Field


class Provider(StrEnum):
    """Provider family an adapter talks to."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GEMINI = "gemini"
    OLLAMA = "ollama"
    OTHER = "other"


class Role(StrEnum):
    """Message role in conversation."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class ChatMessage(TypedDict):
    """A single chat message as sent to the provider."""

    role: str
    content: str


class TokenUsage(BaseModel):
    """Token usage statistics from an LLM call."""

    model_config = ConfigDict(frozen=True)

    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0


class LMResponse(BaseModel):
    """Raw provider response handed to extraction strategies.

    Attributes:
        content: Text content of the first choice, None when the model only
                 emitted tool calls.
        usage: Token accounting for the call.
        metadata: Provider details. ``tool_calls`` holds a list of
                  ``{"name": str, "input": dict}`` entries when present.
        model: Model identifier that produced the response.
    """

    model_config = ConfigDict(frozen=True)

    content: str | None = None
    usage: TokenUsage = Field(default_factory=TokenUsage)
    metadata: dict[str, Any] = Field(default_factory=dict)
    model: str = ""

    @property
    def tool_calls(self) -> list[dict[str, Any]]:
        return list(self.metadata.get("tool_calls") or [])
