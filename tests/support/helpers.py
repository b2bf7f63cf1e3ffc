"""Test helpers: sample models, a scripted adapter and a recording event sink."""

from collections.abc import Callable, Iterable, Mapping
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

from ai_extraction_core.lm import Adapter, ChatMessage, LMResponse, Provider, TokenUsage
from ai_extraction_core.strategies import ExtractionStrategy


class SpawnSubtask(BaseModel):
    """Spawn a new subtask."""

    description: str
    priority: str = "medium"


class Continue(BaseModel):
    """Keep waiting."""

    reason: str


class AgentDecision(BaseModel):
    """Decision with a sibling discriminator naming the action variant."""

    next_action: str
    action_details: SpawnSubtask | Continue


class ActionPlan(BaseModel):
    """Union field without a sibling discriminator."""

    action_details: SpawnSubtask | Continue


class ActionKind(StrEnum):
    SPAWN_SUBTASK = "spawn"
    CONTINUE = "continue"


class EnumDecision(BaseModel):
    """Decision whose discriminator is an enum."""

    kind: ActionKind
    details: SpawnSubtask | Continue


class Answer(BaseModel):
    """Answer the question."""

    answer: str
    confidence: float = 0.5
    tags: list[str] = Field(default_factory=list)


class ScriptedAdapter(Adapter):
    """Adapter replaying scripted responses.

    Strings become response content, LMResponse objects are returned as is and
    exceptions are raised.
    """

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        responses: Iterable[str | LMResponse | BaseException] = (),
        *,
        provider: Provider | None = None,
        structured_outputs: bool = True,
        tool_calls: bool = True,
    ):
        super().__init__(model, provider=provider, structured_outputs=structured_outputs)
        self.responses = list(responses)
        self.calls: list[tuple[list[ChatMessage], dict[str, Any]]] = []
        self._tool_calls = tool_calls

    @property
    def supports_tool_calls(self) -> bool:
        return self._tool_calls

    def script(self, *responses: str | LMResponse | BaseException) -> "ScriptedAdapter":
        self.responses.extend(responses)
        return self

    async def chat(self, messages: list[ChatMessage], request_params: dict[str, Any]) -> LMResponse:
        self.calls.append((messages, request_params))
        if not self.responses:
            raise AssertionError("ScriptedAdapter ran out of responses")
        item = self.responses.pop(0)
        if isinstance(item, BaseException):
            raise item
        if isinstance(item, str):
            return LMResponse(content=item, usage=TokenUsage(input_tokens=10, output_tokens=5, total_tokens=15), model=self.model)
        return item


class RecordingEventSink:
    """Event sink keeping every event in memory."""

    def __init__(self) -> None:
        self.events: list[tuple[str, dict[str, Any]]] = []

    def log(self, event_name: str, attributes: Mapping[str, Any]) -> None:
        self.events.append((event_name, dict(attributes)))

    def names(self) -> list[str]:
        return [name for name, _ in self.events]

    def named(self, event_name: str) -> list[dict[str, Any]]:
        return [attributes for name, attributes in self.events if name == event_name]


def make_strategy(
    strategy_name: str,
    strategy_priority: int,
    *,
    is_available: bool = True,
    handles: Callable[[BaseException], bool] | None = None,
) -> type[ExtractionStrategy]:
    """Build a minimal strategy class that returns response content verbatim."""

    class _Strategy(ExtractionStrategy):
        name = strategy_name
        priority = strategy_priority

        def available(self) -> bool:
            return is_available

        def prepare_request(self, messages: list[ChatMessage], request_params: dict[str, Any]) -> None:
            request_params.setdefault("strategies", []).append(self.name)

        def extract_json(self, response: LMResponse) -> str | None:
            return response.content

        def handle_error(self, error: BaseException) -> bool:
            return handles(error) if handles is not None else False

    _Strategy.__name__ = f"{strategy_name.title().replace('_', '')}Strategy"
    return _Strategy
