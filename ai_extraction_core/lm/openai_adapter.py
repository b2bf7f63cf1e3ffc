"""OpenAI-compatible chat adapter.

Talks to any OpenAI-compatible endpoint (OpenAI itself or a LiteLLM proxy
fronting Anthropic, Gemini and Ollama models). Strategy request parameters in
provider-native shapes (Anthropic tool definitions, Gemini generation config)
are translated to the OpenAI wire format before sending.
"""

import json
import time
from typing import Any

from lmnr import Laminar
from openai import AsyncOpenAI, OpenAIError

from ai_extraction_core.exceptions import ProviderError
from ai_extraction_core.logging import StructuredLoggerMixin, get_pipeline_logger
from ai_extraction_core.settings import settings

from .adapter import Adapter
from .types import ChatMessage, LMResponse, Provider, TokenUsage

logger = get_pipeline_logger(__name__)


def _translate_tools(tools: list[dict[str, Any]]) -> list[dict[str, Any]]:
    translated = []
    for tool in tools:
        if tool.get("type") == "function":
            translated.append(tool)
            continue
        translated.append({
            "type": "function",
            "function": {
                "name": tool["name"],
                "description": tool.get("description", ""),
                "parameters": tool.get("input_schema", {"type": "object"}),
            },
        })
    return translated


def _translate_tool_choice(choice: Any) -> Any:
    if isinstance(choice, dict) and choice.get("type") == "tool":
        return {"type": "function", "function": {"name": choice["name"]}}
    return choice


def _request_kwargs(request_params: dict[str, Any]) -> dict[str, Any]:
    """Convert strategy request parameters into ``chat.completions.create`` kwargs."""
    kwargs = dict(request_params)
    if "tools" in kwargs:
        kwargs["tools"] = _translate_tools(kwargs["tools"])
    if "tool_choice" in kwargs:
        kwargs["tool_choice"] = _translate_tool_choice(kwargs["tool_choice"])
    if (generation_config := kwargs.pop("generation_config", None)) is not None:
        if schema := generation_config.get("response_json_schema") or generation_config.get("response_schema"):
            kwargs["response_format"] = {"type": "json_schema", "json_schema": {"name": "output", "schema": schema}}
        elif generation_config.get("response_mime_type") == "application/json":
            kwargs["response_format"] = {"type": "json_object"}
    return kwargs


def _extract_usage(response: Any) -> TokenUsage:
    usage = response.usage
    if not usage:
        return TokenUsage()
    return TokenUsage(
        input_tokens=usage.prompt_tokens or 0,
        output_tokens=usage.completion_tokens or 0,
        total_tokens=usage.total_tokens or 0,
    )


def _extract_tool_calls(message: Any) -> list[dict[str, Any]]:
    calls = []
    for call in message.tool_calls or []:
        function = getattr(call, "function", None)
        if function is None:
            continue
        try:
            arguments = json.loads(function.arguments or "{}")
        except json.JSONDecodeError:
            logger.warning(f"Tool call {function.name} returned non-JSON arguments")
            arguments = function.arguments
        calls.append({"name": function.name, "input": arguments})
    return calls


class OpenAIAdapter(StructuredLoggerMixin, Adapter):
    """Adapter for OpenAI-compatible endpoints.

    @public

    Credentials default to ``settings.openai_api_key`` and
    ``settings.openai_base_url``. Each call is logged as a timed operation
    followed by a token usage metric.

    Example:
        >>> adapter = OpenAIAdapter("anthropic/claude-3-5-sonnet-20241022")
        >>> adapter.provider
        <Provider.ANTHROPIC: 'anthropic'>
    """

    def __init__(
        self,
        model: str,
        *,
        provider: Provider | None = None,
        structured_outputs: bool | None = None,
        api_key: str | None = None,
        base_url: str | None = None,
    ):
        super().__init__(model, provider=provider, structured_outputs=structured_outputs)
        self.api_key = api_key or settings.openai_api_key or None
        self.base_url = base_url or settings.openai_base_url or None

    async def chat(self, messages: list[ChatMessage], request_params: dict[str, Any]) -> LMResponse:
        kwargs = _request_kwargs(request_params)
        start_time = time.time()
        with self.log_operation("chat", model=self.model, provider=self.provider.value):
            try:
                async with AsyncOpenAI(api_key=self.api_key, base_url=self.base_url) as client:
                    with Laminar.start_as_current_span(self.model, span_type="LLM", input=messages) as span:
                        response = await client.chat.completions.create(
                            model=self.model,
                            messages=messages,  # pyright: ignore[reportArgumentType]
                            **kwargs,
                        )
                        message = response.choices[0].message
                        content = message.content
                        usage = _extract_usage(response)
                        span.set_attributes({
                            "time_taken": round(time.time() - start_time, 2),
                            "gen_ai.usage.prompt_tokens": usage.input_tokens,
                            "gen_ai.usage.completion_tokens": usage.output_tokens,
                            "gen_ai.usage.total_tokens": usage.total_tokens,
                        })
                        Laminar.set_span_output(content)
            except OpenAIError as e:
                raise ProviderError(f"{self.model} request failed: {e}") from e
        self.log_metric("llm_tokens", usage.total_tokens, model=self.model, input_tokens=usage.input_tokens, output_tokens=usage.output_tokens)

        metadata: dict[str, Any] = {"provider": self.provider.value, "finish_reason": response.choices[0].finish_reason}
        if tool_calls := _extract_tool_calls(message):
            metadata["tool_calls"] = tool_calls

        return LMResponse(content=content, usage=usage, metadata=metadata, model=response.model or self.model)
