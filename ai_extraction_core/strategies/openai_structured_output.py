"""Native structured outputs for OpenAI and Ollama models."""

from typing import Any

from ai_extraction_core.lm import ChatMessage, LMResponse, Provider, split_model
from ai_extraction_core.types import to_strict_schema

from .base import ExtractionStrategy

STRUCTURED_OUTPUT_MODELS = (
    "gpt-4o-mini",
    "gpt-4o-2024-08-06",
    "gpt-4o",
    "gpt-4-turbo",
    "gpt-4-turbo-2024-04-09",
)
"""Model families accepting ``response_format`` JSON Schemas; dated variants match by prefix."""


def supports_structured_outputs(model: str) -> bool:
    name = split_model(model)[1]
    return any(name.startswith(supported) for supported in STRUCTURED_OUTPUT_MODELS)


class OpenAIStructuredOutputStrategy(ExtractionStrategy):
    """Server-side JSON Schema enforcement through ``response_format``.

    Ollama accepts the same parameter for every model.
    """

    name = "openai_structured_output"
    priority = 100

    def available(self) -> bool:
        if not self.adapter.structured_outputs:
            return False
        if self.adapter.provider is Provider.OLLAMA:
            return True
        return self.adapter.provider is Provider.OPENAI and supports_structured_outputs(self.adapter.model)

    def prepare_request(self, messages: list[ChatMessage], request_params: dict[str, Any]) -> None:
        request_params["response_format"] = {
            "type": "json_schema",
            "json_schema": {
                "name": self.signature.schema_name,
                "strict": True,
                "schema": to_strict_schema(self.signature.output_json_schema()),
            },
        }

    def extract_json(self, response: LMResponse) -> str | None:
        return response.content

    def handle_error(self, error: BaseException) -> bool:
        message = self.provider_message(error)
        if message is not None and ("response_format" in message or "json_schema" in message):
            self.log_warning(f"OpenAI structured output rejected: {error}", strategy=self.name)
            return True
        return False
