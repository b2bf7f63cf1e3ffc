"""Native structured outputs for Gemini models."""

from typing import Any

from ai_extraction_core.lm import ChatMessage, LMResponse, Provider, split_model
from ai_extraction_core.types import to_gemini_schema

from .base import ExtractionStrategy

GEMINI_STRUCTURED_OUTPUT_MODELS = (
    "gemini-1.5-pro",
    "gemini-1.5-flash",
    "gemini-2.0-flash",
    "gemini-2.5-pro",
    "gemini-2.5-flash",
    "gemini-2.5-flash-lite",
)


def supports_gemini_structured_outputs(model: str) -> bool:
    name = split_model(model)[1]
    return any(name.startswith(supported) for supported in GEMINI_STRUCTURED_OUTPUT_MODELS)


class GeminiStructuredOutputStrategy(ExtractionStrategy):
    """JSON Schema constrained generation through ``generation_config``."""

    name = "gemini_structured_output"
    priority = 100

    _SCHEMA_ERROR_MARKERS = ("schema", "generation_config", "response_schema")

    def available(self) -> bool:
        return (
            self.adapter.provider is Provider.GEMINI
            and self.adapter.structured_outputs
            and supports_gemini_structured_outputs(self.adapter.model)
        )

    def prepare_request(self, messages: list[ChatMessage], request_params: dict[str, Any]) -> None:
        request_params["generation_config"] = {
            "response_mime_type": "application/json",
            "response_json_schema": to_gemini_schema(self.signature.output_json_schema()),
        }

    def extract_json(self, response: LMResponse) -> str | None:
        return response.content

    def handle_error(self, error: BaseException) -> bool:
        message = self.provider_message(error)
        if message is not None and any(marker in message for marker in self._SCHEMA_ERROR_MARKERS):
            self.log_warning(f"Gemini structured output failed: {error}", strategy=self.name)
            return True
        return False
