"""Free-text JSON extraction tuned to Claude's formatting conventions."""

from typing import Any

from ai_extraction_core.lm import ChatMessage, LMResponse, Provider

from ._json_text import code_fence, json_fence, looks_like_json, output_values_block
from .base import ExtractionStrategy


class AnthropicExtractionStrategy(ExtractionStrategy):
    """Ask for a fenced JSON block and read it back from the common Claude layouts."""

    name = "anthropic_extraction"
    priority = 90

    def available(self) -> bool:
        return self.adapter.provider is Provider.ANTHROPIC

    def prepare_request(self, messages: list[ChatMessage], request_params: dict[str, Any]) -> None:
        if messages and messages[-1]["role"] == "user":
            messages[-1]["content"] += (
                "\n\nRespond with a single JSON object matching the requested output fields, "
                "wrapped in a ```json code block."
            )

    def extract_json(self, response: LMResponse) -> str | None:
        content = response.content
        if content is None:
            return None

        if (fenced := json_fence(content)) is not None:
            return fenced

        if (block := output_values_block(content)) is not None:
            return block

        if (block := code_fence(content)) is not None and looks_like_json(block):
            return block

        if looks_like_json(content):
            return content.strip()
        return None
