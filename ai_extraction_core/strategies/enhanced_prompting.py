"""Universal fallback: formatting instructions in the prompt, permissive parsing."""

import json
from typing import Any

from ai_extraction_core.lm import ChatMessage, LMResponse, Role
from ai_extraction_core.types import example_from_schema

from ._json_text import extract_json_text
from .base import ExtractionStrategy

SYSTEM_PROMPT = "You are a helpful assistant that always responds with valid JSON when requested."


class EnhancedPromptingStrategy(ExtractionStrategy):
    """Works with any provider; always available."""

    name = "enhanced_prompting"
    priority = 50

    def available(self) -> bool:
        return True

    def prepare_request(self, messages: list[ChatMessage], request_params: dict[str, Any]) -> None:
        if not messages:
            return

        user_indexes = [i for i, message in enumerate(messages) if message["role"] == Role.USER]
        if not user_indexes:
            return

        last_user = messages[user_indexes[-1]]
        last_user["content"] = self._with_json_instructions(last_user["content"])

        if not any(message["role"] == Role.SYSTEM for message in messages):
            messages.insert(0, {"role": Role.SYSTEM.value, "content": SYSTEM_PROMPT})

    def extract_json(self, response: LMResponse) -> str | None:
        return extract_json_text(response.content)

    def _with_json_instructions(self, prompt: str) -> str:
        schema = self.signature.output_json_schema()
        example = example_from_schema(schema)
        required = ", ".join(schema.get("required") or []) or "none"
        return (
            f"{prompt}\n\n"
            "IMPORTANT: You must respond with valid JSON that matches this structure:\n"
            f"```json\n{json.dumps(example, indent=2)}\n```\n\n"
            f"Required fields: {required}\n\n"
            "Ensure your response:\n"
            "1. Is valid JSON (properly quoted strings, no trailing commas)\n"
            "2. Includes all required fields\n"
            "3. Uses the correct data types for each field\n"
            "4. Is wrapped in ```json``` markdown code blocks\n"
        )
