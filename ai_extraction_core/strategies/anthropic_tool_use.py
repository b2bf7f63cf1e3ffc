"""Forced tool call extraction for Claude models."""

import json
import re
from typing import Any

from ai_extraction_core.lm import ChatMessage, LMResponse, Provider

from .base import ExtractionStrategy

TOOL_NAME = "json_output"
_TOOL_USE_INPUT = re.compile(r"<tool_use>.*?<input>(.*?)</input>.*?</tool_use>", re.DOTALL)


class AnthropicToolUseStrategy(ExtractionStrategy):
    """Forces a synthetic ``json_output`` tool call whose arguments are the payload."""

    name = "anthropic_tool_use"
    priority = 95

    def available(self) -> bool:
        if self.adapter.provider is not Provider.ANTHROPIC or not self.adapter.supports_tool_calls:
            return False
        model = self.adapter.model_name.lower()
        return "claude" in model and not model.startswith(("claude-2", "claude-instant"))

    def prepare_request(self, messages: list[ChatMessage], request_params: dict[str, Any]) -> None:
        request_params["tools"] = [
            {
                "name": TOOL_NAME,
                "description": "Output the result in the required JSON format",
                "input_schema": self.signature.output_json_schema(),
            }
        ]
        request_params["tool_choice"] = {"type": "tool", "name": TOOL_NAME}
        if messages and messages[-1]["role"] == "user":
            messages[-1]["content"] += f"\n\nPlease use the {TOOL_NAME} tool to provide your response."

    def extract_json(self, response: LMResponse) -> str | None:
        for call in response.tool_calls:
            if call.get("name") != TOOL_NAME or call.get("input") is None:
                continue
            payload = call["input"]
            return payload if isinstance(payload, str) else json.dumps(payload)

        if response.content and (match := _TOOL_USE_INPUT.search(response.content)):
            return match.group(1).strip()

        self.log_debug("No json_output tool call in response", strategy=self.name)
        return None

    def handle_error(self, error: BaseException) -> bool:
        message = self.provider_message(error)
        if message is not None and ("tool" in message or "invalid_request_error" in message):
            self.log_warning(f"Anthropic tool use failed: {error}", strategy=self.name)
            return True
        return False
