"""Tests for the built-in extraction strategies."""

import json

import pytest

from ai_extraction_core.exceptions import ExtractionFailure, PredictionInvalidError, ProviderError
from ai_extraction_core.lm import ChatMessage, LMResponse, Provider
from ai_extraction_core.signature import Signature
from ai_extraction_core.strategies import (
    AnthropicExtractionStrategy,
    AnthropicToolUseStrategy,
    EnhancedPromptingStrategy,
    GeminiStructuredOutputStrategy,
    OpenAIStructuredOutputStrategy,
)
from ai_extraction_core.strategies.enhanced_prompting import SYSTEM_PROMPT
from ai_extraction_core.strategies.openai_structured_output import supports_structured_outputs
from tests.support.helpers import Answer, ScriptedAdapter


@pytest.fixture
def signature() -> Signature:
    return Signature(Answer)


def user_messages() -> list[ChatMessage]:
    return [{"role": "user", "content": "What is the capital of France?"}]


class TestOpenAIStructuredOutput:
    @pytest.mark.parametrize(
        ("model", "expected"),
        [
            ("gpt-4o-mini", True),
            ("openai/gpt-4o-2024-08-06", True),
            ("gpt-4-turbo", True),
            ("gpt-3.5-turbo", False),
            ("o1-preview", False),
        ],
    )
    def test_model_support(self, model: str, expected: bool):
        assert supports_structured_outputs(model) is expected

    def test_available_for_openai(self, signature: Signature):
        assert OpenAIStructuredOutputStrategy(ScriptedAdapter("gpt-4o-mini"), signature).available()

    def test_unavailable_when_disabled(self, signature: Signature):
        adapter = ScriptedAdapter("gpt-4o-mini", structured_outputs=False)
        assert not OpenAIStructuredOutputStrategy(adapter, signature).available()

    def test_ollama_always_available(self, signature: Signature):
        adapter = ScriptedAdapter("ollama/llama3.1")
        assert adapter.provider is Provider.OLLAMA
        assert OpenAIStructuredOutputStrategy(adapter, signature).available()

    def test_unavailable_for_other_providers(self, signature: Signature):
        assert not OpenAIStructuredOutputStrategy(ScriptedAdapter("anthropic/claude-3-5-sonnet"), signature).available()

    def test_prepare_request_sets_strict_schema(self, signature: Signature):
        messages = user_messages()
        params: dict = {}
        OpenAIStructuredOutputStrategy(ScriptedAdapter(), signature).prepare_request(messages, params)
        response_format = params["response_format"]
        assert response_format["type"] == "json_schema"
        assert response_format["json_schema"]["name"] == "answer"
        assert response_format["json_schema"]["strict"] is True
        schema = response_format["json_schema"]["schema"]
        assert schema["additionalProperties"] is False
        assert schema["required"] == ["answer", "confidence", "tags"]
        assert messages == user_messages()

    def test_extract_returns_content(self, signature: Signature):
        strategy = OpenAIStructuredOutputStrategy(ScriptedAdapter(), signature)
        assert strategy.extract_json(LMResponse(content='{"answer": "Paris"}')) == '{"answer": "Paris"}'

    def test_handle_error(self, signature: Signature):
        strategy = OpenAIStructuredOutputStrategy(ScriptedAdapter(), signature)
        assert strategy.handle_error(RuntimeError("Invalid response_format: schema too deep"))
        assert strategy.handle_error(RuntimeError("json_schema is not supported"))
        assert not strategy.handle_error(RuntimeError("rate limited"))


class TestGeminiStructuredOutput:
    def test_availability(self, signature: Signature):
        assert GeminiStructuredOutputStrategy(ScriptedAdapter("gemini/gemini-2.5-flash"), signature).available()
        assert GeminiStructuredOutputStrategy(ScriptedAdapter("gemini-1.5-pro-002"), signature).available()
        assert not GeminiStructuredOutputStrategy(ScriptedAdapter("gemini/gemini-1.0-pro"), signature).available()
        assert not GeminiStructuredOutputStrategy(ScriptedAdapter("gpt-4o"), signature).available()
        adapter = ScriptedAdapter("gemini/gemini-2.5-flash", structured_outputs=False)
        assert not GeminiStructuredOutputStrategy(adapter, signature).available()

    def test_prepare_request_sets_generation_config(self, signature: Signature):
        params: dict = {}
        GeminiStructuredOutputStrategy(ScriptedAdapter("gemini/gemini-2.5-flash"), signature).prepare_request(user_messages(), params)
        config = params["generation_config"]
        assert config["response_mime_type"] == "application/json"
        schema = config["response_json_schema"]
        assert schema["type"] == "object"
        assert "additionalProperties" not in schema
        assert schema["required"] == ["answer"]

    def test_handle_error(self, signature: Signature):
        strategy = GeminiStructuredOutputStrategy(ScriptedAdapter("gemini/gemini-2.5-flash"), signature)
        assert strategy.handle_error(RuntimeError("Invalid response_schema"))
        assert strategy.handle_error(RuntimeError("generation_config rejected"))
        assert not strategy.handle_error(RuntimeError("timeout"))


class TestAnthropicToolUse:
    @pytest.mark.parametrize(
        ("model", "expected"),
        [
            ("anthropic/claude-3-5-sonnet-20241022", True),
            ("anthropic/claude-sonnet-4-20250514", True),
            ("claude-3-haiku-20240307", True),
            ("anthropic/claude-2.1", False),
            ("anthropic/claude-instant-1.2", False),
            ("gpt-4o", False),
        ],
    )
    def test_availability(self, signature: Signature, model: str, expected: bool):
        assert AnthropicToolUseStrategy(ScriptedAdapter(model), signature).available() is expected

    def test_unavailable_without_tool_calls(self, signature: Signature):
        adapter = ScriptedAdapter("anthropic/claude-3-5-sonnet-20241022", tool_calls=False)
        assert not AnthropicToolUseStrategy(adapter, signature).available()

    def test_prepare_request_forces_tool(self, signature: Signature, anthropic_adapter: ScriptedAdapter):
        messages = user_messages()
        params: dict = {}
        AnthropicToolUseStrategy(anthropic_adapter, signature).prepare_request(messages, params)
        assert params["tools"][0]["name"] == "json_output"
        assert params["tools"][0]["input_schema"] == signature.output_json_schema()
        assert params["tool_choice"] == {"type": "tool", "name": "json_output"}
        assert messages[-1]["content"].endswith("Please use the json_output tool to provide your response.")

    def test_extract_from_tool_call(self, signature: Signature, anthropic_adapter: ScriptedAdapter):
        response = LMResponse(metadata={"tool_calls": [{"name": "json_output", "input": {"answer": "Paris"}}]})
        payload = AnthropicToolUseStrategy(anthropic_adapter, signature).extract_json(response)
        assert payload is not None
        assert json.loads(payload) == {"answer": "Paris"}

    def test_ignores_other_tools(self, signature: Signature, anthropic_adapter: ScriptedAdapter):
        response = LMResponse(metadata={"tool_calls": [{"name": "search", "input": {"q": "x"}}]})
        assert AnthropicToolUseStrategy(anthropic_adapter, signature).extract_json(response) is None

    def test_extract_from_tool_use_markup(self, signature: Signature, anthropic_adapter: ScriptedAdapter):
        content = 'Sure.\n<tool_use>\n<name>json_output</name>\n<input>{"answer": "Paris"}</input>\n</tool_use>'
        payload = AnthropicToolUseStrategy(anthropic_adapter, signature).extract_json(LMResponse(content=content))
        assert payload == '{"answer": "Paris"}'

    def test_handle_error(self, signature: Signature, anthropic_adapter: ScriptedAdapter):
        strategy = AnthropicToolUseStrategy(anthropic_adapter, signature)
        assert strategy.handle_error(RuntimeError("tool_choice is not supported"))
        assert strategy.handle_error(RuntimeError("invalid_request_error: bad input"))
        assert not strategy.handle_error(RuntimeError("overloaded"))

    def test_extraction_errors_are_retryable(self, signature: Signature, anthropic_adapter: ScriptedAdapter):
        strategy = AnthropicToolUseStrategy(anthropic_adapter, signature)
        assert not strategy.handle_error(ExtractionFailure("anthropic_tool_use found no JSON in the response", strategy=strategy.name))
        assert not strategy.handle_error(PredictionInvalidError("Output field 'tool' is invalid", stage="output", field="tool"))
        assert strategy.handle_error(ProviderError("tool_choice is not supported"))


class TestAnthropicExtraction:
    def test_available_for_any_claude(self, signature: Signature):
        assert AnthropicExtractionStrategy(ScriptedAdapter("anthropic/claude-2.1"), signature).available()
        assert not AnthropicExtractionStrategy(ScriptedAdapter("gpt-4o"), signature).available()

    def test_prepare_request_appends_instruction(self, signature: Signature, anthropic_adapter: ScriptedAdapter):
        messages = user_messages()
        AnthropicExtractionStrategy(anthropic_adapter, signature).prepare_request(messages, {})
        assert "```json code block" in messages[-1]["content"]

    @pytest.mark.parametrize(
        "content",
        [
            'Here you go:\n```json\n{"answer": "Paris"}\n```',
            '## Output values\n```\n{"answer": "Paris"}\n```',
            'Result:\n```\n{"answer": "Paris"}\n```',
            '  {"answer": "Paris"}  ',
        ],
    )
    def test_extract_layouts(self, signature: Signature, anthropic_adapter: ScriptedAdapter, content: str):
        payload = AnthropicExtractionStrategy(anthropic_adapter, signature).extract_json(LMResponse(content=content))
        assert payload == '{"answer": "Paris"}'

    def test_extract_nothing_from_prose(self, signature: Signature, anthropic_adapter: ScriptedAdapter):
        strategy = AnthropicExtractionStrategy(anthropic_adapter, signature)
        assert strategy.extract_json(LMResponse(content="The capital is Paris.")) is None
        assert strategy.extract_json(LMResponse(content=None)) is None


class TestEnhancedPrompting:
    def test_always_available(self, signature: Signature):
        assert EnhancedPromptingStrategy(ScriptedAdapter("some-local-model"), signature).available()

    def test_prepare_request_adds_instructions_and_system(self, signature: Signature):
        messages = user_messages()
        EnhancedPromptingStrategy(ScriptedAdapter(), signature).prepare_request(messages, {})
        assert messages[0] == {"role": "system", "content": SYSTEM_PROMPT}
        content = messages[-1]["content"]
        assert content.startswith("What is the capital of France?")
        assert "Required fields: answer" in content
        assert '"answer": "example string"' in content

    def test_keeps_existing_system_message(self, signature: Signature):
        messages: list[ChatMessage] = [{"role": "system", "content": "Be brief."}, *user_messages()]
        EnhancedPromptingStrategy(ScriptedAdapter(), signature).prepare_request(messages, {})
        assert len(messages) == 2
        assert messages[0]["content"] == "Be brief."

    def test_only_last_user_message_modified(self, signature: Signature):
        messages: list[ChatMessage] = [
            {"role": "user", "content": "first"},
            {"role": "assistant", "content": "ok"},
            {"role": "user", "content": "second"},
        ]
        EnhancedPromptingStrategy(ScriptedAdapter(), signature).prepare_request(messages, {})
        assert messages[1]["content"] == "first"
        assert messages[3]["content"].startswith("second\n\nIMPORTANT")

    def test_no_user_message_is_left_alone(self, signature: Signature):
        messages: list[ChatMessage] = [{"role": "assistant", "content": "ok"}]
        EnhancedPromptingStrategy(ScriptedAdapter(), signature).prepare_request(messages, {})
        assert messages == [{"role": "assistant", "content": "ok"}]

    def test_extract_permissive(self, signature: Signature):
        strategy = EnhancedPromptingStrategy(ScriptedAdapter(), signature)
        assert strategy.extract_json(LMResponse(content='The answer is {"answer": "Paris"} as requested.')) == '{"answer": "Paris"}'
        assert strategy.extract_json(LMResponse(content="no json here")) is None
