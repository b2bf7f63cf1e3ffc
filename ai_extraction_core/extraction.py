"""End-to-end structured generation.

@public

``generate_structured`` ties the pieces together: it selects a strategy,
drives the provider through RetryHandler and assembles the typed Prediction.
``Predict`` is a minimal consumer that renders signature inputs into chat
messages.

Example:
    >>> class Answer(BaseModel):
    ...     answer: str
    >>> class Question(BaseModel):
    ...     question: str
    >>> predict = Predict(Signature(Answer, Question), OpenAIAdapter("gpt-4o-mini"))
    >>> prediction = await predict(question="What is 2 + 2?")
    >>> prediction.parsed.answer
"""

import copy
import json
from collections.abc import Mapping, Sequence
from typing import Any

from ai_extraction_core.exceptions import ExtractionFailure
from ai_extraction_core.lm import Adapter, ChatMessage, EventSink, Role
from ai_extraction_core.logging import get_pipeline_logger
from ai_extraction_core.prediction import Prediction, build_prediction
from ai_extraction_core.retry import RetryHandler, RetryPolicy
from ai_extraction_core.selector import StrategyPreference, StrategySelector
from ai_extraction_core.signature import Signature
from ai_extraction_core.strategies import DEFAULT_STRATEGIES, ExtractionStrategy
from ai_extraction_core.types import ValueCoercer

logger = get_pipeline_logger(__name__)


def decode_payload(payload: str | None, strategy: ExtractionStrategy, content: str | None) -> dict[str, Any]:
    """Parse the JSON text a strategy extracted.

    Raises:
        ExtractionFailure: When there is no payload, it is not valid JSON, or it
            is not a JSON object.
    """
    if payload is None:
        raise ExtractionFailure(f"{strategy.name} found no JSON in the response", strategy=strategy.name, content=content)
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as e:
        raise ExtractionFailure(f"{strategy.name} extracted invalid JSON: {e}", strategy=strategy.name, content=content) from e
    if not isinstance(data, dict):
        raise ExtractionFailure(
            f"{strategy.name} extracted a JSON {type(data).__name__}, expected an object",
            strategy=strategy.name,
            content=content,
        )
    return data


async def generate_structured(
    adapter: Adapter,
    signature: Signature,
    messages: Sequence[ChatMessage],
    *,
    inputs: Mapping[str, Any] | None = None,
    request_params: Mapping[str, Any] | None = None,
    preference: StrategyPreference | str | None = None,
    strategies: Sequence[type[ExtractionStrategy]] = DEFAULT_STRATEGIES,
    policy: RetryPolicy | None = None,
    event_sink: EventSink | None = None,
    coercer: ValueCoercer | None = None,
) -> Prediction[Any]:
    """Obtain a typed prediction for ``signature`` from ``adapter``.

    @public

    Each attempt works on fresh copies of ``messages`` and ``request_params``
    so strategy edits never accumulate across retries.

    Args:
        adapter: Provider adapter.
        signature: Output contract.
        messages: Chat messages describing the task.
        inputs: Inputs recorded on the prediction.
        request_params: Extra provider parameters (temperature, max_tokens, ...).
        preference: Strategy preference; None reads settings.
        strategies: Strategy classes to choose from.
        policy: Retry policy; None reads settings.
        event_sink: Extraction event receiver.
        coercer: ValueCoercer used for output assembly.

    Raises:
        ConfigurationError: If no strategy is available.
        Exception: The last attempt's error when every strategy failed.
    """
    selector = StrategySelector(adapter, signature, strategies=strategies, preference=preference)
    handler = RetryHandler(selector, policy=policy, event_sink=event_sink)
    coercer = coercer or ValueCoercer()

    async def attempt(strategy: ExtractionStrategy) -> Prediction[Any]:
        attempt_messages = copy.deepcopy(list(messages))
        params = copy.deepcopy(dict(request_params or {}))
        strategy.prepare_request(attempt_messages, params)

        response = await adapter.chat(attempt_messages, params)
        payload = strategy.extract_json(response)
        data = decode_payload(payload, strategy, response.content)

        return build_prediction(
            data,
            signature,
            content=response.content or payload or "",
            inputs=inputs,
            strategy=strategy.name,
            usage=response.usage,
            model=response.model or adapter.model,
            coercer=coercer,
        )

    return await handler.with_retry(selector.select(), attempt)


class Predict:
    """Minimal predictor: renders inputs into messages and extracts the output.

    @public
    """

    def __init__(
        self,
        signature: Signature,
        adapter: Adapter,
        *,
        preference: StrategyPreference | str | None = None,
        policy: RetryPolicy | None = None,
        event_sink: EventSink | None = None,
    ):
        self.signature = signature
        self.adapter = adapter
        self.preference = preference
        self.policy = policy
        self.event_sink = event_sink

    def render_messages(self, inputs: Mapping[str, Any]) -> list[ChatMessage]:
        output_list = ", ".join(self.signature.output_fields)
        system = f"{self.signature.instructions}\n\n" if self.signature.instructions else ""
        system += f"Your output fields are: {output_list}."
        user = f"## Input values\n```json\n{json.dumps(dict(inputs), indent=2, default=str)}\n```"
        return [
            {"role": Role.SYSTEM.value, "content": system},
            {"role": Role.USER.value, "content": user},
        ]

    async def __call__(self, **inputs: Any) -> Prediction[Any]:
        validated = self.signature.validate_input(**inputs)
        logger.debug(f"Predicting {self.signature.name} with {self.adapter!r}")
        return await generate_structured(
            self.adapter,
            self.signature,
            self.render_messages(validated),
            inputs=validated,
            preference=self.preference,
            policy=self.policy,
            event_sink=self.event_sink,
        )
