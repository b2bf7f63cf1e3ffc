"""AI Extraction Core - structured output extraction and type coercion for LLM responses.

@public

AI Extraction Core turns unstructured or semi-structured model output into
typed pydantic values. A chain of extraction strategies (native structured
outputs, forced tool calls, provider-tuned text extraction and a universal
prompting fallback) is driven with per-strategy retries and backoff, and the
extracted JSON is coerced recursively against the signature's output type,
including discriminated unions.

Core Capabilities:
    - **Signatures**: Pydantic input/output contracts translated into type descriptors
    - **Coercion**: Strict primitive parsing, enums, nested structs and tagged unions
    - **Strategies**: Provider-aware JSON extraction with automatic selection
    - **Retries**: Fallback chain with exponential backoff and diagnosable logs
    - **Observability**: Prefect logging and Laminar (LMNR) tracing

Quick Start:
    >>> from pydantic import BaseModel
    >>> from ai_extraction_core import OpenAIAdapter, Predict, Signature
    >>>
    >>> class Question(BaseModel):
    ...     question: str
    >>>
    >>> class Answer(BaseModel):
    ...     '''Answer the question concisely.'''
    ...     answer: str
    ...     confidence: float
    >>>
    >>> predict = Predict(Signature(Answer, Question), OpenAIAdapter("gpt-4o-mini"))
    >>> prediction = await predict(question="What is the capital of France?")
    >>> print(prediction.parsed.answer)

Environment Variables (see settings module):
    - OPENAI_API_KEY / OPENAI_BASE_URL: OpenAI-compatible endpoint
    - LMNR_PROJECT_API_KEY: Laminar tracing
    - STRUCTURED_OUTPUTS_STRATEGY: "strict", "compatible" or a strategy name
    - TEST_MODE: Zero retry backoff
"""

from . import lm, strategies, types
from .exceptions import (
    AllStrategiesExhausted,
    ConfigurationError,
    ExtractionCoreError,
    ExtractionFailure,
    PredictionInvalidError,
    ProviderError,
    TypeCoercionError,
)
from .extraction import Predict, generate_structured
from .lm import Adapter, LMResponse, OpenAIAdapter, Provider, TokenUsage
from .logging import LoggerMixin, StructuredLoggerMixin, get_pipeline_logger, setup_logging
from .prediction import Prediction, build_prediction
from .retry import RetryHandler, RetryPolicy, RetryState
from .selector import StrategyPreference, StrategySelector
from .settings import Settings, settings
from .signature import Signature
from .strategies import DEFAULT_STRATEGIES, ExtractionStrategy
from .types import TypeDescriptor, UnionDiscriminator, ValueCoercer, coerce, describe

__version__ = "0.1.0"

__all__ = [
    # Config
    "Settings",
    "settings",
    # Logging
    "get_pipeline_logger",
    "setup_logging",
    "LoggerMixin",
    "StructuredLoggerMixin",
    # Exceptions
    "ExtractionCoreError",
    "ConfigurationError",
    "TypeCoercionError",
    "ExtractionFailure",
    "ProviderError",
    "PredictionInvalidError",
    "AllStrategiesExhausted",
    # Types
    "types",
    "TypeDescriptor",
    "describe",
    "coerce",
    "ValueCoercer",
    "UnionDiscriminator",
    # Provider layer
    "lm",
    "Adapter",
    "OpenAIAdapter",
    "LMResponse",
    "Provider",
    "TokenUsage",
    # Strategies
    "strategies",
    "ExtractionStrategy",
    "DEFAULT_STRATEGIES",
    "StrategySelector",
    "StrategyPreference",
    "RetryHandler",
    "RetryPolicy",
    "RetryState",
    # Signatures and predictions
    "Signature",
    "Prediction",
    "build_prediction",
    "generate_structured",
    "Predict",
]
