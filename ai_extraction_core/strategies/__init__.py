"""JSON extraction strategies.

@public

``DEFAULT_STRATEGIES`` is the ordered list of strategy classes a
StrategySelector instantiates when none is injected. Declaration order breaks
priority ties.
"""

from .anthropic_extraction import AnthropicExtractionStrategy
from .anthropic_tool_use import AnthropicToolUseStrategy
from .base import ExtractionStrategy
from .enhanced_prompting import EnhancedPromptingStrategy
from .gemini_structured_output import GeminiStructuredOutputStrategy
from .openai_structured_output import OpenAIStructuredOutputStrategy

DEFAULT_STRATEGIES: tuple[type[ExtractionStrategy], ...] = (
    OpenAIStructuredOutputStrategy,
    GeminiStructuredOutputStrategy,
    AnthropicToolUseStrategy,
    AnthropicExtractionStrategy,
    EnhancedPromptingStrategy,
)

__all__ = [
    "DEFAULT_STRATEGIES",
    "AnthropicExtractionStrategy",
    "AnthropicToolUseStrategy",
    "EnhancedPromptingStrategy",
    "ExtractionStrategy",
    "GeminiStructuredOutputStrategy",
    "OpenAIStructuredOutputStrategy",
]
