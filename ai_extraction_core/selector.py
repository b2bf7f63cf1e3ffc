"""Strategy selection for structured output extraction.

@public

StrategySelector instantiates the configured strategy classes for one
(adapter, signature) pair and picks the one to start with. A preference
("strict", "compatible" or an explicit strategy name) is honored when it can
be; otherwise the highest-priority available strategy wins.
"""

from collections.abc import Sequence
from enum import StrEnum

from ai_extraction_core.exceptions import ConfigurationError
from ai_extraction_core.lm import Adapter
from ai_extraction_core.logging import LoggerMixin
from ai_extraction_core.settings import settings
from ai_extraction_core.signature import Signature
from ai_extraction_core.strategies import DEFAULT_STRATEGIES, ExtractionStrategy


class StrategyPreference(StrEnum):
    """User-level extraction preference."""

    STRICT = "strict"
    COMPATIBLE = "compatible"


STRICT_ORDER = (
    "openai_structured_output",
    "gemini_structured_output",
    "anthropic_tool_use",
    "anthropic_extraction",
)
"""Provider-optimized strategies in the order a strict preference tries them."""

UNIVERSAL_STRATEGY = "enhanced_prompting"


class StrategySelector(LoggerMixin):
    """Chooses the extraction strategy for an adapter and signature.

    @public

    Args:
        adapter: Provider adapter the strategies are bound to.
        signature: Output contract the strategies extract.
        strategies: Ordered strategy classes. Order breaks priority ties.
        preference: ``StrategyPreference``, a strategy name, or "" for automatic
                    selection. None reads ``settings.structured_outputs_strategy``.

    Raises:
        ConfigurationError: If two strategies share a name.
    """

    def __init__(
        self,
        adapter: Adapter,
        signature: Signature,
        strategies: Sequence[type[ExtractionStrategy]] = DEFAULT_STRATEGIES,
        preference: StrategyPreference | str | None = None,
    ):
        self.adapter = adapter
        self.signature = signature
        self.preference = settings.structured_outputs_strategy if preference is None else preference
        self.strategies = [strategy_class(adapter, signature) for strategy_class in strategies]

        names = [strategy.name for strategy in self.strategies]
        if duplicates := sorted({name for name in names if names.count(name) > 1}):
            raise ConfigurationError(f"Duplicate strategy names: {', '.join(duplicates)}")

    def select(self) -> ExtractionStrategy:
        """Return the strategy to start an extraction with.

        Raises:
            ConfigurationError: If no strategy is available.
        """
        if self.preference:
            strategy = self._resolve_preference(str(self.preference))
            if strategy is not None and strategy.available():
                self.log_debug(f"Selected JSON extraction strategy by preference: {strategy.name}", preference=str(self.preference))
                return strategy
            self.log_warning(
                f"Requested strategy '{self.preference}' is not available, falling back to automatic selection",
                preference=str(self.preference),
            )

        ranked = self.ranked_strategies()
        if not ranked:
            raise ConfigurationError(f"No JSON extraction strategies available for {self.adapter!r}")

        selected = ranked[0]
        self.log_debug(f"Selected JSON extraction strategy: {selected.name}")
        return selected

    def available_strategies(self) -> list[ExtractionStrategy]:
        """Available strategies in declaration order."""
        return [strategy for strategy in self.strategies if strategy.available()]

    def ranked_strategies(self) -> list[ExtractionStrategy]:
        """Available strategies, highest priority first; ties keep declaration order."""
        return sorted(self.available_strategies(), key=lambda strategy: -strategy.priority)

    def strategy_available(self, name: str) -> bool:
        strategy = self.find_strategy(name)
        return strategy is not None and strategy.available()

    def find_strategy(self, name: str) -> ExtractionStrategy | None:
        return next((strategy for strategy in self.strategies if strategy.name == name), None)

    def _resolve_preference(self, preference: str) -> ExtractionStrategy | None:
        match preference.lower():
            case StrategyPreference.STRICT:
                for name in STRICT_ORDER:
                    if (strategy := self.find_strategy(name)) is not None and strategy.available():
                        return strategy
                return self.find_strategy(UNIVERSAL_STRATEGY)
            case StrategyPreference.COMPATIBLE:
                return self.find_strategy(UNIVERSAL_STRATEGY)
        return self.find_strategy(preference)
