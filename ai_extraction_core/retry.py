"""Retry and fallback driver for structured output extraction.

@public

RetryHandler walks one logical extraction through a chain of strategies: the
selected strategy first, then every other available strategy by priority.
Each strategy is retried up to its own limit with exponential backoff before
the handler moves on. A strategy may also declare an error as its own through
``handle_error``, which skips its remaining retries.

Example:
    >>> handler = RetryHandler(selector, policy=RetryPolicy(deterministic=True))
    >>> result = await handler.with_retry(selector.select(), attempt)
"""

import asyncio
import random
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TypeVar

from ai_extraction_core.exceptions import AllStrategiesExhausted, ExtractionFailure, PredictionInvalidError
from ai_extraction_core.lm import EventSink, emit_event
from ai_extraction_core.logging import StructuredLoggerMixin
from ai_extraction_core.selector import StrategySelector
from ai_extraction_core.settings import settings
from ai_extraction_core.strategies import ExtractionStrategy

T = TypeVar("T")

DEFAULT_MAX_RETRIES: Mapping[str, int] = MappingProxyType({
    "openai_structured_output": 1,
    "gemini_structured_output": 1,
    "anthropic_extraction": 2,
})
"""Per-strategy retry limits; strategies not listed get ``RetryPolicy.default_max_retries``."""


@dataclass(frozen=True)
class RetryPolicy:
    """Retry limits and backoff timing.

    @public

    Attributes:
        base_delay: Delay in seconds before the first retry.
        max_delay: Upper bound on any single delay.
        max_retries: Retry limit by strategy name.
        default_max_retries: Limit for strategies not in ``max_retries``.
        jitter_ratio: Maximum jitter as a fraction of the exponential delay.
        deterministic: Resolve every delay to zero (test mode).
    """

    base_delay: float = 0.5
    max_delay: float = 10.0
    max_retries: Mapping[str, int] = field(default_factory=lambda: DEFAULT_MAX_RETRIES)
    default_max_retries: int = 3
    jitter_ratio: float = 0.1
    deterministic: bool = False

    @classmethod
    def from_settings(cls) -> "RetryPolicy":
        return cls(
            base_delay=settings.retry_backoff_base,
            max_delay=settings.retry_backoff_cap,
            deterministic=settings.test_mode,
        )

    def retries_for(self, strategy_name: str) -> int:
        return self.max_retries.get(strategy_name, self.default_max_retries)

    def backoff(self, retry: int, rng: Callable[[], float] = random.random) -> float:
        """Delay before same-strategy retry number ``retry`` (1-based).

        ``min(base * 2**(retry-1) + jitter, max_delay)`` with jitter drawn from
        ``[0, jitter_ratio * base * 2**(retry-1)]``.
        """
        if self.deterministic:
            return 0.0
        exponential = self.base_delay * 2 ** (retry - 1)
        return min(exponential + rng() * self.jitter_ratio * exponential, self.max_delay)


@dataclass
class RetryState:
    """Bookkeeping for one ``with_retry`` call."""

    chain: list[ExtractionStrategy]
    index: int = 0
    retries: int = 0
    attempts: int = 0
    last_error: Exception | None = None

    @property
    def current(self) -> ExtractionStrategy:
        return self.chain[self.index]

    @property
    def exhausted(self) -> bool:
        return self.index >= len(self.chain)

    def advance(self) -> None:
        self.index += 1
        self.retries = 0


class RetryHandler(StructuredLoggerMixin):
    """Drives an operation through the strategy fallback chain.

    @public

    A handler keeps no per-call state; each ``with_retry`` call owns its own
    RetryState. Every attempt, retry, handed-off error, exhausted strategy,
    success and final failure is logged and emitted to the event sink.

    Args:
        selector: Source of available strategies.
        policy: Retry limits and backoff. Defaults to ``RetryPolicy.from_settings()``.
        event_sink: Optional receiver of extraction events. The handler logs
                    every event itself, so no sink is attached by default.
    """

    _logger_name = "ai_extraction_core.retry"

    def __init__(
        self,
        selector: StrategySelector,
        policy: RetryPolicy | None = None,
        event_sink: EventSink | None = None,
    ):
        self.selector = selector
        self.policy = policy or RetryPolicy.from_settings()
        self.event_sink = event_sink

    def fallback_chain(self, initial_strategy: ExtractionStrategy) -> list[ExtractionStrategy]:
        """``[initial_strategy]`` followed by the other available strategies by priority."""
        others = [s for s in self.selector.ranked_strategies() if s.name != initial_strategy.name]
        return [initial_strategy, *others]

    async def with_retry(self, initial_strategy: ExtractionStrategy, operation: Callable[[ExtractionStrategy], Awaitable[T]]) -> T:
        """Run ``operation`` until one strategy succeeds.

        Args:
            initial_strategy: Strategy attempted first.
            operation: Coroutine function performing one provider call and
                       extraction with the given strategy; raises on failure.

        Returns:
            The first successful result of ``operation``.

        Raises:
            Exception: The last error raised by ``operation`` once every strategy
                in the chain is exhausted, annotated with strategy and attempt.
        """
        state = RetryState(chain=self.fallback_chain(initial_strategy))
        chain_names = [s.name for s in state.chain]
        self.log_debug(f"Extraction fallback chain: {' -> '.join(chain_names)}", chain=chain_names)

        while not state.exhausted:
            strategy = state.current
            state.attempts += 1
            self._record(
                "extraction.attempt",
                f"Attempting {strategy.name} (attempt {state.attempts}, retry {state.retries})",
                strategy=strategy.name,
                attempt=state.attempts,
                retry=state.retries,
            )
            try:
                result = await operation(strategy)
            except Exception as e:
                state.last_error = e
                self._annotate(e, strategy, state.attempts)
                await self._on_failure(e, strategy, state)
                continue

            self._record(
                "extraction.succeeded",
                f"Extraction succeeded with {strategy.name} after {state.attempts} attempt(s)",
                strategy=strategy.name,
                attempt=state.attempts,
            )
            return result

        error = state.last_error
        self.log_error(
            f"All JSON extraction strategies failed after {state.attempts} attempt(s): {error}",
            strategies=chain_names,
            attempts=state.attempts,
        )
        emit_event(
            self.event_sink,
            "extraction.failed",
            strategies=chain_names,
            attempts=state.attempts,
            error=str(error),
            error_type=type(error).__name__,
        )
        if error is None:
            raise AllStrategiesExhausted()
        raise error

    async def _on_failure(self, error: Exception, strategy: ExtractionStrategy, state: RetryState) -> None:
        if strategy.handle_error(error):
            self._record(
                "extraction.strategy_handled_error",
                f"{strategy.name} handed off error, moving to next strategy: {error}",
                level="info",
                strategy=strategy.name,
                attempt=state.attempts,
                error_type=type(error).__name__,
            )
            state.advance()
            return

        max_retries = self.policy.retries_for(strategy.name)
        if state.retries < max_retries:
            state.retries += 1
            delay = self.policy.backoff(state.retries)
            self._record(
                "extraction.retry",
                f"Retrying {strategy.name} (retry {state.retries}/{max_retries}) in {delay:.2f}s after error: {error}",
                level="warning",
                strategy=strategy.name,
                attempt=state.attempts,
                retry=state.retries,
                max_retries=max_retries,
                delay=delay,
                error_type=type(error).__name__,
            )
            if delay > 0:
                await asyncio.sleep(delay)
            return

        self._record(
            "extraction.strategy_exhausted",
            f"{strategy.name} exhausted {max_retries} retries, moving to next strategy: {error}",
            level="warning",
            strategy=strategy.name,
            attempt=state.attempts,
            max_retries=max_retries,
            error_type=type(error).__name__,
        )
        state.advance()

    def _record(self, event: str, message: str, *, level: str = "debug", **attributes) -> None:
        self.log_with_context(level, message, {"event": event, **attributes})
        emit_event(self.event_sink, event, **attributes)

    @staticmethod
    def _annotate(error: Exception, strategy: ExtractionStrategy, attempt: int) -> None:
        error.add_note(f"strategy={strategy.name} attempt={attempt}")
        if isinstance(error, PredictionInvalidError):
            error.strategy = error.strategy or strategy.name
            error.attempt = attempt
        elif isinstance(error, ExtractionFailure):
            error.strategy = error.strategy or strategy.name
