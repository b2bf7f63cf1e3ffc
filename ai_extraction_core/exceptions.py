"""Exception hierarchy for AI Extraction Core.

This module defines the exception hierarchy used throughout the AI Extraction Core library.
All exceptions inherit from ExtractionCoreError, providing a consistent error handling interface.
"""

from typing import Any


class ExtractionCoreError(Exception):
    """Base exception for all AI Extraction Core errors."""


class ConfigurationError(ExtractionCoreError):
    """Raised when adapters, strategies or settings are misconfigured."""


class TypeCoercionError(ExtractionCoreError):
    """Raised when a value cannot be reconciled with its type descriptor.

    Attributes:
        descriptor: The TypeDescriptor the value was coerced against.
        value: The offending raw value.
        path: Location of the value inside the coerced tree (e.g. ``action.items[2]``).
    """

    def __init__(self, message: str, *, descriptor: Any, value: Any, path: str = "") -> None:
        self.descriptor = descriptor
        self.value = value
        self.path = path
        location = f" at '{path}'" if path else ""
        super().__init__(f"{message}{location}")


class ExtractionFailure(ExtractionCoreError):
    """Raised when a strategy could not pull a JSON payload out of a response."""

    def __init__(self, message: str, *, strategy: str | None = None, content: str | None = None) -> None:
        self.strategy = strategy
        self.content = content
        super().__init__(message)


class ProviderError(ExtractionCoreError):
    """Raised when the provider call itself fails (network, auth, rate limit)."""


class PredictionInvalidError(ExtractionCoreError):
    """Raised when inputs or extracted outputs do not satisfy a signature.

    Attributes:
        stage: ``"input"`` for input validation, ``"output"`` for output coercion.
        field: Dotted path of the failing field, if known.
        strategy: Name of the extraction strategy that produced the output.
        attempt: Attempt number within the retry loop, filled in by RetryHandler.
    """

    def __init__(
        self,
        message: str,
        *,
        stage: str,
        field: str | None = None,
        strategy: str | None = None,
        attempt: int | None = None,
    ) -> None:
        self.stage = stage
        self.field = field
        self.strategy = strategy
        self.attempt = attempt
        super().__init__(message)


class AllStrategiesExhausted(ExtractionCoreError):
    """Raised when the fallback chain is consumed without any recorded error."""

    def __init__(self, message: str = "All JSON extraction strategies failed", *, last_error: BaseException | None = None) -> None:
        self.last_error = last_error
        super().__init__(message)
