"""Extraction strategy interface."""

from abc import ABC, abstractmethod
from typing import Any, ClassVar

from ai_extraction_core.exceptions import ExtractionFailure, PredictionInvalidError, TypeCoercionError
from ai_extraction_core.lm import Adapter, ChatMessage, LMResponse
from ai_extraction_core.logging import LoggerMixin
from ai_extraction_core.signature import Signature


class ExtractionStrategy(LoggerMixin, ABC):
    """One way of obtaining structured output from a provider capability tier.

    @public

    Instances are bound to an (adapter, signature) pair and hold no other
    state, so a fresh instance per extraction is cheap.

    Attributes:
        name: Stable identifier used for logging, preference matching and
              retry-limit lookup.
        priority: Higher is preferred among simultaneously available strategies.
    """

    name: ClassVar[str]
    priority: ClassVar[int]

    def __init__(self, adapter: Adapter, signature: Signature):
        self.adapter = adapter
        self.signature = signature

    @abstractmethod
    def available(self) -> bool:
        """Whether the bound adapter and model support this strategy."""

    @abstractmethod
    def prepare_request(self, messages: list[ChatMessage], request_params: dict[str, Any]) -> None:
        """Edit the outgoing messages and request parameters in place.

        Called once per attempt on a fresh copy of the caller's messages.
        """

    @abstractmethod
    def extract_json(self, response: LMResponse) -> str | None:
        """Pull a JSON document out of the response, None when there is none."""

    def handle_error(self, error: BaseException) -> bool:
        """Return True when ``error`` means this strategy should be abandoned without retrying."""
        return False

    @staticmethod
    def provider_message(error: BaseException) -> str | None:
        """Lowercased message of a provider-side error.

        None for extraction and output errors, which are always retryable.
        """
        if isinstance(error, (ExtractionFailure, PredictionInvalidError, TypeCoercionError)):
            return None
        return str(error).lower()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, priority={self.priority})"
