"""Provider adapter interface.

Adapters are the transport boundary of the extraction core: they send chat
messages plus strategy-prepared request parameters and return an LMResponse.
Transport resilience (timeouts, connection retries) belongs to the adapter.
"""

from abc import ABC, abstractmethod
from typing import Any

from ai_extraction_core.settings import settings

from .types import ChatMessage, LMResponse, Provider

_PREFIXES: dict[str, Provider] = {
    "openai": Provider.OPENAI,
    "anthropic": Provider.ANTHROPIC,
    "gemini": Provider.GEMINI,
    "google": Provider.GEMINI,
    "vertex_ai": Provider.GEMINI,
    "ollama": Provider.OLLAMA,
}

_FAMILIES: tuple[tuple[tuple[str, ...], Provider], ...] = (
    (("gpt-", "o1", "o3", "o4", "chatgpt-"), Provider.OPENAI),
    (("claude",), Provider.ANTHROPIC),
    (("gemini",), Provider.GEMINI),
)


def split_model(model: str) -> tuple[str | None, str]:
    """Split ``"provider/model"`` into its prefix and bare model name."""
    prefix, sep, name = model.partition("/")
    return (prefix.lower(), name) if sep else (None, model)


def infer_provider(model: str) -> Provider:
    """Infer the provider family from a model identifier.

    Example:
        >>> infer_provider("anthropic/claude-3-5-sonnet-20241022")
        <Provider.ANTHROPIC: 'anthropic'>
        >>> infer_provider("gpt-4o-mini")
        <Provider.OPENAI: 'openai'>
    """
    prefix, name = split_model(model)
    if prefix is not None:
        return _PREFIXES.get(prefix, Provider.OTHER)
    lowered = name.lower()
    for prefixes, provider in _FAMILIES:
        if lowered.startswith(prefixes):
            return provider
    return Provider.OTHER


class Adapter(ABC):
    """Base class for provider adapters.

    @public

    Attributes:
        model: Model identifier, optionally prefixed with ``provider/``.
        provider: Provider family, inferred from the model when not given.
        structured_outputs: Whether provider-native schema enforcement may be used.
    """

    def __init__(self, model: str, *, provider: Provider | None = None, structured_outputs: bool | None = None):
        self.model = model
        self.provider = provider or infer_provider(model)
        self.structured_outputs = settings.structured_outputs_enabled if structured_outputs is None else structured_outputs

    @property
    def model_name(self) -> str:
        """Model identifier without provider prefix."""
        return split_model(self.model)[1]

    @property
    def supports_tool_calls(self) -> bool:
        return True

    @abstractmethod
    async def chat(self, messages: list[ChatMessage], request_params: dict[str, Any]) -> LMResponse:
        """Send messages and return the provider response.

        Raises:
            ProviderError: When the provider call fails.
        """

    def __repr__(self) -> str:
        return f"{type(self).__name__}(model={self.model!r}, provider={self.provider.value!r})"
