"""Core configuration settings for structured extraction.

@public

This module provides centralized configuration management for AI Extraction Core,
handling provider credentials, strategy preferences and retry tuning. Settings are
loaded from environment variables with .env file support via pydantic-settings.

Environment variables:
    OPENAI_BASE_URL: OpenAI-compatible endpoint (e.g. a LiteLLM proxy at http://localhost:4000)
    OPENAI_API_KEY: API key for the endpoint
    LMNR_PROJECT_API_KEY: Laminar project key for observability
    STRUCTURED_OUTPUTS_STRATEGY: "strict", "compatible" or an explicit strategy name
    STRUCTURED_OUTPUTS_ENABLED: Allow provider-native structured outputs (default true)
    TEST_MODE: Zero backoff between retries (default false)
    RETRY_BACKOFF_BASE: Base delay in seconds for exponential backoff (default 0.5)
    RETRY_BACKOFF_CAP: Maximum delay in seconds between retries (default 10)

Configuration precedence:
    1. Environment variables (highest priority)
    2. .env file in current directory
    3. Default values

Example:
    >>> from ai_extraction_core.settings import settings
    >>>
    >>> print(settings.structured_outputs_strategy)
    >>> print(settings.retry_backoff_base)

Note:
    Settings are loaded once at module import and frozen. Components that need
    different values (tests, per-tenant setups) take explicit arguments instead
    of mutating the global instance.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Core configuration for AI Extraction Core.

    @public

    Attributes:
        openai_base_url: OpenAI-compatible API URL. Empty means the SDK default.

        openai_api_key: Authentication key for the OpenAI-compatible endpoint.

        lmnr_project_api_key: Laminar (LMNR) project API key for tracing.

        structured_outputs_strategy: Strategy preference. "strict" prefers
                                     provider-optimized extraction, "compatible"
                                     forces the enhanced prompting fallback, any
                                     other value is matched against strategy names.
                                     Empty means automatic selection.

        structured_outputs_enabled: Whether adapters may use provider-native
                                    JSON Schema enforcement.

        test_mode: Deterministic mode. Backoff between retries resolves to zero.

        retry_backoff_base: Base delay (seconds) of the exponential backoff.

        retry_backoff_cap: Upper bound (seconds) of any single backoff delay.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,  # Settings are immutable after initialization
    )

    # LLM API Configuration
    openai_base_url: str = ""
    openai_api_key: str = ""

    # Observability
    lmnr_project_api_key: str = ""

    # Structured output extraction
    structured_outputs_strategy: str = ""
    structured_outputs_enabled: bool = True

    # Retry behaviour
    test_mode: bool = False
    retry_backoff_base: float = 0.5
    retry_backoff_cap: float = 10.0


# Create a single, importable instance of the settings
settings = Settings()
"""Global settings instance for the entire library.

@public

Example:
    >>> from ai_extraction_core.settings import settings
    >>> print(f"Using endpoint {settings.openai_base_url or 'default'}")
"""
