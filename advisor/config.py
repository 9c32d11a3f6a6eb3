# =============================================================================
# Application Configuration — Pydantic Settings
# =============================================================================
#
# All runtime knobs live here: provider selection, model names per role,
# sampling per role, classifier thresholds, cache and session limits.
#
# Pydantic Settings loads values in this priority order (highest first):
#   1. Environment variables (e.g., `LLM_MODEL=...`)
#   2. Values from the .env file
#   3. Default values defined below
#
# USAGE:
#   from advisor.config import settings
#   print(settings.llm_model)
# =============================================================================

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Defaults reproduce the production behaviour of the advisor (GPT-4o for
    the experts, GPT-4o-mini for classification). Override via environment
    variables or a .env file.
    """

    # -------------------------------------------------------------------------
    # Application
    # -------------------------------------------------------------------------
    app_name: str = "Hebrew Financial Advisor"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 15001

    # -------------------------------------------------------------------------
    # API Keys — External Services
    # -------------------------------------------------------------------------
    # No defaults: a missing key fails at provider construction time.
    # -------------------------------------------------------------------------
    openai_api_key: str = ""
    anthropic_api_key: str = ""

    # -------------------------------------------------------------------------
    # LLM Configuration — Multi-Provider
    # -------------------------------------------------------------------------
    # Two provider types:
    #   - "openai_compatible": OpenAI itself or any OpenAI-compatible API
    #   - "anthropic": Claude via native Anthropic SDK
    #
    # Two model roles:
    #   - llm_model: expert answers and multi-expert synthesis
    #   - classifier_model: the small JSON-mode routing call
    # -------------------------------------------------------------------------
    llm_provider: str = "openai_compatible"  # "openai_compatible" or "anthropic"
    llm_base_url: str | None = None  # Only needed for non-OpenAI endpoints
    llm_api_key: str | None = None   # Overrides provider-specific key if set
    llm_model: str = "gpt-4o"
    classifier_model: str = "gpt-4o-mini"
    llm_temperature: float = 0.2
    llm_max_tokens: int = 4096

    # -------------------------------------------------------------------------
    # Expert sampling
    # -------------------------------------------------------------------------
    agent_temperature: float = 0.25
    agent_top_p: float = 0.9
    agent_presence_penalty: float = 0.1
    agent_frequency_penalty: float = 0.1
    agent_max_tokens: int = 5000

    # -------------------------------------------------------------------------
    # Synthesis sampling
    # -------------------------------------------------------------------------
    synthesis_temperature: float = 0.3
    synthesis_max_tokens: int = 1500

    # -------------------------------------------------------------------------
    # Classifier
    # -------------------------------------------------------------------------
    # classifier_min_confidence: AI selections below this are dropped
    # (the first selection survives if all fall below it).
    # classifier_context_*: how much history the AI classifier sees.
    # -------------------------------------------------------------------------
    classifier_temperature: float = 0.1
    classifier_max_tokens: int = 400
    classifier_min_confidence: int = 40
    classifier_context_messages: int = 6
    classifier_context_chars: int = 500

    # -------------------------------------------------------------------------
    # Response cache & session store (in-memory)
    # -------------------------------------------------------------------------
    cache_ttl_seconds: int = 24 * 60 * 60
    cache_max_entries: int = 200
    session_ttl_seconds: int = 60 * 60
    max_sessions: int = 100
    session_history_limit: int = 20  # Messages kept per session, 0 = unlimited
    cleanup_interval_seconds: int = 15 * 60

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """
    Create and cache a Settings instance.

    In tests, override with FastAPI's dependency_overrides:
        app.dependency_overrides[get_settings] = lambda: Settings(debug=True)
    """
    return Settings()


# Import this directly in most cases:
#   from advisor.config import settings
settings = Settings()
