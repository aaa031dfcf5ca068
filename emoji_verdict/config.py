"""Application Configuration - environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) - single instance per process

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all non-secret settings: works out-of-the-box locally
    - Per-call ceilings (anthropic/translation timeouts) live here: no stage may
      hang the stream indefinitely
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Anthropic
    anthropic_api_key: str = "sk-ant-placeholder"
    anthropic_timeout_seconds: float = 45.0

    # Verdict generation
    verdict_model: str = "claude-sonnet-4-5"
    verdict_max_tokens: int = 1024
    verdict_send_temperature: bool = True
    verdict_fail_open: bool = False

    # Moderation (small, fast classifier)
    moderation_model: str = "claude-haiku-4-5"
    moderation_max_tokens: int = 1024
    # ADR: safety gate stays fail-closed unless explicitly opted out
    moderation_fail_open: bool = False

    # Language
    working_language: str = "en"
    translation_timeout_seconds: float = 10.0
    language_min_detect_chars: int = 40

    # Rate limiting
    rate_limit_max_requests: int = 30
    rate_limit_window_seconds: int = 24 * 60 * 60
    rate_limit_prune_threshold: int = 10_000

    # Request / share
    max_text_chars: int = 500
    share_base_path: str = "/"
    max_share_url_length: int = 1900

    # API
    cors_origins: list[str] = ["http://localhost:3000"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
