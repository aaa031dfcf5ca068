"""Dependencies - process-wide singletons exposed as FastAPI dependencies.

Invariants:
    - One model client, one rate limiter (and its store), one pipeline per process
    - Tests replace these through app.dependency_overrides, never by patching globals

Design Decisions:
    - Lazy singletons: AsyncAnthropic is stateless and connection-pool-safe, so
      one instance amortizes pool setup and TLS handshakes across requests
    - The rate-limit store MUST be shared: a per-request store would reset quotas
"""

from emoji_verdict.config import get_settings
from emoji_verdict.core.domain_types import StagePolicy
from emoji_verdict.infrastructure.anthropic_client import ResilientAnthropicClient
from emoji_verdict.infrastructure.rate_limit_store import InMemoryWindowStore
from emoji_verdict.services.language_normalizer import LanguageNormalizer
from emoji_verdict.services.moderator import ContentModerator
from emoji_verdict.services.rate_limiter import RateLimiter
from emoji_verdict.services.stream_orchestrator import VerdictPipeline
from emoji_verdict.services.verdict_generator import VerdictGenerator

_anthropic_client: ResilientAnthropicClient | None = None
_rate_limiter: RateLimiter | None = None
_pipeline: VerdictPipeline | None = None


def get_anthropic_client() -> ResilientAnthropicClient:
    global _anthropic_client
    if _anthropic_client is None:
        settings = get_settings()
        _anthropic_client = ResilientAnthropicClient(
            api_key=settings.anthropic_api_key,
            timeout_seconds=settings.anthropic_timeout_seconds,
        )
    return _anthropic_client


def get_rate_limiter() -> RateLimiter:
    global _rate_limiter
    if _rate_limiter is None:
        settings = get_settings()
        _rate_limiter = RateLimiter(
            InMemoryWindowStore(),
            max_requests=settings.rate_limit_max_requests,
            window_seconds=settings.rate_limit_window_seconds,
            prune_threshold=settings.rate_limit_prune_threshold,
        )
    return _rate_limiter


def get_pipeline() -> VerdictPipeline:
    global _pipeline
    if _pipeline is None:
        settings = get_settings()
        client = get_anthropic_client()
        _pipeline = VerdictPipeline(
            moderator=ContentModerator(
                client,
                model=settings.moderation_model,
                max_tokens=settings.moderation_max_tokens,
                policy=(
                    StagePolicy.FAIL_OPEN if settings.moderation_fail_open
                    else StagePolicy.FAIL_CLOSED
                ),
            ),
            normalizer=LanguageNormalizer(
                working_language=settings.working_language,
                timeout_seconds=settings.translation_timeout_seconds,
                min_detect_chars=settings.language_min_detect_chars,
            ),
            generator=VerdictGenerator(
                client,
                model=settings.verdict_model,
                max_tokens=settings.verdict_max_tokens,
                send_temperature=settings.verdict_send_temperature,
                max_text_chars=settings.max_text_chars,
                policy=(
                    StagePolicy.FAIL_OPEN if settings.verdict_fail_open
                    else StagePolicy.FAIL_CLOSED
                ),
            ),
            share_base_path=settings.share_base_path,
            max_share_url_length=settings.max_share_url_length,
        )
    return _pipeline
