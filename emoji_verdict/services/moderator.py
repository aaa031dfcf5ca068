"""Content Moderator - allow / rewrite / block classification via a small model.

Invariants:
    - Transport/HTTP failure propagates (UpstreamUnavailableError) under the
      default FAIL_CLOSED policy; FAIL_OPEN (opt-in) treats it as allow
    - Unparseable or unknown-action responses default to allow (fail-open on parse only)
    - rewrite without safe_text falls back to the original text
    - A completion cut off at max_tokens is an upstream failure, never a parse
      failure: a truncated rewrite must not silently become allow
    - The submitted text is embedded as a JSON string literal, never as raw prompt

Design Decisions:
    - Same Anthropic client as generation, cheaper model (ADR: one vendor, one key)
    - No fallbacks passed: moderation requests never carry temperature
"""

import json
import logging

from emoji_verdict.core.domain_types import (
    ModerationAction, ModerationDecision, StagePolicy,
)
from emoji_verdict.core.errors import ErrorContext, UpstreamUnavailableError
from emoji_verdict.core.model_output import parse_model_json
from emoji_verdict.infrastructure.anthropic_client import (
    ResilientAnthropicClient, extract_text,
)

logger = logging.getLogger(__name__)

_MODERATION_INSTRUCTION = (
    "Assess the following text for content policy compliance. "
    'Respond with JSON {"action":"allow|rewrite|block",'
    '"reason":"friendly public message","safe_text":"optional rewritten text"}. '
    'Use "rewrite" when a playful warning should replace unsafe details. '
    'Use "block" only for extreme violence, hate, or disallowed content. '
    "Preserve or add appropriate emoji in safe_text."
)


class ContentModerator:
    def __init__(
        self,
        client: ResilientAnthropicClient,
        model: str,
        max_tokens: int = 1024,
        policy: StagePolicy = StagePolicy.FAIL_CLOSED,
    ):
        self.client = client
        self.model = model
        self.max_tokens = max_tokens
        self.policy = policy

    async def moderate(self, text: str) -> ModerationDecision:
        try:
            response = await self.client.create_message(
                model=self.model,
                max_tokens=self.max_tokens,
                messages=[{
                    "role": "user",
                    "content": f"{_MODERATION_INSTRUCTION}\n\n{json.dumps(text, ensure_ascii=False)}",
                }],
                context=ErrorContext(stage="moderating"),
            )
            if getattr(response, "stop_reason", None) == "max_tokens":
                raise UpstreamUnavailableError(
                    f"Moderation output cut off at {self.max_tokens} tokens",
                    "truncated", context=ErrorContext(stage="moderating"),
                )
        except UpstreamUnavailableError as e:
            if self.policy == StagePolicy.FAIL_CLOSED:
                raise
            logger.warning(
                "Moderation unavailable, allowing submission: %s", e.message,
                extra={"error_code": e.code},
            )
            return ModerationDecision.allow()

        decision = parse_moderation(extract_text(response), text)
        logger.info(
            "Moderation decided",
            extra={"moderation_action": decision.action.value},
        )
        return decision


def parse_moderation(completion: str | None, original_text: str) -> ModerationDecision:
    """Map classifier output to a decision. Parse failures mean allow."""
    data = parse_model_json(completion)
    if not isinstance(data, dict):
        return ModerationDecision.allow()
    try:
        action = ModerationAction(data.get("action"))
    except ValueError:
        return ModerationDecision.allow()

    reason = _non_blank(data.get("reason"))
    if action == ModerationAction.BLOCK:
        return ModerationDecision.block(reason)
    if action == ModerationAction.REWRITE:
        safe_text = data.get("safe_text", data.get("safeText"))
        if not isinstance(safe_text, str) or not safe_text.strip():
            safe_text = original_text
        return ModerationDecision.rewrite(safe_text, reason)
    return ModerationDecision.allow()


def _non_blank(value) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None
