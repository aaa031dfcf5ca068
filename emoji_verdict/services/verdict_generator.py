"""Verdict Generator - prompt, model call with shape negotiation, raw JSON parse.

Invariants:
    - Exactly one resubmission, and only when the model rejects `temperature`
      (TEMPERATURE_FALLBACK); every other failure propagates under FAIL_CLOSED
    - FAIL_OPEN (opt-in) turns an upstream failure into None, the same
      recoverable "no verdict" as an unparseable completion
    - Returns None for an unparseable completion: a recoverable "no verdict"
    - Output is untyped; validate_model_output is the only schema authority

Design Decisions:
    - temperature = clamp(density / 10, 0.2, 0.9): density drives model chaos too
    - send_temperature toggle for models known to reject sampling params
"""

import logging
from typing import Any

from emoji_verdict.core.domain_types import EmojiLimits, StagePolicy
from emoji_verdict.core.emoji_limits import clamp_to_range
from emoji_verdict.core.errors import ErrorContext, UpstreamUnavailableError
from emoji_verdict.core.model_output import parse_model_json
from emoji_verdict.infrastructure.anthropic_client import (
    ResilientAnthropicClient, TEMPERATURE_FALLBACK,
)
from emoji_verdict.services.verdict_prompt import SYSTEM_PROMPT, build_verdict_messages

logger = logging.getLogger(__name__)


def temperature_for(density: float) -> float:
    return clamp_to_range(density / 10, 0.2, 0.9)


class VerdictGenerator:
    def __init__(
        self,
        client: ResilientAnthropicClient,
        model: str,
        max_tokens: int = 1024,
        send_temperature: bool = True,
        max_text_chars: int = 500,
        policy: StagePolicy = StagePolicy.FAIL_CLOSED,
    ):
        self.client = client
        self.model = model
        self.max_tokens = max_tokens
        self.send_temperature = send_temperature
        self.max_text_chars = max_text_chars
        self.policy = policy

    async def generate(
        self, text: str, density: float, limits: EmojiLimits,
    ) -> Any | None:
        try:
            completion = await self.client.complete_text(
                model=self.model,
                max_tokens=self.max_tokens,
                system=SYSTEM_PROMPT,
                messages=build_verdict_messages(
                    text, density, limits, max_chars=self.max_text_chars,
                ),
                temperature=temperature_for(density) if self.send_temperature else None,
                fallbacks=(TEMPERATURE_FALLBACK,),
                context=ErrorContext(stage="generating"),
            )
        except UpstreamUnavailableError as e:
            if self.policy == StagePolicy.FAIL_CLOSED:
                raise
            logger.warning(
                "Verdict model unavailable, returning no verdict: %s", e.message,
                extra={"error_code": e.code},
            )
            return None
        parsed = parse_model_json(completion)
        if parsed is None:
            logger.warning("Verdict completion was not valid JSON")
        return parsed
