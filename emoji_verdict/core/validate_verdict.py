"""Verdict Validation - schema, emoji-only and length enforcement on model output.

Invariants:
    - Fails on the FIRST violation, in order: object shape, emoji fields,
      text fields, evidence pairing, then glyph caps
    - Capping always runs after sanitizing (a cap never sees ASCII noise)
    - Invalid evidence entries are dropped silently; invalid verdict/sentence fail
    - len(evidence_text) must equal len(kept evidence) - no padding, no reordering
    - Glyph caps are re-applied here regardless of what the prompt asked for

Design Decisions:
    - Raises ModelOutputInvalidError with the rule as message: the orchestrator
      surfaces it verbatim as the terminal error (messages never echo model text)
"""

from typing import Any

from emoji_verdict.core.domain_types import EmojiLimits, ValidatedVerdict
from emoji_verdict.core.emoji_glyphs import (
    clamp_emoji_string, is_emoji_only, sanitize_emoji,
)
from emoji_verdict.core.errors import ModelOutputInvalidError

MAX_TEXT_CHARS = 160
MAX_ADVICE_CHARS = 80
MAX_EVIDENCE_ENTRIES = 6
DEFAULT_STATUS_ADVICE = "Share responsibly."


def validate_model_output(raw: Any, limits: EmojiLimits) -> ValidatedVerdict:
    """Sanitize and validate raw model JSON into a ValidatedVerdict."""
    if not raw or not isinstance(raw, dict):
        raise ModelOutputInvalidError("Model returned empty response.")

    verdict = _sanitized_emoji_field(raw.get("verdict"))
    if not verdict or not is_emoji_only(verdict):
        raise ModelOutputInvalidError("Model verdict missing or not emoji-only.")

    sentence = _sanitized_emoji_field(raw.get("sentence"))
    if not sentence or not is_emoji_only(sentence):
        raise ModelOutputInvalidError("Model sentence missing or not emoji-only.")

    verdict_text = _capped_text(raw.get("verdict_text"), MAX_TEXT_CHARS)
    if not verdict_text:
        raise ModelOutputInvalidError("Model verdict_text missing or empty.")

    sentence_text = _capped_text(raw.get("sentence_text"), MAX_TEXT_CHARS)
    if not sentence_text:
        raise ModelOutputInvalidError("Model sentence_text missing or empty.")

    status_advice = (
        _capped_text(raw.get("status_advice"), MAX_ADVICE_CHARS)
        or DEFAULT_STATUS_ADVICE
    )

    evidence = _kept_evidence(raw.get("evidence"))
    if not evidence:
        raise ModelOutputInvalidError("Model evidence missing or invalid.")

    evidence_text = _kept_evidence_text(raw.get("evidence_text"))
    if len(evidence_text) != len(evidence):
        raise ModelOutputInvalidError("Model evidence_text length mismatch.")

    return ValidatedVerdict(
        verdict=clamp_emoji_string(verdict, limits.verdict_max),
        verdict_text=verdict_text,
        sentence=clamp_emoji_string(sentence, limits.sentence_max),
        sentence_text=sentence_text,
        evidence=tuple(
            clamp_emoji_string(item, limits.evidence_max) for item in evidence
        ),
        evidence_text=tuple(evidence_text),
        status_advice=status_advice,
    )


def _sanitized_emoji_field(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    return sanitize_emoji(value.strip())


def _capped_text(value: Any, limit: int) -> str:
    if not isinstance(value, str):
        return ""
    return value.strip()[:limit]


def _kept_evidence(value: Any) -> list[str]:
    """First MAX_EVIDENCE_ENTRIES entries that survive sanitizing, in order."""
    kept: list[str] = []
    if not isinstance(value, list):
        return kept
    for entry in value:
        sanitized = _sanitized_emoji_field(entry)
        if not sanitized or not is_emoji_only(sanitized):
            continue
        kept.append(sanitized)
        if len(kept) >= MAX_EVIDENCE_ENTRIES:
            break
    return kept


def _kept_evidence_text(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [
        entry.strip()[:MAX_TEXT_CHARS]
        for entry in value
        if isinstance(entry, str) and entry.strip()
    ]
