"""Domain Types - rich types that replace bare primitives across the codebase.

Invariants:
    - EmojiLimits, ModerationDecision, ValidatedVerdict are immutable per request
    - RateLimitWindow is the only type that outlives a request (held by the store)
    - All closed value sets encoded as str Enums - no raw string matching

Design Decisions:
    - NewType for identifiers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders (stream events are JSON)
    - Frozen dataclasses over pydantic for core values: no IO boundary here,
      pydantic is reserved for the request schema
"""

from dataclasses import dataclass
from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

ClientIdentifier = NewType("ClientIdentifier", str)


# ─── Enums ───────────────────────────────────────────────────────

class ModerationAction(str, Enum):
    """Outcome of the content moderation stage."""
    ALLOW = "allow"
    REWRITE = "rewrite"
    BLOCK = "block"


class StreamField(str, Enum):
    """Discriminator of every NDJSON stream event."""
    STATUS = "status"
    VERDICT = "verdict"
    VERDICT_TEXT = "verdict_text"
    SENTENCE = "sentence"
    SENTENCE_TEXT = "sentence_text"
    EVIDENCE = "evidence"
    EVIDENCE_TEXT = "evidence_text"
    SHARE = "share"
    ERROR = "error"
    DONE = "done"


class ShareLinkType(str, Enum):
    """direct: URL fits the length budget. long: client must request a shortlink."""
    DIRECT = "direct"
    LONG = "long"


class StagePolicy(str, Enum):
    """What a pipeline stage does when its external call fails."""
    FAIL_OPEN = "fail_open"      # recover locally, continue the request
    FAIL_CLOSED = "fail_closed"  # propagate, terminate the stream


# ─── Value Types ─────────────────────────────────────────────────

@dataclass(frozen=True)
class EmojiLimits:
    """Glyph caps derived from density - instructs the model AND truncates its output."""
    verdict_max: int
    sentence_max: int
    evidence_max: int


@dataclass(frozen=True)
class ModerationDecision:
    action: ModerationAction
    reason: str | None = None
    safe_text: str | None = None

    @classmethod
    def allow(cls) -> "ModerationDecision":
        return cls(ModerationAction.ALLOW)

    @classmethod
    def rewrite(cls, safe_text: str, reason: str | None = None) -> "ModerationDecision":
        return cls(ModerationAction.REWRITE, reason=reason, safe_text=safe_text)

    @classmethod
    def block(cls, reason: str | None = None) -> "ModerationDecision":
        return cls(ModerationAction.BLOCK, reason=reason)

    @property
    def is_blocked(self) -> bool:
        return self.action == ModerationAction.BLOCK


@dataclass(frozen=True)
class NormalizedText:
    """Result of the language stage. degraded=True means the fail-open path ran."""
    text: str
    language: str
    was_translated: bool = False
    degraded: bool = False


@dataclass(frozen=True)
class ValidatedVerdict:
    """Model output that passed every sanitizer rule.

    verdict, sentence and evidence hold emoji glyphs and whitespace only;
    len(evidence_text) == len(evidence).
    """
    verdict: str
    verdict_text: str
    sentence: str
    sentence_text: str
    evidence: tuple[str, ...]
    evidence_text: tuple[str, ...]
    status_advice: str


# ─── Rate Limiting ───────────────────────────────────────────────

@dataclass(frozen=True)
class RateLimitWindow:
    """Fixed-window counter. reset_at is epoch seconds."""
    count: int
    reset_at: float


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    remaining: int
    reset_at: float
    retry_after_seconds: int
