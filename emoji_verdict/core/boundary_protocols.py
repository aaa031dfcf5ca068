"""Boundary Protocols - contracts between core and shell.

Invariants:
    - Core NEVER imports from shell - dependency arrows point inward only
    - The orchestrator depends on these Protocols, never on concrete stages
    - WindowCounterStore.update is atomic per key: no lost updates under concurrency

Design Decisions:
    - Protocol over ABC: structural subtyping, fakes in tests need no inheritance
    - update(key, mutate) instead of get/set: read-modify-write stays inside the
      store's mutual-exclusion domain (in-memory lock, or a Redis script later)
"""

from collections.abc import Callable
from typing import Any, Protocol

from emoji_verdict.core.domain_types import (
    EmojiLimits, ModerationDecision, NormalizedText, RateLimitWindow,
)

WindowMutation = Callable[
    [RateLimitWindow | None], tuple[RateLimitWindow, bool],
]


class WindowCounterStore(Protocol):
    """Per-identifier fixed-window counters - implemented by shell."""
    async def update(
        self, key: str, mutate: WindowMutation,
    ) -> tuple[RateLimitWindow, bool]: ...
    async def get(self, key: str) -> RateLimitWindow | None: ...


class ContentModeration(Protocol):
    async def moderate(self, text: str) -> ModerationDecision: ...


class LanguageNormalization(Protocol):
    async def normalize(self, text: str) -> NormalizedText: ...


class VerdictGeneration(Protocol):
    async def generate(
        self, text: str, density: float, limits: EmojiLimits,
    ) -> Any | None: ...
