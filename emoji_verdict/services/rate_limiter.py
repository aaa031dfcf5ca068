"""Rate Limiter - per-client fixed-window gate in front of the verdict stream.

Invariants:
    - Checked once per request, BEFORE the stream opens (429 never opens a stream)
    - Clock and store are injected: tests drive time explicitly
    - Only the in-memory store is pruned; other backends expire keys themselves
"""

import logging
import time
from collections.abc import Callable
from functools import partial

from emoji_verdict.core.boundary_protocols import WindowCounterStore
from emoji_verdict.core.domain_types import ClientIdentifier, RateLimitDecision
from emoji_verdict.core.rate_limit import register_hit, to_decision

logger = logging.getLogger(__name__)


class RateLimiter:
    def __init__(
        self,
        store: WindowCounterStore,
        max_requests: int = 30,
        window_seconds: float = 24 * 60 * 60,
        clock: Callable[[], float] = time.time,
        prune_threshold: int | None = None,
    ):
        self.store = store
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.clock = clock
        self.prune_threshold = prune_threshold

    async def check(self, identifier: ClientIdentifier) -> RateLimitDecision:
        now = self.clock()
        mutate = partial(
            register_hit,
            now=now,
            window_seconds=self.window_seconds,
            max_requests=self.max_requests,
        )
        window, allowed = await self.store.update(identifier, mutate)
        decision = to_decision(window, allowed, now, self.max_requests)
        if not allowed:
            logger.warning(
                "Rate limit exceeded",
                extra={"client_id": identifier},
            )
        self._maybe_prune(now)
        return decision

    def _maybe_prune(self, now: float) -> None:
        prune = getattr(self.store, "prune", None)
        if prune is None or self.prune_threshold is None:
            return
        if len(self.store) > self.prune_threshold:  # type: ignore[arg-type]
            prune(now)
