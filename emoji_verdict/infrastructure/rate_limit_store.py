"""In-Memory Window Store - process-local WindowCounterStore.

Invariants:
    - One asyncio.Lock per key: concurrent update() calls for a key serialize,
      different keys never contend
    - mutate() runs with no await between read and write, so a cancelled request
      either counted fully or not at all

Design Decisions:
    - Process-local dict, not Redis: single-worker uvicorn; the Protocol lets a
      shared backend replace this class without touching the limiter
    - Lock creation via setdefault is atomic on the event loop (no await inside)
"""

import asyncio
import logging

from emoji_verdict.core.boundary_protocols import WindowMutation
from emoji_verdict.core.domain_types import RateLimitWindow

logger = logging.getLogger(__name__)


class InMemoryWindowStore:
    """Fixed-window counters keyed by client identifier."""

    def __init__(self) -> None:
        self._windows: dict[str, RateLimitWindow] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def __len__(self) -> int:
        return len(self._windows)

    async def get(self, key: str) -> RateLimitWindow | None:
        return self._windows.get(key)

    async def update(
        self, key: str, mutate: WindowMutation,
    ) -> tuple[RateLimitWindow, bool]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        async with lock:
            window, allowed = mutate(self._windows.get(key))
            self._windows[key] = window
            return window, allowed

    def prune(self, now: float) -> int:
        """Drop expired windows whose lock is idle. Returns how many were dropped."""
        expired = [
            key for key, window in self._windows.items()
            if window.reset_at <= now and not self._is_locked(key)
        ]
        for key in expired:
            del self._windows[key]
            self._locks.pop(key, None)
        if expired:
            logger.info("Pruned %d expired rate-limit windows", len(expired))
        return len(expired)

    def _is_locked(self, key: str) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()
