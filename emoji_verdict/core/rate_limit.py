"""Rate Limit Window - pure fixed-window transition and decision.

Invariants:
    - First hit (or first hit after reset_at) opens {count: 1, reset_at: now + window}
    - A window at max_requests rejects WITHOUT incrementing
    - retry_after_seconds >= 1 and remaining >= 0 always

Design Decisions:
    - Split from the store: the store owns atomicity, this module owns the rule,
      so a shared-counter backend reuses the same arithmetic
    - Fixed window accepts boundary bursts (up to 2x quota across a reset)
"""

import math

from emoji_verdict.core.domain_types import RateLimitDecision, RateLimitWindow


def register_hit(
    window: RateLimitWindow | None,
    now: float,
    window_seconds: float,
    max_requests: int,
) -> tuple[RateLimitWindow, bool]:
    """Apply one request to a window. Returns (new_window, allowed)."""
    if window is None or window.reset_at <= now:
        return RateLimitWindow(count=1, reset_at=now + window_seconds), True
    if window.count >= max_requests:
        return window, False
    return RateLimitWindow(count=window.count + 1, reset_at=window.reset_at), True


def to_decision(
    window: RateLimitWindow, allowed: bool, now: float, max_requests: int,
) -> RateLimitDecision:
    remaining = max(0, max_requests - window.count) if allowed else 0
    return RateLimitDecision(
        allowed=allowed,
        remaining=remaining,
        reset_at=window.reset_at,
        retry_after_seconds=max(1, math.ceil(window.reset_at - now)),
    )
