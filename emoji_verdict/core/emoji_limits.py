"""Emoji Limits - density (0-10) to per-field glyph caps.

Invariants:
    - verdict_max in [1, 3], sentence_max in [4, 24], evidence_max in [3, 16]
    - Same density always yields the same EmojiLimits (pure)
"""

import math

from emoji_verdict.core.domain_types import EmojiLimits

DENSITY_MIN = 0.0
DENSITY_MAX = 10.0


def clamp_to_range(value: float, low: float, high: float) -> float:
    return min(max(value, low), high)


def clamp_density(density: float) -> float:
    """Clamp any non-NaN number (infinities included) into [0, 10]."""
    return clamp_to_range(float(density), DENSITY_MIN, DENSITY_MAX)


def compute_emoji_limits(density: float) -> EmojiLimits:
    """Caps for a density already clamped to [0, 10].

    Fractional densities are floored to whole glyph counts after clamping.
    """
    verdict_max = clamp_to_range(1 + (1 if density > 5 else 0), 1, 3)
    sentence_max = clamp_to_range(4 + 2 * density, 4, 24)
    evidence_max = clamp_to_range(3 + density, 3, 16)
    return EmojiLimits(
        verdict_max=math.floor(verdict_max),
        sentence_max=math.floor(sentence_max),
        evidence_max=math.floor(evidence_max),
    )
