"""Verdict Request Schema - body of POST /api/verdict.

Invariants:
    - text: str, 1..max_text_chars code points, at least one non-whitespace char
    - density: JSON number or numeric string, NaN rejected, clamped to [0, 10]
    - Validation messages are user-facing (surfaced as {"error": ...})
"""

import math

from pydantic import BaseModel, Field, field_validator

from emoji_verdict.config import get_settings
from emoji_verdict.core.emoji_limits import clamp_density

DENSITY_ERROR = "Density must be numeric between 0 and 10."


class VerdictRequest(BaseModel):
    text: str = Field(..., description="Case text to judge")
    density: float = Field(..., description="Emoji density slider, 0-10")

    @field_validator("text")
    @classmethod
    def text_has_content(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Provide descriptive text for a verdict.")
        max_chars = get_settings().max_text_chars
        if len(v) > max_chars:
            raise ValueError(f"Text exceeds {max_chars} character limit.")
        return v

    @field_validator("density", mode="before")
    @classmethod
    def density_is_number_like(cls, v: object) -> float:
        if isinstance(v, bool) or v is None:
            raise ValueError(DENSITY_ERROR)
        if isinstance(v, str):
            v = v.strip()
        try:
            value = float(v)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            raise ValueError(DENSITY_ERROR) from None
        if math.isnan(value):
            raise ValueError(DENSITY_ERROR)
        return clamp_density(value)
