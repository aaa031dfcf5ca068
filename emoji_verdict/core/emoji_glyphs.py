"""Emoji Glyphs - sanitizing, emoji-only matching, and whole-glyph truncation.

Invariants:
    - sanitize_emoji is idempotent: sanitize(sanitize(s)) == sanitize(s)
    - A glyph is one extended grapheme cluster (\\X), so ZWJ families, flags,
      keycaps and skin-tone sequences count as one and are never split
    - Whitespace clusters are never glyphs: they neither count toward a cap nor
      survive at the edges of a clamped value
    - glyph_count(clamp_emoji_string(s, n)) == min(n, glyph_count(s)) for n >= 0
    - is_emoji_only requires every glyph to carry a visible pictograph, so a
      bare VS16 or combining keycap left behind by stripping is rejected

Design Decisions:
    - `regex` over stdlib `re`: stdlib has neither \\X nor the Unicode emoji
      properties (Extended_Pictographic, Emoji, Emoji_Component)
    - Keycap sequences (1️⃣, #️⃣, *️⃣) are dropped whole before the ASCII strip.
      Their bases are ASCII, so stripping first would orphan the VS16 and U+20E3
    - Emoji_Component stays in the charset so ZWJ, VS16 and tag marks inside a
      real sequence still match; the per-glyph visible check rejects them alone
"""

import regex

_KEYCAP = regex.compile(r"[0-9#*]\uFE0F?\u20E3")

# ASCII letters, digits and punctuation. Spaces are kept.
_ASCII_NOISE = regex.compile(r"[A-Za-z0-9!-/:-@\[-`{-~]+")

_EMOJI_ONLY = regex.compile(
    r"[\p{Extended_Pictographic}\p{Emoji}\p{Emoji_Component}\s]+",
)

_VISIBLE = regex.compile(
    r"[\p{Extended_Pictographic}\p{Regional_Indicator}\p{Emoji_Modifier}]",
)

_GLYPH = regex.compile(r"\X")


def sanitize_emoji(value: str) -> str:
    """Drop keycaps, strip ASCII letters/digits/punctuation, then trim."""
    return _ASCII_NOISE.sub("", _KEYCAP.sub("", value)).strip()


def is_emoji_only(value: str) -> bool:
    if not value or _EMOJI_ONLY.fullmatch(value) is None:
        return False
    return all(
        glyph.isspace() or _VISIBLE.search(glyph) is not None
        for glyph in split_glyphs(value)
    )


def split_glyphs(value: str) -> list[str]:
    return _GLYPH.findall(value)


def glyph_count(value: str) -> int:
    """Number of non-whitespace glyphs."""
    return sum(1 for glyph in split_glyphs(value) if not glyph.isspace())


def clamp_emoji_string(value: str, max_glyphs: int) -> str:
    """Keep at most max_glyphs whole glyphs, spacing between them preserved."""
    if max_glyphs <= 0:
        return ""
    if glyph_count(value) <= max_glyphs:
        return value
    kept: list[str] = []
    remaining = max_glyphs
    for glyph in split_glyphs(value):
        if remaining == 0:
            break
        kept.append(glyph)
        if not glyph.isspace():
            remaining -= 1
    return "".join(kept).strip()
