"""Verdict Prompt - system + user messages for the generation model.

Invariants:
    - Glyph caps and density in the prompt come from the same EmojiLimits the
      validator enforces afterwards
    - Schema keys match validate_model_output exactly
"""

from emoji_verdict.core.domain_types import EmojiLimits

SYSTEM_PROMPT = (
    "You are the presiding judge of the Emoji Verdict Court. "
    "Respond only with valid JSON matching the schema and instructions."
)

# Filled with str.format; user text is a value, never part of the template
_USER_TEMPLATE = """Evaluate the following text and respond with playful emoji-only outcomes.

TEXT (max {max_chars} chars):
{text}

Rules:
- Provide a JSON object with keys: verdict (emoji string), verdict_text (text string), sentence (emoji string), sentence_text (text string), evidence (array of emoji strings), evidence_text (array of text strings), status_advice (string).
- verdict: {verdict_max} emoji max, single phrase summarizing outcome.
- verdict_text: 1 short sentence (<=120 chars) describing the meaning of the verdict in plain language.
- sentence: {sentence_max} emoji max, sequence conveying the "punishment".
- sentence_text: 1 short sentence (<=120 chars) describing the sentence in plain language.
- evidence: array of emoji strings, each {evidence_max} emoji max, target 3 entries.
- evidence_text: array of sentences (<=120 chars each) explaining the matching evidence item. Length must equal evidence array length.
- status_advice: short textual tip in <= 80 characters, ASCII only.
- Emoji strings must contain only emoji glyphs (no letters, numbers, punctuation).
- Tailor emoji density & weirdness to slider value {density} on scale 0-10.
- Keep tone whimsical but safe-for-work.
- If content is harmful/NSFW, rewrite to a safe playful warning using emoji for the verdict/sentence/evidence.
- Return strictly JSON with double quotes, no explanations."""


def build_verdict_messages(
    text: str, density: float, limits: EmojiLimits, max_chars: int = 500,
) -> list[dict]:
    content = _USER_TEMPLATE.format(
        max_chars=max_chars,
        text=text,
        verdict_max=limits.verdict_max,
        sentence_max=limits.sentence_max,
        evidence_max=limits.evidence_max,
        density=_format_density(density),
    )
    return [{"role": "user", "content": content}]


def _format_density(density: float) -> str:
    return str(int(density)) if float(density).is_integer() else f"{density:g}"
