"""Share Payload - canonical, encodable snapshot of a validated verdict.

Invariants:
    - Payload carries the MODERATED text, never the raw submission
    - v == "1"; seed is a fresh uuid4 for cache-busting only (not a secret)
    - decode_share_payload(encode_share_payload(p)) == p for any built payload
    - Link type is "direct" iff the URL fits max_url_length

Design Decisions:
    - Wire format matches the browser client: base64(UTF-8 JSON), percent-encoded,
      carried in the `case` query parameter (the client decodeURIComponent+atob's it)
    - Compact JSON separators: every byte counts against the URL budget
"""

import base64
import binascii
import json
import math
from urllib.parse import quote, unquote, urlencode
from uuid import uuid4

from emoji_verdict.core.domain_types import ShareLinkType, ValidatedVerdict
from emoji_verdict.core.emoji_limits import clamp_density
from emoji_verdict.core.errors import SharePayloadInvalidError

PAYLOAD_VERSION = "1"
DEFAULT_MAX_URL_LENGTH = 1900
DEFAULT_SHARE_DENSITY = 5.0


def build_share_payload(
    moderated_text: str,
    density: float,
    validated: ValidatedVerdict,
    seed: str | None = None,
) -> dict:
    return {
        "v": PAYLOAD_VERSION,
        "d": density,
        "verdict": validated.verdict,
        "verdict_text": validated.verdict_text,
        "sentence": validated.sentence,
        "sentence_text": validated.sentence_text,
        "evidence": list(validated.evidence),
        "evidence_text": list(validated.evidence_text),
        "status_advice": validated.status_advice,
        "seed": seed or str(uuid4()),
        "text": moderated_text,
    }


def encode_share_payload(payload: dict) -> str:
    raw = json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
    b64 = base64.b64encode(raw.encode("utf-8")).decode("ascii")
    return quote(b64, safe="")


def build_direct_share_url(payload: dict, base_path: str = "/") -> str:
    return f"{base_path}?{urlencode({'case': encode_share_payload(payload)})}"


def classify_share_url(
    url: str, max_url_length: int = DEFAULT_MAX_URL_LENGTH,
) -> ShareLinkType:
    if len(url) <= max_url_length:
        return ShareLinkType.DIRECT
    return ShareLinkType.LONG


def decode_share_payload(encoded: str) -> dict:
    """Decode a `case` parameter back into a normalized payload.

    Accepts the value either still percent-encoded or already decoded once.
    """
    if not encoded:
        raise SharePayloadInvalidError("missing case payload")
    try:
        raw = base64.b64decode(unquote(encoded), validate=True).decode("utf-8")
        data = json.loads(raw)
    except (binascii.Error, UnicodeDecodeError, ValueError) as e:
        raise SharePayloadInvalidError(str(e)) from e
    if not isinstance(data, dict):
        raise SharePayloadInvalidError("payload is not an object")
    version = data.get("v", PAYLOAD_VERSION)
    if version != PAYLOAD_VERSION:
        raise SharePayloadInvalidError(f"unsupported version {version!r}")
    return _normalize(data)


def _normalize(data: dict) -> dict:
    density = data.get("d")
    if isinstance(density, bool) or not isinstance(density, (int, float)) \
            or math.isnan(density):
        density = DEFAULT_SHARE_DENSITY
    seed = data.get("seed")
    return {
        "v": PAYLOAD_VERSION,
        "d": clamp_density(density),
        "verdict": _str_or_empty(data.get("verdict")),
        "verdict_text": _str_or_empty(data.get("verdict_text")),
        "sentence": _str_or_empty(data.get("sentence")),
        "sentence_text": _str_or_empty(data.get("sentence_text")),
        "evidence": _str_list(data.get("evidence")),
        "evidence_text": _str_list(data.get("evidence_text")),
        "status_advice": _str_or_empty(data.get("status_advice")),
        "seed": seed if isinstance(seed, str) else None,
        "text": _str_or_empty(data.get("text")),
    }


def _str_or_empty(value) -> str:
    return value if isinstance(value, str) else ""


def _str_list(value) -> list[str]:
    if not isinstance(value, list):
        return []
    return [_str_or_empty(item) for item in value]
