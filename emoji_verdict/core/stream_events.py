"""Stream Events - constructors for every NDJSON event the client consumes.

Invariants:
    - Field events are whole-value replacements (replace=True), never deltas
    - Only evidence/evidence_text events carry an index
    - ndjson_line() emits exactly one JSON object followed by one newline
"""

import json

from emoji_verdict.core.domain_types import ShareLinkType, StreamField, ValidatedVerdict

TERMINAL_FIELDS = frozenset({StreamField.ERROR.value, StreamField.DONE.value})


def status_event(content: str) -> dict:
    return {"field": StreamField.STATUS.value, "content": content}


def field_event(field: StreamField, content: str, index: int | None = None) -> dict:
    event: dict = {"field": field.value}
    if index is not None:
        event["index"] = index
    event["content"] = content
    event["replace"] = True
    return event


def share_event(url: str, link_type: ShareLinkType) -> dict:
    return {"field": StreamField.SHARE.value, "url": url, "type": link_type.value}


def error_event(message: str) -> dict:
    return {"field": StreamField.ERROR.value, "message": message}


def done_event() -> dict:
    return {"field": StreamField.DONE.value}


def verdict_field_events(validated: ValidatedVerdict) -> list[dict]:
    """Field events in client render order: verdict, sentence, evidence, evidence text."""
    events = [
        field_event(StreamField.VERDICT, validated.verdict),
        field_event(StreamField.VERDICT_TEXT, validated.verdict_text),
        field_event(StreamField.SENTENCE, validated.sentence),
        field_event(StreamField.SENTENCE_TEXT, validated.sentence_text),
    ]
    events.extend(
        field_event(StreamField.EVIDENCE, item, index=i)
        for i, item in enumerate(validated.evidence)
    )
    events.extend(
        field_event(StreamField.EVIDENCE_TEXT, item, index=i)
        for i, item in enumerate(validated.evidence_text)
    )
    return events


def ndjson_line(event: dict) -> str:
    return json.dumps(event, ensure_ascii=False) + "\n"
