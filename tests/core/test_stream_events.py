"""Stream event tests - constructors, render order and NDJSON framing."""

import json

from emoji_verdict.core.domain_types import ShareLinkType, StreamField, ValidatedVerdict
from emoji_verdict.core.stream_events import (
    field_event, ndjson_line, share_event, verdict_field_events,
)


def test_field_event_shape():
    assert field_event(StreamField.VERDICT, "⚖️") == {
        "field": "verdict", "content": "⚖️", "replace": True,
    }


def test_indexed_field_event_key_order():
    event = field_event(StreamField.EVIDENCE, "🍍", index=0)
    assert list(event) == ["field", "index", "content", "replace"]


def test_share_event():
    assert share_event("/?case=abc", ShareLinkType.DIRECT) == {
        "field": "share", "url": "/?case=abc", "type": "direct",
    }


def test_verdict_field_events_order():
    validated = ValidatedVerdict(
        verdict="⚖️", verdict_text="vt", sentence="🍍", sentence_text="st",
        evidence=("🔥", "🧀"), evidence_text=("e0", "e1"), status_advice="a",
    )
    events = verdict_field_events(validated)
    assert [(e["field"], e.get("index")) for e in events] == [
        ("verdict", None),
        ("verdict_text", None),
        ("sentence", None),
        ("sentence_text", None),
        ("evidence", 0),
        ("evidence", 1),
        ("evidence_text", 0),
        ("evidence_text", 1),
    ]


def test_ndjson_line_is_one_object_per_line():
    line = ndjson_line({"field": "status", "content": "Traduzido ⚖️"})
    assert line.endswith("\n")
    assert line.count("\n") == 1
    assert "⚖️" in line
    assert json.loads(line) == {"field": "status", "content": "Traduzido ⚖️"}
