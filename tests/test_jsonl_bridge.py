from __future__ import annotations

import io
import json

import pytest

from adapters.jsonl_bridge import JsonLinesSink, JsonLinesWriter, event_from_json, iter_events
from core.engine import InboundEvent


def test_event_from_json_title_and_notification() -> None:
    assert event_from_json({"event": "title", "text": None}) == InboundEvent("title", None)

    event = event_from_json({"event": "notification", "title": "Bob", "body": "hey", "at": 3})
    assert event == InboundEvent("notification", {"title": "Bob", "body": "hey"})


def test_event_from_json_rejects_unknown_kind() -> None:
    with pytest.raises(ValueError):
        event_from_json({"event": "download"})


def test_iter_events_skips_comments_and_bad_lines() -> None:
    stream = io.StringIO(
        "# recorded session\n"
        '{"event": "title", "text": "(1) Messenger", "at": 0.5}\n'
        "not json\n"
        "\n"
        '{"event": "title", "text": "(2) Messenger", "at": "soon"}\n'
        '{"event": ["title"]}\n'
        '{"event": "accept"}\n'
    )

    events = list(iter_events(stream))

    assert events == [
        (0.5, InboundEvent("title", "(1) Messenger")),
        (None, InboundEvent("accept", {})),
    ]


def test_sink_writes_actions_as_json_lines() -> None:
    stream = io.StringIO()
    sink = JsonLinesSink(JsonLinesWriter(stream), "https://www.messenger.com/t/{conversation_id}")

    sink.deliver_notification("Bob", "hey", "42", False)
    sink.deliver_notification("Bob", "hey", "fallback", False)
    sink.update_badge_count(2)
    sink.request_rescrape()

    lines = [json.loads(line) for line in stream.getvalue().splitlines()]
    assert lines[0]["url"] == "https://www.messenger.com/t/42"
    assert lines[1]["url"] is None
    assert lines[2] == {"action": "updateBadgeCount", "count": 2}
    assert lines[3] == {"action": "requestRescrape"}
