"""JSON-lines bridge between the engine and a desktop shell.

The shell writes one JSON object per line to our stdin, for example::

    {"event": "title", "text": "(2) Messenger"}
    {"event": "notification", "title": "Bob", "body": "hey", "tag": "123"}
    {"event": "scrape", "sender": "Bob", "body": "hey", "isUnread": true}
    {"event": "scrape", "lines": ["Bob", "Active now", "hey", "1m"]}
    {"event": "accept"}

and reads outbound actions from our stdout, one JSON object per line.
Replay logs use the same format plus an "at" field (seconds).
"""

from __future__ import annotations

import json
import logging
import threading
from typing import IO, Any, Callable, Iterator, Optional

from adapters.notification_formatting import notification_payload
from core.engine import EVENT_KINDS, EVENT_TITLE, InboundEvent

LOGGER = logging.getLogger(__name__)


def event_from_json(data: dict[str, Any]) -> InboundEvent:
    """Map a decoded JSON object onto an InboundEvent."""

    kind = data.get("event")
    if not isinstance(kind, str) or kind not in EVENT_KINDS:
        raise ValueError(f"Unknown event kind: {kind!r}")
    if kind == EVENT_TITLE:
        return InboundEvent(kind, data.get("text"))
    payload = {key: value for key, value in data.items() if key not in {"event", "at"}}
    return InboundEvent(kind, payload)


def iter_events(stream: IO[str]) -> Iterator[tuple[Optional[float], InboundEvent]]:
    """Yield (at, event) pairs, skipping blank lines and comments."""

    for line_number, line in enumerate(stream, start=1):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        try:
            data = json.loads(line)
            if not isinstance(data, dict):
                raise ValueError("expected a JSON object")
            event = event_from_json(data)
            raw_at = data.get("at")
            at = float(raw_at) if raw_at is not None else None
        except (ValueError, TypeError) as exc:
            LOGGER.warning("Skipping line %s: %s", line_number, exc)
            continue
        yield at, event


class JsonLinesWriter:
    """Thread-safe writer for outbound JSON lines."""

    def __init__(self, stream: IO[str]) -> None:
        self._stream = stream
        self._lock = threading.Lock()

    def write(self, payload: dict[str, Any]) -> None:
        line = json.dumps(payload, ensure_ascii=False)
        with self._lock:
            self._stream.write(line + "\n")
            self._stream.flush()


class JsonLinesSink:
    """Delivery sink and rescrape port that emit JSON actions."""

    def __init__(self, writer: JsonLinesWriter, url_template: str) -> None:
        self._writer = writer
        self._url_template = url_template

    def deliver_notification(self, title: str, body: str, conversation_id: Optional[str], is_call: bool) -> None:
        self._writer.write(notification_payload(title, body, conversation_id, is_call, self._url_template))

    def update_badge_count(self, count: int) -> None:
        self._writer.write({"action": "updateBadgeCount", "count": count})

    def prompt_incoming_call(self, conversation_id: Optional[str]) -> None:
        self._writer.write({"action": "promptIncomingCall", "conversationId": conversation_id})

    def clear_call_prompt(self, reason: str) -> None:
        self._writer.write({"action": "clearCallPrompt", "reason": reason})

    def request_rescrape(self) -> None:
        self._writer.write({"action": "requestRescrape"})


def start_reader(stream: IO[str], submit: Callable[[InboundEvent], None], on_eof: Callable[[], None]) -> threading.Thread:
    """Read events on a daemon thread and hand them to ``submit``."""

    def _read() -> None:
        try:
            for _, event in iter_events(stream):
                submit(event)
        finally:
            on_eof()

    thread = threading.Thread(target=_read, name="tidings-stdin", daemon=True)
    thread.start()
    return thread
