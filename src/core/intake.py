"""Signal intake: turns raw channel payloads into RawSignal records.

Intake is a pure adapter. It never filters or classifies; it only fills in
defaults and stamps the arrival time.
"""

from __future__ import annotations

from typing import Any, Callable, Mapping, Optional

from core.errors import MalformedSignal
from core.models import RawSignal, ScrapedRow, SignalSource


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


class SignalIntake:
    """Normalizes the three input channels into RawSignal."""

    def __init__(self, clock: Callable[[], float]) -> None:
        self._clock = clock

    def title_changed(self, text: Optional[str]) -> RawSignal:
        # None is meaningful here: the page dropped its title.
        return RawSignal(
            source=SignalSource.TITLE_TEXT,
            title=None if text is None else str(text),
            body="",
            conversation_id=None,
            timestamp=self._clock(),
        )

    def intercepted_notification(self, payload: Mapping[str, Any]) -> RawSignal:
        title = _optional_text(payload.get("title"))
        if title is None:
            raise MalformedSignal("Intercepted notification without a title")
        return RawSignal(
            source=SignalSource.INTERCEPTED_NOTIFICATION,
            title=title,
            body=_text(payload.get("body")),
            conversation_id=_optional_text(payload.get("tag")),
            timestamp=self._clock(),
        )

    def scraped_row(self, row: ScrapedRow) -> RawSignal:
        if not row.sender.strip():
            raise MalformedSignal("Scraped row without a sender")
        return RawSignal(
            source=SignalSource.SCRAPED_ROW,
            title=row.sender.strip(),
            body=row.body,
            conversation_id=_optional_text(row.conversation_id),
            timestamp=self._clock(),
            is_unread=row.is_unread,
        )


def scraped_row_from_payload(payload: Mapping[str, Any]) -> ScrapedRow:
    """Build a ScrapedRow from the page's JSON message."""

    return ScrapedRow(
        sender=_text(payload.get("sender")),
        body=_text(payload.get("body")),
        conversation_id=_optional_text(payload.get("conversationId", payload.get("conversation_id"))),
        is_unread=bool(payload.get("isUnread", payload.get("is_unread", True))),
    )
