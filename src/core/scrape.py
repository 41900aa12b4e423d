"""Parsing helpers for DOM-scraped conversation rows.

The page markup is not under our control, so everything here is best-effort:
rows that cannot be understood raise UnrecognizedPageStructure and are dropped
by the engine rather than guessed at.
"""

from __future__ import annotations

import re
from typing import Iterable, Optional

from core.config import ScrapeConfig
from core.errors import UnrecognizedPageStructure
from core.models import FALLBACK_SENTINEL, READ_SENTINEL, ScrapedRow

# Relative timestamps such as "5m", "2 h", "· 3d", "1w".
_RELATIVE_TIME = re.compile(r"(?:^|\s)·?\s*\d+\s?(?:s|m|min|h|d|w|y)$", re.IGNORECASE)
_SEPARATOR = re.compile(r"\s*·\s*$")


def _strip_phrases(text: str, phrases: Iterable[str]) -> str:
    for phrase in phrases:
        if not phrase:
            continue
        text = re.sub(rf"(?<!\w){re.escape(phrase)}(?!\w)", "", text, flags=re.IGNORECASE)
    return text


def clean_body(body: str, config: ScrapeConfig) -> str:
    """Remove status chatter and relative timestamps from a row body."""

    cleaned = _strip_phrases(body, config.status_phrases)
    cleaned = _RELATIVE_TIME.sub("", cleaned)
    cleaned = _SEPARATOR.sub("", cleaned)
    return re.sub(r"\s+", " ", cleaned).strip(" ·")


def _is_status_line(line: str, config: ScrapeConfig) -> bool:
    stripped = line.strip()
    if not stripped:
        return True
    if _RELATIVE_TIME.fullmatch(stripped):
        return True
    lowered = stripped.lower()
    return any(lowered == phrase.lower() for phrase in config.status_phrases)


def is_skipped(body: str, config: ScrapeConfig) -> bool:
    lowered = body.strip().lower()
    return any(lowered.startswith(phrase.lower()) for phrase in config.skip_phrases)


def clean_scraped_row(row: ScrapedRow, config: ScrapeConfig) -> ScrapedRow:
    """Return a cleaned copy of ``row``.

    Raises UnrecognizedPageStructure when nothing usable is left.
    """

    sender = row.sender.strip()
    if not sender:
        raise UnrecognizedPageStructure("Scraped row has no sender")
    if is_skipped(row.body, config):
        raise UnrecognizedPageStructure(f"Scraped row body is a skip phrase for {sender}")
    body = clean_body(row.body, config)
    if not body:
        raise UnrecognizedPageStructure(f"Scraped row for {sender} has no message text")
    return ScrapedRow(
        sender=sender,
        body=body,
        conversation_id=row.conversation_id,
        is_unread=row.is_unread,
    )


def parse_row_lines(
    lines: Iterable[str],
    config: ScrapeConfig,
    conversation_id: Optional[str] = None,
    is_unread: bool = True,
) -> ScrapedRow:
    """Build a row from the visible text lines of one conversation cell.

    The first non-status line is the sender, the next non-status line the
    message preview.
    """

    meaningful = [line.strip() for line in lines if not _is_status_line(line, config)]
    if len(meaningful) < 2:
        raise UnrecognizedPageStructure("Conversation cell needs a sender and a preview line")
    return clean_scraped_row(
        ScrapedRow(
            sender=meaningful[0],
            body=meaningful[1],
            conversation_id=conversation_id,
            is_unread=is_unread,
        ),
        config,
    )


def effective_tag(row: ScrapedRow) -> str:
    """Map a scraped row onto a conversation tag or an internal sentinel."""

    if not row.is_unread:
        return READ_SENTINEL
    return row.conversation_id or FALLBACK_SENTINEL
