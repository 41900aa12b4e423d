"""Deduplication helpers (core domain)."""

from __future__ import annotations

import re

from core.models import DedupWindow


def _collapse_whitespace(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


def dedup_key(title: str, body: str) -> str:
    """Return the ``title|body`` key for one candidate notification.

    Only whitespace is normalized; casing differences are real differences.
    """

    return f"{_collapse_whitespace(title)}|{_collapse_whitespace(body)}"


def check_and_remember(window: DedupWindow, key: str) -> bool:
    """Return True if ``key`` is new, remembering it as the last delivered key."""

    if window.last_delivered_key == key:
        return False
    window.last_delivered_key = key
    return True


def reset(window: DedupWindow) -> None:
    window.last_delivered_key = None
