from __future__ import annotations

from core.dedup import check_and_remember, dedup_key, reset
from core.links import conversation_url
from core.models import DedupWindow

TEMPLATE = "https://www.messenger.com/t/{conversation_id}"


def test_conversation_url_skips_sentinels() -> None:
    assert conversation_url(TEMPLATE, "123") == "https://www.messenger.com/t/123"
    assert conversation_url(TEMPLATE, "fallback") is None
    assert conversation_url(TEMPLATE, "read") is None
    assert conversation_url(TEMPLATE, None) is None


def test_conversation_url_quotes_ids() -> None:
    assert conversation_url(TEMPLATE, "a/b") == "https://www.messenger.com/t/a%2Fb"


def test_dedup_key_collapses_whitespace_only() -> None:
    assert dedup_key("Bob ", "hey\n there") == "Bob|hey there"
    assert dedup_key("Bob", "Hey") != dedup_key("Bob", "hey")


def test_dedup_window_is_single_slot() -> None:
    window = DedupWindow()

    assert check_and_remember(window, "Bob|hey")
    assert not check_and_remember(window, "Bob|hey")
    assert check_and_remember(window, "Eve|yo")
    # Only the latest key is remembered.
    assert check_and_remember(window, "Bob|hey")

    reset(window)
    assert window.last_delivered_key is None
