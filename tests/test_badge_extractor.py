from __future__ import annotations

import pytest

from core.badge import BadgeExtractor
from core.classifier import build_classifier
from core.config import BadgeConfig, EngineConfig
from core.errors import MalformedSignal
from core.models import BadgeState, Cleared, CountChanged


def _extractor(**badge_overrides) -> tuple[BadgeExtractor, BadgeState]:
    config = EngineConfig(badge=BadgeConfig(**badge_overrides))
    state = BadgeState()
    return BadgeExtractor(state, build_classifier(config)), state


def test_count_emitted_once_for_repeated_title() -> None:
    extractor, state = _extractor()

    assert extractor.observe("(3) Messenger") == CountChanged(3, 0)
    assert extractor.observe("(3) Messenger") is None
    assert state.last_raw_count == "3"
    assert state.last_unread_count == 3


def test_same_number_with_different_text_is_ignored() -> None:
    extractor, _ = _extractor()

    extractor.observe("(2) Messenger")
    assert extractor.observe("(2) Bob sent a photo | Messenger") is None


def test_count_change_reports_previous_value() -> None:
    extractor, _ = _extractor()

    extractor.observe("(1) Messenger")
    assert extractor.observe("(4) Messenger") == CountChanged(4, 1)


def test_absent_title_clears_and_resets_raw_count() -> None:
    extractor, state = _extractor()
    extractor.observe("(5) Messenger")

    assert extractor.observe(None) == Cleared()
    assert state.last_raw_count is None
    # The same number after a clear counts as a change again.
    assert extractor.observe("(5) Messenger") == CountChanged(5, 0)


def test_typing_indicator_does_not_clear_badge() -> None:
    extractor, state = _extractor()
    extractor.observe("(1) Messenger")

    assert extractor.observe("Alice píše…") is None
    assert extractor.observe("Bob is typing") is None
    assert state.last_raw_count == "1"


def test_neutral_title_clears_only_after_a_count() -> None:
    extractor, _ = _extractor()

    assert extractor.observe("Messenger") is None
    extractor.observe("(2) Messenger")
    assert extractor.observe("Messenger") == Cleared()
    assert extractor.observe("Messenger") is None


def test_unknown_title_is_malformed_when_markers_configured() -> None:
    extractor, state = _extractor()
    extractor.observe("(2) Messenger")

    with pytest.raises(MalformedSignal):
        extractor.observe("Loading…")
    assert state.last_raw_count == "2"


def test_any_title_is_neutral_without_markers() -> None:
    extractor, _ = _extractor(app_title_markers=())
    extractor.observe("(2) Chat")

    assert extractor.observe("Chat") == Cleared()


def test_zero_count_is_a_count_change() -> None:
    extractor, _ = _extractor()
    extractor.observe("(2) Messenger")

    assert extractor.observe("(0) Messenger") == CountChanged(0, 2)
