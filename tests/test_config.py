from __future__ import annotations

import json
from pathlib import Path

import pytest

from core.config import DEFAULT_CALL_KEYWORDS, build_engine_config

PROJECT_ROOT = Path(__file__).resolve().parents[1]


def test_defaults_for_empty_config() -> None:
    config = build_engine_config({})

    assert config.calls.keywords == DEFAULT_CALL_KEYWORDS
    assert config.calls.silence_seconds == 30.0
    assert config.calls.expiry_seconds == 60.0
    assert config.scrape.delay_seconds == 1.0
    assert not config.filter.enabled


def test_shipped_config_json_is_valid() -> None:
    raw = json.loads((PROJECT_ROOT / "config.json").read_text(encoding="utf-8"))

    config = build_engine_config(raw)

    assert "volá" in config.calls.keywords
    assert "{conversation_id}" in config.conversation_url


def test_blank_phrases_are_dropped() -> None:
    config = build_engine_config({"calls": {"keywords": ["ringing", " ", ""]}})

    assert config.calls.keywords == ("ringing",)


@pytest.mark.parametrize(
    "raw",
    [
        {"calls": {"keywords": "is calling"}},
        {"calls": {"expiry_seconds": -1}},
        {"links": {"conversation_url": "https://example.com/"}},
        {"badge": {"unread_messages_text": "unread"}},
    ],
)
def test_invalid_config_raises(raw: dict) -> None:
    with pytest.raises(ValueError):
        build_engine_config(raw)
