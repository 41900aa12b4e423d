"""Core configuration dataclasses.

We keep config file loading outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

DEFAULT_CALL_KEYWORDS = (
    "is calling",
    "calling you",
    "incoming call",
    "volá",
    "příchozí hovor",
)
DEFAULT_TYPING_PHRASES = ("is typing", "typing…", "typing...", "píše")
DEFAULT_STATUS_PHRASES = ("Active now", "Aktivní")
DEFAULT_SKIP_PHRASES = ("You:", "Vy:", "Messages and calls are secured")
DEFAULT_CONVERSATION_URL = "https://www.messenger.com/t/{conversation_id}"


@dataclass(frozen=True)
class CallConfig:
    """Incoming call detection settings."""

    keywords: tuple[str, ...] = DEFAULT_CALL_KEYWORDS
    notify: bool = True
    silence_seconds: float = 30.0
    expiry_seconds: float = 60.0


@dataclass(frozen=True)
class BadgeConfig:
    """Title parsing settings for the unread badge."""

    typing_phrases: tuple[str, ...] = DEFAULT_TYPING_PHRASES
    app_title_markers: tuple[str, ...] = ("Messenger",)
    notify_on_increase: bool = False
    new_message_text: str = "New message"
    unread_messages_text: str = "{count} unread messages"
    notification_title: str = "Messenger"


@dataclass(frozen=True)
class FilterConfig:
    """Sender filter settings."""

    enabled: bool = False
    blocked_senders: tuple[str, ...] = ("Messenger",)


@dataclass(frozen=True)
class ScrapeConfig:
    """DOM scrape parsing settings."""

    status_phrases: tuple[str, ...] = DEFAULT_STATUS_PHRASES
    skip_phrases: tuple[str, ...] = DEFAULT_SKIP_PHRASES
    delay_seconds: float = 1.0


@dataclass(frozen=True)
class EngineConfig:
    calls: CallConfig = field(default_factory=CallConfig)
    badge: BadgeConfig = field(default_factory=BadgeConfig)
    filter: FilterConfig = field(default_factory=FilterConfig)
    scrape: ScrapeConfig = field(default_factory=ScrapeConfig)
    conversation_url: str = DEFAULT_CONVERSATION_URL


def _phrases(section: dict, key: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = section.get(key)
    if raw is None:
        return default
    if isinstance(raw, str) or not isinstance(raw, (list, tuple)):
        raise ValueError(f"{key} must be a list of strings")
    # Empty entries would match every text.
    return tuple(str(item) for item in raw if str(item).strip())


def _seconds(section: dict, key: str, default: float) -> float:
    value = float(section.get(key, default))
    if value < 0:
        raise ValueError(f"{key} must not be negative")
    return value


def build_engine_config(raw: Optional[dict[str, Any]]) -> EngineConfig:
    """Normalize the user-facing config dict into an EngineConfig.

    Missing sections fall back to defaults so a minimal config.json works.
    """

    raw = raw or {}
    calls = raw.get("calls", {})
    badge = raw.get("badge", {})
    sender_filter = raw.get("filter", {})
    scrape = raw.get("scrape", {})
    links = raw.get("links", {})

    conversation_url = links.get("conversation_url", DEFAULT_CONVERSATION_URL)
    if "{conversation_id}" not in conversation_url:
        raise ValueError("links.conversation_url must contain {conversation_id}")

    unread_text = badge.get("unread_messages_text", BadgeConfig.unread_messages_text)
    if "{count}" not in unread_text:
        raise ValueError("badge.unread_messages_text must contain {count}")

    return EngineConfig(
        calls=CallConfig(
            keywords=_phrases(calls, "keywords", DEFAULT_CALL_KEYWORDS),
            notify=bool(calls.get("notify", True)),
            silence_seconds=_seconds(calls, "silence_seconds", 30.0),
            expiry_seconds=_seconds(calls, "expiry_seconds", 60.0),
        ),
        badge=BadgeConfig(
            typing_phrases=_phrases(badge, "typing_phrases", DEFAULT_TYPING_PHRASES),
            app_title_markers=_phrases(badge, "app_title_markers", ("Messenger",)),
            notify_on_increase=bool(badge.get("notify_on_increase", False)),
            new_message_text=str(badge.get("new_message_text", BadgeConfig.new_message_text)),
            unread_messages_text=unread_text,
            notification_title=str(badge.get("notification_title", BadgeConfig.notification_title)),
        ),
        filter=FilterConfig(
            enabled=bool(sender_filter.get("enabled", False)),
            blocked_senders=_phrases(sender_filter, "blocked_senders", ("Messenger",)),
        ),
        scrape=ScrapeConfig(
            status_phrases=_phrases(scrape, "status_phrases", DEFAULT_STATUS_PHRASES),
            skip_phrases=_phrases(scrape, "skip_phrases", DEFAULT_SKIP_PHRASES),
            delay_seconds=_seconds(scrape, "delay_seconds", 1.0),
        ),
        conversation_url=conversation_url,
    )
