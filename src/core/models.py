"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any page- or UI-specific types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

# Internal conversation tags that never map to a real conversation.
READ_SENTINEL = "read"
FALLBACK_SENTINEL = "fallback"
SENTINEL_TAGS = frozenset({READ_SENTINEL, FALLBACK_SENTINEL})


class SignalSource(str, Enum):
    """Channel a raw signal arrived through."""

    TITLE_TEXT = "title"
    INTERCEPTED_NOTIFICATION = "notification"
    SCRAPED_ROW = "scrape"


class CallCommand(str, Enum):
    """Explicit user commands coming from the UI layer."""

    ACCEPT = "accept"
    DISMISS = "dismiss"


@dataclass(frozen=True)
class RawSignal:
    """Normalized signal produced by intake and consumed exactly once."""

    source: SignalSource
    title: Optional[str]
    body: str
    conversation_id: Optional[str]
    timestamp: float
    is_unread: bool = True

    @property
    def combined_text(self) -> str:
        return " ".join(part for part in (self.title, self.body) if part)


@dataclass(frozen=True)
class ScrapedRow:
    """Best-effort conversation row extracted from the page DOM."""

    sender: str
    body: str
    conversation_id: Optional[str]
    is_unread: bool


@dataclass(frozen=True)
class CountChanged:
    count: int
    previous: int = 0


@dataclass(frozen=True)
class Cleared:
    pass


BadgeEvent = Union[CountChanged, Cleared]


@dataclass(frozen=True)
class Deliver:
    title: str
    body: str
    conversation_id: Optional[str] = None
    is_call: bool = False


@dataclass(frozen=True)
class Suppress:
    reason: str


@dataclass(frozen=True)
class ShowCallPrompt:
    conversation_id: Optional[str] = None


@dataclass(frozen=True)
class UpdateBadge:
    count: int


@dataclass(frozen=True)
class RequestRescrape:
    pass


@dataclass(frozen=True)
class CallEnded:
    reason: str


Decision = Union[Deliver, Suppress, ShowCallPrompt, UpdateBadge, RequestRescrape, CallEnded]


@dataclass
class BadgeState:
    """Unread badge bookkeeping.

    ``last_raw_count`` keeps the numeric substring as text so "0" and "absent"
    stay distinguishable.
    """

    last_raw_count: Optional[str] = None
    last_unread_count: int = 0
    pending_count: Optional[int] = None


@dataclass
class CallSession:
    """At most one in-progress or recently detected incoming call."""

    active_conversation_id: Optional[str] = None
    alerted_key: Optional[str] = None
    expires_at: Optional[float] = None

    @property
    def is_active(self) -> bool:
        return self.alerted_key is not None

    def reset(self) -> None:
        self.active_conversation_id = None
        self.alerted_key = None
        self.expires_at = None


@dataclass
class DedupWindow:
    """Single-slot memory of the most recently delivered message."""

    last_delivered_key: Optional[str] = None


@dataclass
class EngineState:
    """The one mutable state object owned by a signal engine."""

    badge: BadgeState = field(default_factory=BadgeState)
    call: CallSession = field(default_factory=CallSession)
    dedup: DedupWindow = field(default_factory=DedupWindow)

    @property
    def has_active_call(self) -> bool:
        return self.call.is_active
