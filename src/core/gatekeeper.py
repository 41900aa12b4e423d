"""Notification gatekeeping.

The gatekeeper is the single authority for whether a badge update, a system
notification, or a call prompt reaches the delivery sink. It combines badge
events, call detection and the dedup window.

Candidate notification policy, in order:
0) A "read" sentinel clears a pending badge and stops here
1) Call keywords route to the call detector instead of regular delivery,
   and a "fallback" tag loses its deep link
2) Sender block filter
3) Pending badge reconciliation
4) Duplicate suppression on title|body
"""

from __future__ import annotations

import logging
from typing import List

from core import dedup
from core.call_detector import CallDetector
from core.classifier import SignalClassifier
from core.config import EngineConfig
from core.models import (
    FALLBACK_SENTINEL,
    READ_SENTINEL,
    BadgeEvent,
    Cleared,
    CountChanged,
    Decision,
    Deliver,
    EngineState,
    RawSignal,
    RequestRescrape,
    Suppress,
    UpdateBadge,
)

LOGGER = logging.getLogger(__name__)


class NotificationGatekeeper:
    """Decides which candidate effects actually get delivered."""

    def __init__(
        self,
        state: EngineState,
        classifier: SignalClassifier,
        calls: CallDetector,
        config: EngineConfig,
    ) -> None:
        self._state = state
        self._classifier = classifier
        self._calls = calls
        self._config = config

    @property
    def filter_enabled(self) -> bool:
        return self._config.filter.enabled

    def on_candidate(self, signal: RawSignal) -> List[Decision]:
        """Run one candidate notification through the policy."""

        badge = self._state.badge
        conversation_id = signal.conversation_id
        if conversation_id == READ_SENTINEL:
            # A stale preview of a read conversation never rings.
            if badge.pending_count is not None:
                LOGGER.info("Conversation already read, dropping pending badge %s", badge.pending_count)
            badge.pending_count = None
            return [Suppress(reason="read-conversation")]

        if self._classifier.call_match(signal.combined_text):
            return self.on_call_signal(signal)

        title = (signal.title or "").strip()
        if not title and not signal.body.strip():
            return [Suppress(reason="malformed")]

        if conversation_id == FALLBACK_SENTINEL:
            conversation_id = None

        if self.filter_enabled and self._classifier.is_blocked_sender(title):
            LOGGER.info("Filtered out blocked sender")
            LOGGER.debug("Blocked sender title: %s", title)
            badge.pending_count = None
            return [Suppress(reason="blocked-sender")]

        decisions: List[Decision] = []
        if badge.pending_count is not None:
            LOGGER.info("Sender verified, applying pending badge %s", badge.pending_count)
            decisions.append(UpdateBadge(count=badge.pending_count))
            badge.pending_count = None

        key = dedup.dedup_key(title, signal.body)
        if not dedup.check_and_remember(self._state.dedup, key):
            LOGGER.info("Dedup skip for %s (same message)", signal.source.value)
            decisions.append(Suppress(reason="duplicate"))
            return decisions

        is_call = bool(
            conversation_id
            and self._calls.has_active_call
            and conversation_id == self._calls.active_conversation_id
        )
        decisions.append(
            Deliver(title=title, body=signal.body, conversation_id=conversation_id, is_call=is_call)
        )
        return decisions

    def on_call_signal(self, signal: RawSignal) -> List[Decision]:
        prompt = self._calls.register(signal)
        if prompt is None:
            return [Suppress(reason="call-already-prompted")]
        decisions: List[Decision] = [prompt]
        # Title-channel calls have no sender/body pair worth a banner.
        if self._config.calls.notify and signal.title and signal.body:
            decisions.append(
                Deliver(
                    title=signal.title,
                    body=signal.body,
                    conversation_id=prompt.conversation_id,
                    is_call=True,
                )
            )
        return decisions

    def on_badge_event(self, event: BadgeEvent) -> List[Decision]:
        badge = self._state.badge
        if isinstance(event, Cleared):
            badge.pending_count = None
            dedup.reset(self._state.dedup)
            return [UpdateBadge(count=0)]

        if not isinstance(event, CountChanged):
            raise TypeError(f"Unsupported badge event: {event!r}")

        decisions: List[Decision] = []
        if event.count == 0 or not self.filter_enabled:
            badge.pending_count = None
            decisions.append(UpdateBadge(count=event.count))
            if self._config.badge.notify_on_increase and event.count > event.previous:
                decisions.append(self._unread_notification(event.count))
        else:
            # Visible counters wait until a scraped sender passes the filter.
            LOGGER.info("Deferring badge %s until the sender is verified", event.count)
            badge.pending_count = event.count
        decisions.append(RequestRescrape())
        return decisions

    def _unread_notification(self, count: int) -> Deliver:
        badge_config = self._config.badge
        if count == 1:
            body = badge_config.new_message_text
        else:
            body = badge_config.unread_messages_text.format(count=count)
        return Deliver(title=badge_config.notification_title, body=body)
