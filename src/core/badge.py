"""Unread badge extraction from page titles.

The page reports unread conversations as "(5) Messenger". Between counts it
may show typing indicators ("Alice is typing…") which must not clear the
badge.
"""

from __future__ import annotations

import logging
from typing import Optional

from core.classifier import SignalClassifier, extract_count
from core.errors import MalformedSignal
from core.models import BadgeEvent, BadgeState, Cleared, CountChanged

LOGGER = logging.getLogger(__name__)


class BadgeExtractor:
    """Turns a stream of titles into countChanged / cleared events."""

    def __init__(self, state: BadgeState, classifier: SignalClassifier) -> None:
        self._state = state
        self._classifier = classifier

    def observe(self, title: Optional[str]) -> Optional[BadgeEvent]:
        """Return the badge event implied by ``title``, if any.

        Raises MalformedSignal for titles that are neither counts, typing
        indicators, nor the app's own neutral title.
        """

        state = self._state
        if title is None:
            state.last_raw_count = None
            state.last_unread_count = 0
            return Cleared()

        raw_count = extract_count(title)
        if raw_count is not None:
            # Same number with different surrounding text is just noise.
            if raw_count == state.last_raw_count:
                return None
            previous = state.last_unread_count
            state.last_raw_count = raw_count
            state.last_unread_count = int(raw_count)
            return CountChanged(state.last_unread_count, previous)

        if self._classifier.is_typing(title):
            LOGGER.debug("Ignoring typing indicator title")
            return None

        if not self._classifier.is_app_title(title):
            raise MalformedSignal("Title is neither a count, a typing indicator, nor a neutral title")

        if state.last_raw_count is None:
            return None
        state.last_raw_count = None
        state.last_unread_count = 0
        return Cleared()
