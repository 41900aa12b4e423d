"""Incoming call detection.

Two states: idle, or a single active call session. The same real-world call
usually shows up on two channels (the page title flips to "Alice is calling"
and the page fires a web notification), so sessions are keyed on the
conversation id when one is known and on the normalized text otherwise.

Each channel keeps its own timer: the title channel a silence window, the
notification channel a hard expiry. The session ends when the last armed
timer fires, or on an explicit accept/dismiss.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from core.classifier import normalize_text
from core.config import CallConfig
from core.models import SENTINEL_TAGS, CallEnded, CallSession, RawSignal, ShowCallPrompt, SignalSource
from core.ports import SchedulerPort
from core.timers import TimerKind

LOGGER = logging.getLogger(__name__)

_CALL_TIMERS = (TimerKind.CALL_SILENCE, TimerKind.CALL_EXPIRY)


class CallDetector:
    """Owns the CallSession slot and its timers."""

    def __init__(
        self,
        session: CallSession,
        scheduler: SchedulerPort,
        config: CallConfig,
        on_ended: Callable[[CallEnded], None],
    ) -> None:
        self._session = session
        self._scheduler = scheduler
        self._config = config
        self._on_ended = on_ended
        self._deadlines: dict[TimerKind, float] = {}

    @property
    def has_active_call(self) -> bool:
        return self._session.is_active

    @property
    def active_conversation_id(self) -> Optional[str]:
        return self._session.active_conversation_id

    def register(self, signal: RawSignal) -> Optional[ShowCallPrompt]:
        """Record a call-positive signal.

        Returns a prompt when this starts a new session, None when the signal
        belongs to the session already being shown.
        """

        session = self._session
        key = normalize_text(signal.combined_text)
        conversation_id = signal.conversation_id
        if conversation_id in SENTINEL_TAGS:
            conversation_id = None

        if session.is_active and self._same_call(key, conversation_id):
            if conversation_id and not session.active_conversation_id:
                session.active_conversation_id = conversation_id
            self._arm(signal.source)
            LOGGER.debug("Call signal refreshed existing session")
            return None

        if session.is_active:
            LOGGER.info("Different incoming call replaces the active session")
            self._cancel_timers()

        session.active_conversation_id = conversation_id
        session.alerted_key = key
        self._arm(signal.source)
        LOGGER.info("Incoming call detected via %s", signal.source.value)
        return ShowCallPrompt(conversation_id=conversation_id)

    def _same_call(self, key: str, conversation_id: Optional[str]) -> bool:
        active_id = self._session.active_conversation_id
        if conversation_id and active_id:
            return conversation_id == active_id
        # Only one side knows the conversation; the title channel never does.
        if conversation_id or active_id:
            return True
        return key == self._session.alerted_key

    def _arm(self, source: SignalSource) -> None:
        if source is SignalSource.TITLE_TEXT:
            kind, delay = TimerKind.CALL_SILENCE, self._config.silence_seconds
        else:
            kind, delay = TimerKind.CALL_EXPIRY, self._config.expiry_seconds
        deadline = self._scheduler.now() + delay
        self._deadlines[kind] = deadline
        self._session.expires_at = max(self._deadlines.values())
        self._scheduler.schedule_once(kind, delay, lambda: self._timer_fired(kind))

    def _timer_fired(self, kind: TimerKind) -> None:
        self._deadlines.pop(kind, None)
        if self._deadlines:
            # Another channel still reports the call.
            self._session.expires_at = max(self._deadlines.values())
            return
        reason = "silence" if kind is TimerKind.CALL_SILENCE else "expired"
        LOGGER.info("Call session ended (%s)", reason)
        self._session.reset()
        self._on_ended(CallEnded(reason=reason))

    def _cancel_timers(self) -> None:
        for kind in _CALL_TIMERS:
            self._scheduler.cancel(kind)
        self._deadlines.clear()

    def end(self, reason: str) -> Optional[CallEnded]:
        """End the active session on an explicit user command."""

        if not self._session.is_active:
            return None
        self._cancel_timers()
        self._session.reset()
        LOGGER.info("Call session ended (%s)", reason)
        return CallEnded(reason=reason)
