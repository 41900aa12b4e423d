"""Single-shot, replaceable timers keyed by kind.

A new timer of a given kind cancels any pending timer of the same kind, so
there is never more than one live timer per kind.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
from enum import Enum
from typing import Callable, Optional

LOGGER = logging.getLogger(__name__)


class TimerKind(str, Enum):
    CALL_SILENCE = "call_silence"
    CALL_EXPIRY = "call_expiry"
    RESCRAPE = "rescrape"


class LoopScheduler:
    """Scheduler backed by an asyncio event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop
        self._handles: dict[TimerKind, asyncio.TimerHandle] = {}

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def now(self) -> float:
        return self.loop.time()

    def schedule_once(self, kind: TimerKind, delay: float, effect: Callable[[], None]) -> None:
        self.cancel(kind)

        def _fire() -> None:
            self._handles.pop(kind, None)
            effect()

        self._handles[kind] = self.loop.call_later(delay, _fire)

    def cancel(self, kind: TimerKind) -> None:
        handle = self._handles.pop(kind, None)
        if handle is not None:
            handle.cancel()

    def cancel_all(self) -> None:
        for kind in list(self._handles):
            self.cancel(kind)

    def is_pending(self, kind: TimerKind) -> bool:
        return kind in self._handles


class VirtualScheduler:
    """Deterministic scheduler with a manually advanced clock.

    Used by tests and by offline replay, where recorded timestamps drive time.
    """

    def __init__(self, start: float = 0.0) -> None:
        self._now = start
        self._queue: list[tuple[float, int, TimerKind]] = []
        self._effects: dict[TimerKind, tuple[int, Callable[[], None]]] = {}
        self._sequence = itertools.count()

    def now(self) -> float:
        return self._now

    def schedule_once(self, kind: TimerKind, delay: float, effect: Callable[[], None]) -> None:
        token = next(self._sequence)
        self._effects[kind] = (token, effect)
        heapq.heappush(self._queue, (self._now + delay, token, kind))

    def cancel(self, kind: TimerKind) -> None:
        self._effects.pop(kind, None)

    def cancel_all(self) -> None:
        self._effects.clear()

    def is_pending(self, kind: TimerKind) -> bool:
        return kind in self._effects

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing due timers in order."""

        return self.advance_to(self._now + seconds)

    def advance_to(self, moment: float) -> int:
        if moment < self._now:
            raise ValueError("Virtual clock cannot move backwards")
        fired = 0
        while self._queue and self._queue[0][0] <= moment:
            due, token, kind = heapq.heappop(self._queue)
            current = self._effects.get(kind)
            # Stale heap entries belong to cancelled or replaced timers.
            if current is None or current[0] != token:
                continue
            del self._effects[kind]
            self._now = due
            LOGGER.debug("Timer %s fired at %.3f", kind.value, due)
            current[1]()
            fired += 1
        self._now = moment
        return fired
