"""Ports (interfaces) used by the core engine.

Ports define the minimal contracts for delivery, page and timer adapters so
that the core can be reused with different desktop shells.
"""

from __future__ import annotations

from typing import Callable, Optional, Protocol

from core.timers import TimerKind


class DeliverySinkPort(Protocol):
    """Fire-and-forget effects performed by the UI layer."""

    def deliver_notification(self, title: str, body: str, conversation_id: Optional[str], is_call: bool) -> None:
        ...

    def update_badge_count(self, count: int) -> None:
        ...

    def prompt_incoming_call(self, conversation_id: Optional[str]) -> None:
        ...

    def clear_call_prompt(self, reason: str) -> None:
        ...


class RescrapePort(Protocol):
    """Asks the page collaborator to re-run its DOM extraction."""

    def request_rescrape(self) -> None:
        ...


class SchedulerPort(Protocol):
    """Clock plus cancellable single-shot timers keyed by kind."""

    def now(self) -> float:
        ...

    def schedule_once(self, kind: TimerKind, delay: float, effect: Callable[[], None]) -> None:
        ...

    def cancel(self, kind: TimerKind) -> None:
        ...

    def cancel_all(self) -> None:
        ...
