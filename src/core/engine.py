"""Core signal engine.

This module is integration-agnostic. It only relies on ports for delivery,
page re-scrapes and timers, enabling different desktop shells without changes
here.

Processing order for one inbound event:
1) Intake builds a RawSignal (malformed payloads stop here)
2) Title signals go to the call detector or the badge extractor
3) Notification and scrape candidates go to the gatekeeper
4) Resulting decisions are applied to the delivery sink

All state mutation happens inside ``dispatch``; ``SignalActor`` serializes
events from several producers onto one asyncio loop.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from collections import Counter
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Union

from core.badge import BadgeExtractor
from core.call_detector import CallDetector
from core.classifier import build_classifier, extract_count
from core.config import EngineConfig
from core.errors import SignalError, UnrecognizedPageStructure
from core.gatekeeper import NotificationGatekeeper
from core.intake import SignalIntake, scraped_row_from_payload
from core.links import conversation_url
from core.models import (
    READ_SENTINEL,
    CallCommand,
    CallEnded,
    Decision,
    Deliver,
    EngineState,
    RawSignal,
    RequestRescrape,
    ScrapedRow,
    ShowCallPrompt,
    SignalSource,
    Suppress,
    UpdateBadge,
)
from core.ports import DeliverySinkPort, RescrapePort, SchedulerPort
from core.scrape import clean_scraped_row, effective_tag, parse_row_lines
from core.timers import TimerKind

LOGGER = logging.getLogger(__name__)

EVENT_TITLE = "title"
EVENT_NOTIFICATION = "notification"
EVENT_SCRAPE = "scrape"
EVENT_ACCEPT = CallCommand.ACCEPT.value
EVENT_DISMISS = CallCommand.DISMISS.value
EVENT_KINDS = frozenset({EVENT_TITLE, EVENT_NOTIFICATION, EVENT_SCRAPE, EVENT_ACCEPT, EVENT_DISMISS})


@dataclass(frozen=True)
class InboundEvent:
    """One unprocessed event as handed over by a producer."""

    kind: str
    payload: Any = None


class SignalEngine:
    """Owns the engine state and turns inbound events into sink effects."""

    def __init__(
        self,
        config: EngineConfig,
        sink: DeliverySinkPort,
        rescraper: RescrapePort,
        scheduler: SchedulerPort,
        state: Optional[EngineState] = None,
    ) -> None:
        self.state = state or EngineState()
        self.stats: Counter[str] = Counter()
        self._config = config
        self._sink = sink
        self._rescraper = rescraper
        self._scheduler = scheduler
        self._classifier = build_classifier(config)
        self._intake = SignalIntake(scheduler.now)
        self._calls = CallDetector(self.state.call, scheduler, config.calls, self._call_ended)
        self._badge = BadgeExtractor(self.state.badge, self._classifier)
        self._gatekeeper = NotificationGatekeeper(self.state, self._classifier, self._calls, config)

    @property
    def has_active_call(self) -> bool:
        return self._calls.has_active_call

    # Inbound interface

    def on_title_changed(self, text: Optional[str]) -> List[Decision]:
        return self._guarded(lambda: self.handle(self._intake.title_changed(text)))

    def on_intercepted_notification(self, payload: Mapping[str, Any]) -> List[Decision]:
        return self._guarded(lambda: self.handle(self._intake.intercepted_notification(payload)))

    def on_scraped_row(self, row: Union[ScrapedRow, Mapping[str, Any]]) -> List[Decision]:
        return self._guarded(lambda: self.handle(self._intake.scraped_row(self._as_row(row))))

    def _as_row(self, row: Union[ScrapedRow, Mapping[str, Any]]) -> ScrapedRow:
        if isinstance(row, ScrapedRow):
            return row
        lines = row.get("lines")
        if lines is None:
            return scraped_row_from_payload(row)
        if isinstance(lines, str) or not isinstance(lines, (list, tuple)):
            raise UnrecognizedPageStructure(f"cell lines must be a list, got {type(lines).__name__}")
        # Raw cell text: let the scrape parser find sender and preview.
        conversation_id = row.get("conversationId", row.get("conversation_id"))
        return parse_row_lines(
            [line for line in lines if isinstance(line, str)],
            self._config.scrape,
            conversation_id=None if conversation_id is None else str(conversation_id),
            is_unread=bool(row.get("isUnread", row.get("is_unread", True))),
        )

    def accept_call(self) -> Optional[str]:
        """End the call session as accepted and return its conversation URL."""

        url = conversation_url(self._config.conversation_url, self._calls.active_conversation_id)
        ended = self._calls.end(CallCommand.ACCEPT.value)
        if ended is not None:
            self._apply([ended])
        return url

    def dismiss_call(self) -> None:
        ended = self._calls.end(CallCommand.DISMISS.value)
        if ended is not None:
            self._apply([ended])

    def dispatch(self, event: InboundEvent) -> None:
        """Route a queued inbound event to the matching entry point."""

        if event.kind == EVENT_TITLE:
            self.on_title_changed(event.payload)
        elif event.kind == EVENT_NOTIFICATION:
            self.on_intercepted_notification(event.payload or {})
        elif event.kind == EVENT_SCRAPE:
            self.on_scraped_row(event.payload or {})
        elif event.kind == EVENT_ACCEPT:
            self.accept_call()
        elif event.kind == EVENT_DISMISS:
            self.dismiss_call()
        else:
            LOGGER.warning("Unknown inbound event kind %r", event.kind)

    # Processing

    def handle(self, signal: RawSignal) -> List[Decision]:
        """Process one normalized signal and apply the resulting decisions."""

        if signal.source is SignalSource.TITLE_TEXT:
            decisions = self._handle_title(signal)
        elif signal.source is SignalSource.SCRAPED_ROW:
            decisions = self._gatekeeper.on_candidate(self._scraped_candidate(signal))
        else:
            decisions = self._gatekeeper.on_candidate(signal)
        self._apply(decisions)
        return decisions

    def _handle_title(self, signal: RawSignal) -> List[Decision]:
        title = signal.title
        decisions: List[Decision] = []
        if title is not None and self._classifier.call_match(title):
            decisions.extend(self._gatekeeper.on_call_signal(signal))
            # A ringing title is not a neutral title; only a count may change the badge.
            if extract_count(title) is None:
                return decisions

        event = self._badge.observe(title)
        if event is not None:
            decisions.extend(self._gatekeeper.on_badge_event(event))
        return decisions

    def _scraped_candidate(self, signal: RawSignal) -> RawSignal:
        if not signal.is_unread:
            # The top conversation is already read; its text does not matter.
            return dataclasses.replace(signal, conversation_id=READ_SENTINEL)
        row = clean_scraped_row(
            ScrapedRow(
                sender=signal.title or "",
                body=signal.body,
                conversation_id=signal.conversation_id,
                is_unread=signal.is_unread,
            ),
            self._config.scrape,
        )
        return dataclasses.replace(signal, body=row.body, conversation_id=effective_tag(row))

    def _guarded(self, step) -> List[Decision]:
        try:
            return step()
        except SignalError as exc:
            # Unrecognized input degrades to "no action".
            LOGGER.debug("Dropped signal: %s", exc)
            self.stats["dropped"] += 1
            return []

    def _call_ended(self, ended: CallEnded) -> None:
        self._apply([ended])

    def _apply(self, decisions: Iterable[Decision]) -> None:
        for decision in decisions:
            self.stats[type(decision).__name__] += 1
            if isinstance(decision, Deliver):
                self._sink.deliver_notification(
                    decision.title, decision.body, decision.conversation_id, decision.is_call
                )
            elif isinstance(decision, UpdateBadge):
                self._sink.update_badge_count(decision.count)
            elif isinstance(decision, ShowCallPrompt):
                self._sink.prompt_incoming_call(decision.conversation_id)
            elif isinstance(decision, CallEnded):
                self._sink.clear_call_prompt(decision.reason)
            elif isinstance(decision, RequestRescrape):
                self._scheduler.schedule_once(
                    TimerKind.RESCRAPE,
                    self._config.scrape.delay_seconds,
                    self._rescraper.request_rescrape,
                )
            elif isinstance(decision, Suppress):
                LOGGER.debug("Suppressed: %s", decision.reason)

    def close(self) -> None:
        self._scheduler.cancel_all()


_STOP = object()


class SignalActor:
    """Serializes inbound events from any thread onto one asyncio loop."""

    def __init__(self, engine: SignalEngine, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._engine = engine
        self._queue: asyncio.Queue = asyncio.Queue()
        self._loop = loop

    def submit(self, event: InboundEvent) -> None:
        """Enqueue from the loop's own thread."""

        self._queue.put_nowait(event)

    def submit_threadsafe(self, event: InboundEvent) -> None:
        """Enqueue from a producer thread."""

        if self._loop is None:
            raise RuntimeError("SignalActor is not running")
        self._loop.call_soon_threadsafe(self._queue.put_nowait, event)

    def stop(self) -> None:
        if self._loop is None:
            self._queue.put_nowait(_STOP)
        else:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, _STOP)

    async def run(self) -> None:
        self._loop = asyncio.get_running_loop()
        while True:
            event = await self._queue.get()
            try:
                if event is _STOP:
                    break
                self._engine.dispatch(event)
            except Exception:
                LOGGER.exception("Error while processing %s event", getattr(event, "kind", "?"))
            finally:
                self._queue.task_done()
        self._engine.close()
