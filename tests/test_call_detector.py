from __future__ import annotations

from typing import Optional

from core.call_detector import CallDetector
from core.config import CallConfig
from core.models import CallEnded, CallSession, RawSignal, ShowCallPrompt, SignalSource
from core.timers import TimerKind, VirtualScheduler


def _detector() -> tuple[CallDetector, CallSession, VirtualScheduler, list[CallEnded]]:
    session = CallSession()
    scheduler = VirtualScheduler()
    ended: list[CallEnded] = []
    detector = CallDetector(session, scheduler, CallConfig(), ended.append)
    return detector, session, scheduler, ended


def _signal(
    source: SignalSource,
    title: str,
    body: str = "",
    conversation_id: Optional[str] = None,
) -> RawSignal:
    return RawSignal(source=source, title=title, body=body, conversation_id=conversation_id, timestamp=0.0)


def test_first_signal_prompts_and_records_session() -> None:
    detector, session, scheduler, _ = _detector()

    prompt = detector.register(_signal(SignalSource.INTERCEPTED_NOTIFICATION, "Alice is calling", conversation_id="c1"))

    assert prompt == ShowCallPrompt(conversation_id="c1")
    assert session.active_conversation_id == "c1"
    assert session.alerted_key == "alice is calling"
    assert session.expires_at == 60.0
    assert scheduler.is_pending(TimerKind.CALL_EXPIRY)


def test_identical_text_refreshes_without_prompt() -> None:
    detector, session, scheduler, ended = _detector()
    detector.register(_signal(SignalSource.TITLE_TEXT, "Alice volá"))

    scheduler.advance(20)
    assert detector.register(_signal(SignalSource.TITLE_TEXT, "Alice  VOLÁ")) is None
    assert session.expires_at == 50.0

    scheduler.advance(20)
    assert detector.has_active_call
    assert not ended


def test_notification_then_title_collapse_into_one_session() -> None:
    detector, session, _, _ = _detector()

    first = detector.register(_signal(SignalSource.INTERCEPTED_NOTIFICATION, "Alice is calling", conversation_id="c1"))
    second = detector.register(_signal(SignalSource.TITLE_TEXT, "Alice volá"))

    assert first is not None
    assert second is None
    assert session.active_conversation_id == "c1"


def test_title_then_notification_adopts_conversation_id() -> None:
    detector, session, _, _ = _detector()

    detector.register(_signal(SignalSource.TITLE_TEXT, "Alice volá"))
    second = detector.register(
        _signal(SignalSource.INTERCEPTED_NOTIFICATION, "Alice is calling", conversation_id="c1")
    )

    assert second is None
    assert session.active_conversation_id == "c1"


def test_different_conversation_prompts_again() -> None:
    detector, session, _, _ = _detector()
    detector.register(_signal(SignalSource.INTERCEPTED_NOTIFICATION, "Alice is calling", conversation_id="c1"))

    prompt = detector.register(_signal(SignalSource.INTERCEPTED_NOTIFICATION, "Bob is calling", conversation_id="c2"))

    assert prompt == ShowCallPrompt(conversation_id="c2")
    assert session.active_conversation_id == "c2"


def test_sentinel_tag_is_not_a_conversation() -> None:
    detector, session, _, _ = _detector()

    prompt = detector.register(_signal(SignalSource.SCRAPED_ROW, "Alice", "is calling you", conversation_id="fallback"))

    assert prompt == ShowCallPrompt(conversation_id=None)
    assert session.active_conversation_id is None


def test_notification_channel_expires_after_sixty_seconds() -> None:
    detector, session, scheduler, ended = _detector()
    detector.register(_signal(SignalSource.INTERCEPTED_NOTIFICATION, "Alice is calling", conversation_id="c1"))

    scheduler.advance(59)
    assert detector.has_active_call

    scheduler.advance(1)
    assert not detector.has_active_call
    assert ended == [CallEnded(reason="expired")]
    assert session.alerted_key is None


def test_title_channel_resets_after_thirty_seconds_of_silence() -> None:
    detector, _, scheduler, ended = _detector()
    detector.register(_signal(SignalSource.TITLE_TEXT, "Alice volá"))

    scheduler.advance(30)

    assert not detector.has_active_call
    assert ended == [CallEnded(reason="silence")]


def test_session_survives_while_another_channel_is_armed() -> None:
    detector, _, scheduler, ended = _detector()
    detector.register(_signal(SignalSource.TITLE_TEXT, "Alice volá"))
    scheduler.advance(10)
    detector.register(_signal(SignalSource.INTERCEPTED_NOTIFICATION, "Alice is calling", conversation_id="c1"))

    scheduler.advance(25)
    assert detector.has_active_call

    scheduler.advance(35)
    assert not detector.has_active_call
    assert ended == [CallEnded(reason="expired")]


def test_explicit_end_cancels_timers() -> None:
    detector, session, scheduler, ended = _detector()
    detector.register(_signal(SignalSource.INTERCEPTED_NOTIFICATION, "Alice is calling", conversation_id="c1"))

    assert detector.end("dismissed") == CallEnded(reason="dismissed")
    assert not scheduler.is_pending(TimerKind.CALL_EXPIRY)
    assert session == CallSession()

    scheduler.advance(120)
    assert ended == []
    assert detector.end("dismissed") is None
