from __future__ import annotations

import asyncio

import pytest

from core.timers import LoopScheduler, TimerKind, VirtualScheduler


def test_virtual_timer_fires_once_at_deadline() -> None:
    scheduler = VirtualScheduler()
    fired: list[float] = []
    scheduler.schedule_once(TimerKind.RESCRAPE, 1.0, lambda: fired.append(scheduler.now()))

    assert scheduler.advance(0.5) == 0
    assert scheduler.advance(0.5) == 1
    assert scheduler.advance(5) == 0
    assert fired == [1.0]


def test_virtual_timer_of_same_kind_replaces_previous() -> None:
    scheduler = VirtualScheduler()
    fired: list[str] = []
    scheduler.schedule_once(TimerKind.RESCRAPE, 1.0, lambda: fired.append("first"))
    scheduler.schedule_once(TimerKind.RESCRAPE, 2.0, lambda: fired.append("second"))

    scheduler.advance(3)

    assert fired == ["second"]


def test_virtual_cancel_prevents_fire() -> None:
    scheduler = VirtualScheduler()
    fired: list[str] = []
    scheduler.schedule_once(TimerKind.CALL_EXPIRY, 1.0, lambda: fired.append("expiry"))
    scheduler.schedule_once(TimerKind.CALL_SILENCE, 1.0, lambda: fired.append("silence"))

    scheduler.cancel(TimerKind.CALL_EXPIRY)
    scheduler.advance(2)

    assert fired == ["silence"]


def test_virtual_clock_cannot_go_backwards() -> None:
    scheduler = VirtualScheduler(start=10.0)

    with pytest.raises(ValueError):
        scheduler.advance_to(5.0)


def test_loop_scheduler_replaces_and_cancels() -> None:
    fired: list[str] = []

    async def _run() -> None:
        scheduler = LoopScheduler(asyncio.get_running_loop())
        scheduler.schedule_once(TimerKind.RESCRAPE, 0.01, lambda: fired.append("first"))
        scheduler.schedule_once(TimerKind.RESCRAPE, 0.02, lambda: fired.append("second"))
        scheduler.schedule_once(TimerKind.CALL_EXPIRY, 0.01, lambda: fired.append("expiry"))
        scheduler.cancel(TimerKind.CALL_EXPIRY)
        await asyncio.sleep(0.05)
        assert not scheduler.is_pending(TimerKind.RESCRAPE)

    asyncio.run(_run())

    assert fired == ["second"]
