from __future__ import annotations

import asyncio

import pytest

from bingo_game.timers import AsyncioScheduler, VirtualScheduler


def test_one_shot_fires_once_at_its_time():
    sched = VirtualScheduler()
    fired = []
    sched.call_later(2.0, lambda: fired.append(sched.now()))
    sched.advance(1.9)
    assert fired == []
    sched.advance(0.1)
    assert fired == [2.0]
    sched.advance(10)
    assert fired == [2.0]


def test_repeating_timer_and_tie_order():
    sched = VirtualScheduler()
    order = []
    sched.call_every(3.0, lambda: order.append(("a", sched.now())))
    sched.call_every(1.0, lambda: order.append(("b", sched.now())))
    sched.advance(3.0)
    assert order == [("b", 1.0), ("b", 2.0), ("a", 3.0), ("b", 3.0)]


def test_cancel_is_idempotent_and_silences_timer():
    sched = VirtualScheduler()
    fired = []
    handle = sched.call_every(1.0, lambda: fired.append(1))
    sched.advance(2.0)
    handle.cancel()
    handle.cancel()
    sched.advance(5.0)
    assert fired == [1, 1]
    assert handle.cancelled
    assert sched.pending == 0


def test_cancelling_one_timer_leaves_others():
    sched = VirtualScheduler()
    fired = []
    a = sched.call_every(1.0, lambda: fired.append("a"))
    sched.call_every(1.0, lambda: fired.append("b"))
    a.cancel()
    sched.advance(2.0)
    assert fired == ["b", "b"]


def test_callback_can_cancel_a_timer_due_at_the_same_instant():
    sched = VirtualScheduler()
    fired = []
    later = {}
    sched.call_later(1.0, lambda: later["h"].cancel())
    later["h"] = sched.call_later(1.0, lambda: fired.append("late"))
    sched.advance(1.0)
    assert fired == []


def test_invalid_delays():
    sched = VirtualScheduler()
    with pytest.raises(ValueError):
        sched.call_every(0, lambda: None)
    with pytest.raises(ValueError):
        sched.call_later(-1, lambda: None)
    with pytest.raises(ValueError):
        sched.advance(-1)


def test_run_until_idle_stops_when_nothing_is_pending():
    sched = VirtualScheduler()
    sched.call_later(5.0, lambda: None)
    assert sched.run_until_idle() == 5.0
    assert sched.next_due() is None


def test_asyncio_scheduler_fires_and_cancels():
    async def scenario():
        sched = AsyncioScheduler()
        fired = []
        ticks = sched.call_every(0.01, lambda: fired.append("tick"))
        cancelled = sched.call_later(0.01, lambda: fired.append("never"))
        cancelled.cancel()
        await asyncio.sleep(0.055)
        ticks.cancel()
        count = fired.count("tick")
        await asyncio.sleep(0.03)
        return fired, count

    fired, count = asyncio.run(scenario())
    assert "never" not in fired
    assert count >= 2
    assert fired.count("tick") == count
