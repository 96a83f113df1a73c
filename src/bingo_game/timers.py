"""Cancellable one-shot and repeating timers on a cooperative clock.

Two schedulers share one interface: ``VirtualScheduler`` runs on a manual
clock (tests, simulations) and ``AsyncioScheduler`` on an asyncio loop.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
from typing import Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)

Callback = Callable[[], None]


class TimerHandle:
    def __init__(self, name: str, interval: Optional[float] = None):
        self.name = name
        self.interval = interval
        self._cancelled = False
        self._on_cancel: Optional[Callback] = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def repeating(self) -> bool:
        return self.interval is not None

    def cancel(self) -> None:
        """Stop the timer. Safe to call more than once."""
        if self._cancelled:
            return
        self._cancelled = True
        if self._on_cancel is not None:
            self._on_cancel()
            self._on_cancel = None

    def __repr__(self) -> str:
        state = "cancelled" if self._cancelled else "active"
        return f"<TimerHandle {self.name} {state}>"


class Scheduler:
    def now(self) -> float:
        raise NotImplementedError

    def call_later(self, delay: float, callback: Callback, *, name: str = "timer") -> TimerHandle:
        raise NotImplementedError

    def call_every(self, interval: float, callback: Callback, *, name: str = "timer") -> TimerHandle:
        """Run ``callback`` every ``interval`` seconds, first after one interval."""
        raise NotImplementedError


def _check_delay(delay: float, *, repeating: bool) -> None:
    if delay < 0 or (repeating and delay <= 0):
        raise ValueError(f"Invalid timer delay: {delay}")


class VirtualScheduler(Scheduler):
    """Manual clock. Due callbacks run inside ``advance``; ties fire in scheduling order."""

    def __init__(self, start: float = 0.0):
        self._now = start
        self._seq = itertools.count()
        self._queue: List[Tuple[float, int, TimerHandle, Callback]] = []

    def now(self) -> float:
        return self._now

    def _push(self, when: float, handle: TimerHandle, callback: Callback) -> None:
        heapq.heappush(self._queue, (when, next(self._seq), handle, callback))

    def call_later(self, delay: float, callback: Callback, *, name: str = "timer") -> TimerHandle:
        _check_delay(delay, repeating=False)
        handle = TimerHandle(name)
        self._push(self._now + delay, handle, callback)
        return handle

    def call_every(self, interval: float, callback: Callback, *, name: str = "timer") -> TimerHandle:
        _check_delay(interval, repeating=True)
        handle = TimerHandle(name, interval)
        self._push(self._now + interval, handle, callback)
        return handle

    @property
    def pending(self) -> int:
        return sum(1 for _, _, h, _ in self._queue if not h.cancelled)

    def next_due(self) -> Optional[float]:
        live = [when for when, _, h, _ in self._queue if not h.cancelled]
        return min(live) if live else None

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing due callbacks. Returns how many fired."""
        if seconds < 0:
            raise ValueError("Cannot move the clock backwards")
        target = self._now + seconds
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            when, _, handle, callback = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self._now = when
            if handle.repeating:
                self._push(when + handle.interval, handle, callback)  # type: ignore[operator]
            callback()
            fired += 1
        self._now = target
        return fired

    def run_until_idle(self, limit: float = 3600.0) -> float:
        """Advance to each next timer until none are live or ``limit`` seconds pass."""
        start = self._now
        while True:
            due = self.next_due()
            if due is None or due - start > limit:
                break
            self.advance(due - self._now)
        return self._now - start


class AsyncioScheduler(Scheduler):
    """Real-time timers on an asyncio event loop (``loop.call_later``)."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop if loop is not None else asyncio.get_running_loop()

    def now(self) -> float:
        return self._loop.time()

    def call_later(self, delay: float, callback: Callback, *, name: str = "timer") -> TimerHandle:
        _check_delay(delay, repeating=False)
        handle = TimerHandle(name)

        def fire() -> None:
            if not handle.cancelled:
                callback()

        inner = self._loop.call_later(delay, fire)
        handle._on_cancel = inner.cancel
        return handle

    def call_every(self, interval: float, callback: Callback, *, name: str = "timer") -> TimerHandle:
        _check_delay(interval, repeating=True)
        handle = TimerHandle(name, interval)
        start = self._loop.time()
        ticks = itertools.count(1)

        def schedule_next() -> None:
            # anchor to the start time so ticks do not drift
            when = start + next(ticks) * interval
            inner = self._loop.call_at(when, fire)
            handle._on_cancel = inner.cancel

        def fire() -> None:
            if handle.cancelled:
                return
            schedule_next()
            callback()

        schedule_next()
        return handle
