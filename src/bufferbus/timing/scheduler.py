"""Timer facilities used for inactivity flushes."""

from __future__ import annotations

import asyncio
import heapq
import itertools
from typing import Callable, Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Anything that can run *callback* once after *delay_ms* milliseconds."""

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> TimerHandle: ...

    def check(self) -> None:
        """Raise ``RuntimeError`` if :meth:`call_later` would fail right now."""


class LoopScheduler:
    """Schedules callbacks on an asyncio event loop.

    Args:
        loop: Loop to schedule on.  ``None`` means the loop running at the
              time of each :meth:`call_later` call.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay_ms / 1000, callback)

    def check(self) -> None:
        if self._loop is None:
            asyncio.get_running_loop()


class _ManualTimer:
    def __init__(self, due: int, seq: int, callback: Callable[[], None]) -> None:
        self.due = due
        self.seq = seq
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def __lt__(self, other: _ManualTimer) -> bool:
        return (self.due, self.seq) < (other.due, other.seq)


class ManualClock:
    """Virtual-time scheduler driven explicitly with :meth:`advance`.

    Usage::

        clock = ManualClock()
        emitter = BufferedEventEmitter(scheduler=clock)
        ...
        clock.advance(250)   # fires every timer due within the next 250 ms

    Timers due at the same instant fire in the order they were scheduled.
    """

    def __init__(self) -> None:
        self.now = 0
        self._timers: list[_ManualTimer] = []
        self._seq = itertools.count()

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> _ManualTimer:
        timer = _ManualTimer(self.now + delay_ms, next(self._seq), callback)
        heapq.heappush(self._timers, timer)
        return timer

    def check(self) -> None:
        """Virtual timers can always be scheduled."""

    def advance(self, ms: int) -> int:
        """Move the clock forward by *ms* and fire due timers.

        Returns:
            Number of callbacks that ran.
        """
        target = self.now + ms
        fired = 0
        while self._timers and self._timers[0].due <= target:
            timer = heapq.heappop(self._timers)
            if timer.cancelled:
                continue
            self.now = timer.due
            timer.callback()
            fired += 1
        self.now = target
        return fired

    def pending(self) -> int:
        return sum(1 for t in self._timers if not t.cancelled)
