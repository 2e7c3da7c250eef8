"""Deferred-event clocks that drive the pipeline runner.

The runner never sleeps or reads wall time directly.  It asks a clock for
``now()`` and registers callbacks with ``call_at()``; the clock decides when
they fire.  Two implementations:

  - VirtualClock: deterministic, advanced explicitly (tests, simulations)
  - AsyncioClock: real time on an asyncio event loop (the backend)

All times are milliseconds.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
from typing import Callable, Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Clock(Protocol):
    """Minimal deferred-event facility the runner depends on."""

    def now(self) -> float: ...

    def call_at(self, when_ms: float, callback: Callable[[], None]) -> TimerHandle: ...


# ---------------------------------------------------------------------------
# Virtual clock
# ---------------------------------------------------------------------------

class VirtualTimer:
    """Handle returned by :meth:`VirtualClock.call_at`."""

    __slots__ = ("when_ms", "callback", "cancelled")

    def __init__(self, when_ms: float, callback: Callable[[], None]) -> None:
        self.when_ms = when_ms
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class VirtualClock:
    """A clock whose time only moves when told to.

    Callbacks fire in ``(when, registration order)`` order.  Callbacks
    registered while the clock is advancing fire in the same advance if
    they fall due before the target time.
    """

    def __init__(self, start_ms: float = 0.0) -> None:
        self._now = float(start_ms)
        self._seq = itertools.count()
        self._heap: list[tuple[float, int, VirtualTimer]] = []

    def now(self) -> float:
        return self._now

    def call_at(self, when_ms: float, callback: Callable[[], None]) -> VirtualTimer:
        timer = VirtualTimer(float(when_ms), callback)
        heapq.heappush(self._heap, (timer.when_ms, next(self._seq), timer))
        return timer

    @property
    def pending(self) -> int:
        """Number of timers that are scheduled and not cancelled."""
        return sum(1 for _, _, t in self._heap if not t.cancelled)

    def advance(self, delta_ms: float) -> None:
        """Move time forward by *delta_ms*, firing everything that falls due."""
        if delta_ms < 0:
            raise ValueError("Cannot move a clock backwards.")
        self.advance_to(self._now + delta_ms)

    def advance_to(self, target_ms: float) -> None:
        """Move time forward to *target_ms*, firing everything that falls due."""
        if target_ms < self._now:
            raise ValueError("Cannot move a clock backwards.")
        while self._heap and self._heap[0][0] <= target_ms:
            when, _, timer = heapq.heappop(self._heap)
            if timer.cancelled:
                continue
            self._now = max(self._now, when)
            timer.callback()
        self._now = target_ms

    def run_until_idle(self, limit_ms: float | None = None) -> None:
        """Fire timers until none remain (or *limit_ms* is reached)."""
        while True:
            live = [entry for entry in self._heap if not entry[2].cancelled]
            if not live:
                self._heap.clear()
                return
            next_when = min(entry[0] for entry in live)
            if limit_ms is not None and next_when > limit_ms:
                self.advance_to(limit_ms)
                return
            self.advance_to(max(next_when, self._now))


# ---------------------------------------------------------------------------
# Asyncio clock
# ---------------------------------------------------------------------------

class AsyncioClock:
    """Real-time clock backed by an asyncio event loop.

    Must be used from the loop's own thread; ``loop.call_at`` is not
    thread-safe.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop or asyncio.get_running_loop()

    def now(self) -> float:
        return self._loop.time() * 1000.0

    def call_at(self, when_ms: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self._loop.call_at(when_ms / 1000.0, callback)
