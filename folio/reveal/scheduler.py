"""Periodic timers for reveal channels.

Each reveal channel owns exactly one periodic timer. The engine only talks to
the `Scheduler` protocol below, so tests drive it with `VirtualClock` and the
CLI/server drive it with `AsyncioScheduler` on a running event loop.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
from typing import Callable, List, Optional, Protocol, Tuple

TickCallback = Callable[[], None]


class TimerHandle(Protocol):
    def cancel(self) -> None: ...

    @property
    def cancelled(self) -> bool: ...


class Scheduler(Protocol):
    def call_every(
        self, interval_ms: float, callback: TickCallback, *, immediate: bool = True
    ) -> TimerHandle:
        """Run `callback` every `interval_ms`; first run now when `immediate`."""
        ...


class _VirtualTimer:
    def __init__(self, clock: "VirtualClock", interval_ms: float, callback: TickCallback):
        self._clock = clock
        self.interval_ms = interval_ms
        self.callback = callback
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class VirtualClock:
    """
    A manually advanced clock.

    Nothing happens until `advance` is called; due timers then fire in time
    order (ties broken by scheduling order), each seeing `now` set to its own
    due time.
    """

    def __init__(self) -> None:
        self.now: float = 0.0
        self._queue: List[Tuple[float, int, _VirtualTimer]] = []
        self._counter = itertools.count()

    def call_every(
        self, interval_ms: float, callback: TickCallback, *, immediate: bool = True
    ) -> _VirtualTimer:
        timer = _VirtualTimer(self, interval_ms, callback)
        if immediate:
            callback()
            if timer.cancelled:
                return timer
        self._push(self.now + interval_ms, timer)
        return timer

    def advance(self, ms: float) -> None:
        target = self.now + ms
        while self._queue and self._queue[0][0] <= target:
            due, _, timer = heapq.heappop(self._queue)
            if timer.cancelled:
                continue
            self.now = due
            timer.callback()
            if not timer.cancelled:
                self._push(due + timer.interval_ms, timer)
        self.now = target

    @property
    def pending(self) -> int:
        return sum(1 for _, _, timer in self._queue if not timer.cancelled)

    def _push(self, due: float, timer: _VirtualTimer) -> None:
        heapq.heappush(self._queue, (due, next(self._counter), timer))


class _LoopTimer:
    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        interval_ms: float,
        callback: TickCallback,
    ):
        self._loop = loop
        self._interval_s = interval_ms / 1000.0
        self._callback = callback
        self._handle: Optional[asyncio.TimerHandle] = None
        self._cancelled = False
        self._next_due = loop.time()

    def start(self, immediate: bool) -> None:
        if immediate:
            self._run()
        else:
            self._schedule_next()

    def _run(self) -> None:
        if self._cancelled:
            return
        self._callback()
        if not self._cancelled:
            self._schedule_next()

    def _schedule_next(self) -> None:
        # Fixed cadence relative to the first tick, not to when the last one ran.
        self._next_due += self._interval_s
        self._handle = self._loop.call_at(self._next_due, self._run)

    def cancel(self) -> None:
        self._cancelled = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class AsyncioScheduler:
    """Schedules ticks on an asyncio event loop (the running one by default)."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def call_every(
        self, interval_ms: float, callback: TickCallback, *, immediate: bool = True
    ) -> _LoopTimer:
        loop = self._loop or asyncio.get_running_loop()
        timer = _LoopTimer(loop, interval_ms, callback)
        timer.start(immediate)
        return timer
