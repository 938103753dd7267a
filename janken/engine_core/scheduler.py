"""
Scheduler - Deferred callbacks for presentation delays.

The engine is single-threaded. The only deferred work is the reveal of a
judged round (and, in the game loop, the move to the next round). Both
go through a Scheduler so the clock can be real (asyncio) or virtual
(tests, CLI).
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable
import asyncio
import heapq
import itertools


class ScheduledCall(ABC):
    """Handle for a pending callback."""

    @abstractmethod
    def cancel(self) -> None:
        pass

    @property
    @abstractmethod
    def cancelled(self) -> bool:
        pass


class Scheduler(ABC):
    """Interface for scheduling a callback after a delay (seconds)."""

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], Any]) -> ScheduledCall:
        pass


@dataclass(order=True)
class _ManualCall(ScheduledCall):
    due: float
    seq: int
    callback: Callable[[], Any] = field(compare=False)
    _cancelled: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class ManualScheduler(Scheduler):
    """
    Virtual-clock scheduler.

    Nothing runs until the owner advances the clock. Calls run in due-time
    order; ties run in scheduling order.

    Usage:
        scheduler = ManualScheduler()
        scheduler.call_later(1.5, commit)
        scheduler.advance(1.5)  # commit runs here
    """

    def __init__(self):
        self.now = 0.0
        self._queue: list[_ManualCall] = []
        self._seq = itertools.count()

    def call_later(self, delay: float, callback: Callable[[], Any]) -> ScheduledCall:
        call = _ManualCall(due=self.now + max(0.0, delay), seq=next(self._seq), callback=callback)
        heapq.heappush(self._queue, call)
        return call

    @property
    def pending(self) -> int:
        return sum(1 for c in self._queue if not c.cancelled)

    def next_due(self) -> float | None:
        """Due time of the earliest live call, if any."""
        for call in sorted(self._queue):
            if not call.cancelled:
                return call.due
        return None

    def advance(self, seconds: float) -> int:
        """
        Move the clock forward and run everything that falls due.

        Callbacks scheduled while advancing run too, if they fall inside
        the window. Returns the number of callbacks run.
        """
        target = self.now + seconds
        ran = 0
        while self._queue and self._queue[0].due <= target:
            call = heapq.heappop(self._queue)
            if call.cancelled:
                continue
            self.now = call.due
            call.callback()
            ran += 1
        self.now = target
        return ran

    def run_all(self, max_calls: int = 1000) -> int:
        """Run pending calls (and any they schedule) until the queue drains."""
        ran = 0
        while ran < max_calls:
            due = self.next_due()
            if due is None:
                break
            ran += self.advance(due - self.now)
        return ran


class _AsyncioCall(ScheduledCall):

    def __init__(self, handle: asyncio.TimerHandle):
        self._handle = handle

    def cancel(self) -> None:
        self._handle.cancel()

    @property
    def cancelled(self) -> bool:
        return self._handle.cancelled()


class AsyncioScheduler(Scheduler):
    """Scheduler backed by an asyncio event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def call_later(self, delay: float, callback: Callable[[], Any]) -> ScheduledCall:
        return _AsyncioCall(self.loop.call_later(delay, callback))
