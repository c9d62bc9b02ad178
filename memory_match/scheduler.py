# memory_match/scheduler.py
from __future__ import annotations

import asyncio
import heapq
import itertools
import threading
from typing import Callable, List, Optional, Protocol, Set, Tuple

Callback = Callable[[], None]


class Handle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Runs a callback once, `delay` seconds from now."""

    def call_later(self, delay: float, callback: Callback) -> Handle: ...


def _check_delay(delay: float) -> None:
    if delay <= 0:
        raise ValueError(f"delay must be positive, got {delay}")


# ----- virtual clock -----

class ManualHandle:
    def __init__(self) -> None:
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """
    Virtual clock. Nothing runs until `advance()` moves time forward;
    due callbacks run in due-time order, ties in the order they were scheduled.
    """

    def __init__(self) -> None:
        self.now = 0.0
        self._seq = itertools.count()
        self._queue: List[Tuple[float, int, ManualHandle, Callback]] = []

    def call_later(self, delay: float, callback: Callback) -> ManualHandle:
        _check_delay(delay)
        handle = ManualHandle()
        heapq.heappush(self._queue, (self.now + delay, next(self._seq), handle, callback))
        return handle

    @property
    def pending(self) -> int:
        return sum(1 for _, _, h, _ in self._queue if not h.cancelled)

    def advance(self, seconds: float) -> int:
        """Move the clock forward and run everything that came due. Returns how many ran."""
        if seconds < 0:
            raise ValueError("cannot move the clock backwards")
        target = self.now + seconds
        ran = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, handle, callback = heapq.heappop(self._queue)
            self.now = due
            if handle.cancelled:
                continue
            callback()
            ran += 1
        self.now = target
        return ran

    def run_all(self) -> int:
        ran = 0
        while self._queue:
            ran += self.advance(max(0.0, self._queue[0][0] - self.now))
        return ran


# ----- threads -----

class ThreadHandle:
    """Cancelling also drops the timer from its scheduler."""

    def __init__(self, scheduler: "ThreadingScheduler", timer: threading.Timer):
        self._scheduler = scheduler
        self.timer = timer

    def cancel(self) -> None:
        self.timer.cancel()
        self._scheduler._forget(self.timer)


class ThreadingScheduler:
    """
    One daemon `threading.Timer` per task. Callbacks run on timer threads,
    so whatever they touch must do its own locking (the engine does).
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._timers: Set[threading.Timer] = set()

    def call_later(self, delay: float, callback: Callback) -> ThreadHandle:
        _check_delay(delay)

        def run() -> None:
            self._forget(timer)
            callback()

        timer = threading.Timer(delay, run)
        timer.daemon = True
        with self._lock:
            self._timers.add(timer)
        timer.start()
        return ThreadHandle(self, timer)

    def _forget(self, timer: threading.Timer) -> None:
        with self._lock:
            self._timers.discard(timer)

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._timers)

    def shutdown(self) -> None:
        with self._lock:
            timers = list(self._timers)
            self._timers.clear()
        for t in timers:
            t.cancel()


# ----- asyncio -----

class AsyncioScheduler:
    """Schedules on an event loop; callbacks run on the loop thread."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def call_later(self, delay: float, callback: Callback) -> asyncio.TimerHandle:
        _check_delay(delay)
        return self.loop.call_later(delay, callback)
