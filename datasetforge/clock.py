"""
Schedulers for delayed callbacks.

The orchestrator never sleeps or reads the wall clock directly. Everything
time-based (notification expiry, progress polling) goes through a scheduler
so tests can drive time by hand with ManualScheduler.
"""

import heapq
import itertools
import threading
import time
from abc import ABC, abstractmethod
from typing import Callable, List, Tuple


class TimerHandle(ABC):
    """A scheduled one-shot callback."""

    @abstractmethod
    def cancel(self) -> None:
        """Cancel the callback. Safe to call more than once."""
        pass


class Scheduler(ABC):
    """Time source with cancellable one-shot timers."""

    @abstractmethod
    def now(self) -> float:
        """Current time in seconds."""
        pass

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Run `callback` once after `delay` seconds."""
        pass


class _ThreadTimerHandle(TimerHandle):
    def __init__(self, timer: threading.Timer):
        self._timer = timer

    def cancel(self) -> None:
        self._timer.cancel()


class ThreadingScheduler(Scheduler):
    """Wall-clock scheduler backed by daemon threading.Timer objects."""

    def now(self) -> float:
        return time.monotonic()

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return _ThreadTimerHandle(timer)


class _ManualTimerHandle(TimerHandle):
    def __init__(self):
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler(Scheduler):
    """
    Fake clock for tests.

    Time only moves when advance() is called. Due callbacks run synchronously
    on the caller's thread, in deadline order (FIFO for equal deadlines).
    """

    def __init__(self, start: float = 0.0):
        self._now = start
        self._seq = itertools.count()
        self._queue: List[Tuple[float, int, _ManualTimerHandle, Callable[[], None]]] = []
        self._lock = threading.Lock()

    def now(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        handle = _ManualTimerHandle()
        with self._lock:
            heapq.heappush(self._queue, (self._now + delay, next(self._seq), handle, callback))
        return handle

    @property
    def pending(self) -> int:
        """Number of scheduled, non-cancelled callbacks."""
        with self._lock:
            return sum(1 for _, _, handle, _ in self._queue if not handle.cancelled)

    def advance(self, seconds: float) -> None:
        """Move time forward, firing every callback that falls due."""
        target = self._now + seconds
        while True:
            with self._lock:
                if not self._queue or self._queue[0][0] > target:
                    break
                deadline, _, handle, callback = heapq.heappop(self._queue)
            self._now = max(self._now, deadline)
            if not handle.cancelled:
                callback()
        self._now = max(self._now, target)
