"""
Progress poller.

Fetches run progress on a fixed period until told to stop. At most one fetch
is in flight, across restarts too: a tick that finds any fetch still running
is skipped.
Every start()/stop() bumps a generation counter, and results belonging to an
older generation are dropped, so nothing lands after stop().
"""

import logging
import threading
from typing import Callable, Optional

from .backend.schemas import RunStatus
from .clock import Scheduler, TimerHandle
from .errors import PollError

logger = logging.getLogger(__name__)


class ProgressPoller:
    """Periodically calls `fetch` and reports results to the callbacks."""

    def __init__(
        self,
        scheduler: Scheduler,
        fetch: Callable[[], RunStatus],
        on_status: Callable[[int, RunStatus], None],
        on_error: Callable[[int, Exception], None],
        interval: float = 1.0,
    ):
        """
        Args:
            scheduler: Source of timers.
            fetch: Blocking call returning fresh progress.
            on_status: Called with (generation, status) for every result.
            on_error: Called with (generation, exception) when fetch raises.
            interval: Seconds between ticks.
        """
        self._scheduler = scheduler
        self._fetch = fetch
        self._on_status = on_status
        self._on_error = on_error
        self.interval = interval

        self._lock = threading.Lock()
        self._generation = 0
        self._running = False
        self._in_flight = False
        self._timer: Optional[TimerHandle] = None
        self.skipped_ticks = 0

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._running

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    def is_current(self, generation: int) -> bool:
        """True if `generation` is the active polling session."""
        with self._lock:
            return self._running and generation == self._generation

    def start(self) -> int:
        """Start (or restart) polling. Returns the new generation number."""
        with self._lock:
            self._cancel_timer()
            self._generation += 1
            self._running = True
            generation = self._generation
            self._schedule(generation)
        logger.debug(f"Polling started (generation {generation}, every {self.interval}s)")
        return generation

    def stop(self) -> None:
        """Stop polling now. An in-flight fetch will be ignored when it returns."""
        with self._lock:
            if not self._running and self._timer is None:
                return
            self._cancel_timer()
            self._generation += 1
            self._running = False
        logger.debug("Polling stopped")

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _schedule(self, generation: int) -> None:
        self._timer = self._scheduler.call_later(self.interval, lambda: self._tick(generation))

    def _tick(self, generation: int) -> None:
        with self._lock:
            if not self._running or generation != self._generation:
                return
            # Keep the cadence regardless of how long the fetch takes
            self._schedule(generation)
            if self._in_flight:
                self.skipped_ticks += 1
                return
            self._in_flight = True

        try:
            status = self._fetch()
        except Exception as e:
            self._finish_fetch()
            if self.is_current(generation):
                error = e if isinstance(e, PollError) else PollError(f"Progress fetch failed: {e}")
                self._on_error(generation, error)
            return

        self._finish_fetch()
        if self.is_current(generation):
            self._on_status(generation, status)

    def _finish_fetch(self) -> None:
        # Cleared by whichever fetch finishes, even one from an older generation,
        # so a restart never overlaps a fetch that is still running.
        with self._lock:
            self._in_flight = False
