"""
Repeating-task abstraction for the blink cycle.

A RepeatingTask runs a callback every interval_ms on top of a Scheduler.
start() always replaces the previous timer and stop() is safe to call at any
time, so at most one live timer exists per task.

Two schedulers are provided:
- ManualScheduler: virtual clock advanced explicitly (tests, headless CLI)
- AsyncioScheduler: wraps loop.call_later for an asyncio-driven UI
"""

import asyncio
import heapq
import itertools
import logging
from typing import Callable, List, Optional, Protocol, Tuple

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Schedules a one-shot callback after delay_ms."""

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle: ...


# ═══════════════════════════════════════════════════════════════════════════════
# ⏱️ SCHEDULERS
# ═══════════════════════════════════════════════════════════════════════════════


class ManualTimer:
    """Handle returned by ManualScheduler.call_later."""

    def __init__(self, due_ms: float, callback: Callable[[], None]) -> None:
        self.due_ms = due_ms
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """
    Deterministic scheduler driven by advance().

    Example:
        scheduler = ManualScheduler()
        task = RepeatingTask(scheduler, 650, tick)
        task.start()
        scheduler.advance(1300)  # tick() ran twice
    """

    def __init__(self) -> None:
        self.now_ms: float = 0.0
        self._queue: List[Tuple[float, int, ManualTimer]] = []
        self._seq = itertools.count()

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(self.now_ms + max(0.0, float(delay_ms)), callback)
        heapq.heappush(self._queue, (timer.due_ms, next(self._seq), timer))
        return timer

    def advance(self, ms: float) -> int:
        """Move the clock forward, firing due timers in order. Returns fired count."""
        target = self.now_ms + float(ms)
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            due_ms, _seq, timer = heapq.heappop(self._queue)
            if timer.cancelled:
                continue
            self.now_ms = due_ms
            timer.callback()
            fired += 1
        self.now_ms = target
        return fired

    def pending_count(self) -> int:
        """Number of live (not cancelled) timers."""
        return sum(1 for _due, _seq, timer in self._queue if not timer.cancelled)


class AsyncioScheduler:
    """Scheduler backed by an asyncio event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(max(0.0, float(delay_ms)) / 1000.0, callback)


# ═══════════════════════════════════════════════════════════════════════════════
# 🔁 REPEATING TASK
# ═══════════════════════════════════════════════════════════════════════════════


class RepeatingTask:
    """Fixed-period repeating callback with start/stop only."""

    def __init__(
        self, scheduler: Scheduler, interval_ms: float, callback: Callable[[], None]
    ) -> None:
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be > 0, got {interval_ms}")
        self._scheduler = scheduler
        self.interval_ms = interval_ms
        self._callback = callback
        self._handle: Optional[TimerHandle] = None

    @property
    def running(self) -> bool:
        return self._handle is not None

    def start(self) -> None:
        """(Re)start the cycle; any previous timer is cancelled first."""
        self.stop()
        self._handle = self._schedule()

    def stop(self) -> None:
        """Cancel the pending repeat; a no-op when not running."""
        handle, self._handle = self._handle, None
        if handle is not None:
            handle.cancel()

    def _schedule(self) -> TimerHandle:
        token: List[Optional[TimerHandle]] = [None]

        def fire() -> None:
            # A timer replaced by start()/stop() must not tick
            if self._handle is not token[0]:
                return
            self._handle = self._schedule()
            self._callback()

        token[0] = self._scheduler.call_later(self.interval_ms, fire)
        return token[0]
