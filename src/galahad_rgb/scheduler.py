"""Cooperative timer scheduler for non-blocking protocol delays.

Nothing here runs on its own thread. Callbacks become due after their
delay and are executed by the owner calling :meth:`Scheduler.run_pending`
from its own loop (the session does this at the start of every render).
"""

import heapq
import itertools
import time
from collections.abc import Callable
from dataclasses import dataclass, field


@dataclass(order=True)
class ScheduledCall:
    """Handle for a pending callback."""

    due: float
    seq: int
    callback: Callable[[], None] = field(compare=False)
    cancelled: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        """Prevent the callback from running."""
        self.cancelled = True


class Scheduler:
    """Run callbacks once their delay has elapsed.

    Args:
        clock: Monotonic time source in seconds.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._queue: list[ScheduledCall] = []
        self._counter = itertools.count()

    def now(self) -> float:
        return self._clock()

    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledCall:
        """Schedule ``callback`` to run ``delay`` seconds from now."""
        call = ScheduledCall(self._clock() + delay, next(self._counter), callback)
        heapq.heappush(self._queue, call)
        return call

    def run_pending(self) -> int:
        """Run every due callback in due order.

        Callbacks scheduled by a running callback with zero delay run in the
        same pass.

        Returns:
            Number of callbacks executed.
        """
        ran = 0
        while self._queue and self._queue[0].due <= self._clock():
            call = heapq.heappop(self._queue)
            if call.cancelled:
                continue
            call.callback()
            ran += 1
        return ran

    def cancel_all(self) -> None:
        """Drop every pending callback."""
        for call in self._queue:
            call.cancel()
        self._queue.clear()

    @property
    def pending(self) -> int:
        """Number of callbacks still waiting to run."""
        return sum(1 for call in self._queue if not call.cancelled)
