"""Signal handling and frame pacing for the host render loop."""

import signal
import sys
import threading
import time
from collections.abc import Callable, Generator
from contextlib import contextmanager


class RenderLoopState:
    """Signal-aware loop state with drift-free frame pacing.

    Callable: returns True while running, False after interrupt.
    ``next_frame(interval)`` sleeps until the next frame boundary and
    returns early if interrupted.
    """

    __slots__ = ("_clock", "_deadline", "_event")

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._event = threading.Event()
        self._clock = clock
        self._deadline: float | None = None

    def __call__(self) -> bool:
        """Return True if still running, False if interrupted."""
        return not self._event.is_set()

    def stop(self) -> None:
        """Signal that the loop should stop."""
        self._event.set()

    def wait(self, timeout: float) -> None:
        """Sleep for up to *timeout* seconds, returning early if interrupted."""
        self._event.wait(timeout)

    def next_frame(self, interval: float) -> None:
        """Wait for the next frame boundary ``interval`` seconds apart.

        Boundaries are kept on a fixed grid so slow frames do not push
        every later frame back. If the loop fell more than one frame
        behind, the grid restarts from now.
        """
        now = self._clock()
        if self._deadline is None or now - self._deadline > interval:
            self._deadline = now
        self._deadline += interval
        self.wait(max(0.0, self._deadline - now))


@contextmanager
def render_loop() -> Generator[RenderLoopState, None, None]:
    """Context manager that stops the render loop on SIGINT/SIGTERM.

    Example:
        with render_loop() as is_running:
            while is_running():
                session.render()
                is_running.next_frame(1 / 30)

    Yields:
        RenderLoopState instance.
    """
    state = RenderLoopState()

    def handler(signum: int, frame: object) -> None:
        state.stop()

    old_sigint = signal.signal(signal.SIGINT, handler)
    old_sigterm = None
    if sys.platform != "win32":
        old_sigterm = signal.signal(signal.SIGTERM, handler)

    try:
        yield state
    finally:
        signal.signal(signal.SIGINT, old_sigint)
        if sys.platform != "win32" and old_sigterm is not None:
            signal.signal(signal.SIGTERM, old_sigterm)
