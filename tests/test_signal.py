"""Tests for signal handling and frame pacing."""

import signal
import threading
import time

import pytest
from conftest import ManualClock

from galahad_rgb._signal import RenderLoopState, render_loop


class RecordingState(RenderLoopState):
    """Loop state that records waits instead of sleeping."""

    def __init__(self, clock: ManualClock) -> None:
        super().__init__(clock=clock)
        self.waits: list[float] = []

    def wait(self, timeout: float) -> None:
        self.waits.append(timeout)


class TestRenderLoopState:
    """Tests for RenderLoopState class."""

    def test_initially_running(self) -> None:
        """State should report running before stop is called."""
        assert RenderLoopState()() is True

    def test_stop_sets_not_running(self) -> None:
        """State should report not running after stop."""
        state = RenderLoopState()
        state.stop()
        assert state() is False

    def test_wait_returns_early_on_stop(self) -> None:
        """wait() should return well before timeout when stop() is called."""
        state = RenderLoopState()

        def stop_after_delay() -> None:
            time.sleep(0.05)
            state.stop()

        t = threading.Thread(target=stop_after_delay)
        t.start()

        start = time.monotonic()
        state.wait(10.0)
        elapsed = time.monotonic() - start

        t.join()
        assert elapsed < 1.0
        assert state() is False

    def test_frames_stay_on_grid(self, clock: ManualClock) -> None:
        """Time spent rendering should be subtracted from the next wait."""
        state = RecordingState(clock)

        state.next_frame(0.1)
        clock.advance(0.03)
        state.next_frame(0.1)

        assert state.waits[0] == pytest.approx(0.1)
        assert state.waits[1] == pytest.approx(0.17)

    def test_slow_frame_shortens_wait(self, clock: ManualClock) -> None:
        """A frame running past its slot should only wait out the rest."""
        state = RecordingState(clock)

        state.next_frame(0.1)
        clock.advance(0.15)
        state.next_frame(0.1)

        assert state.waits[1] == pytest.approx(0.05)

    def test_grid_restarts_when_far_behind(self, clock: ManualClock) -> None:
        """Falling more than a frame behind should restart the grid."""
        state = RecordingState(clock)

        state.next_frame(0.1)
        clock.advance(0.5)
        state.next_frame(0.1)

        assert state.waits[1] == pytest.approx(0.1)


class TestRenderLoop:
    """Tests for render_loop context manager."""

    def test_yields_running_state(self) -> None:
        """Should yield a running RenderLoopState."""
        with render_loop() as is_running:
            assert isinstance(is_running, RenderLoopState)
            assert is_running() is True

    def test_restores_handlers(self) -> None:
        """Previous SIGINT handler should be restored on exit."""
        before = signal.getsignal(signal.SIGINT)
        with render_loop():
            assert signal.getsignal(signal.SIGINT) is not before
        assert signal.getsignal(signal.SIGINT) is before

    def test_sigint_stops_loop(self) -> None:
        """The installed handler should stop the loop."""
        with render_loop() as is_running:
            handler = signal.getsignal(signal.SIGINT)
            assert callable(handler)
            handler(signal.SIGINT, None)
            assert is_running() is False
