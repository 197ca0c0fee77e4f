"""Pytest configuration and fixtures."""

from collections.abc import Callable, Sequence
from unittest.mock import MagicMock

import pytest

from galahad_rgb.exceptions import TransportOpenError, TransportWriteError
from galahad_rgb.scheduler import Scheduler


class FakeTransport:
    """In-memory transport recording every written frame.

    ``fail_writes`` makes the next N writes raise; ``fail_when`` lets a
    test fail writes selectively by frame content.
    """

    def __init__(self, product_id: int | None = 0x7373) -> None:
        self.product_id = product_id
        self.frames: list[bytes] = []
        self.opened = False
        self.open_calls = 0
        self.close_calls = 0
        self.fail_open = False
        self.fail_writes = 0
        self.fail_when: Callable[[bytes], bool] | None = None

    def open(self) -> None:
        self.open_calls += 1
        if self.fail_open:
            msg = "Failed to open device: access denied"
            raise TransportOpenError(msg)
        self.opened = True

    def write(self, frame: bytes) -> None:
        if self.fail_writes > 0:
            self.fail_writes -= 1
            msg = "Failed to write frame: device disconnected"
            raise TransportWriteError(msg)
        if self.fail_when is not None and self.fail_when(frame):
            msg = "Failed to write frame: rejected"
            raise TransportWriteError(msg)
        self.frames.append(bytes(frame))

    def close(self) -> None:
        self.close_calls += 1
        self.opened = False

    @property
    def commands(self) -> list[int]:
        """Command byte of every recorded frame."""
        return [frame[3] for frame in self.frames]


class ManualClock:
    """Monotonic clock advanced explicitly by tests."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class GridCanvas:
    """Canvas returning a fixed color per grid cell (None if unset)."""

    def __init__(
        self,
        colors: dict[tuple[int, int], Sequence[int]] | None = None,
        default: Sequence[int] | None = None,
    ) -> None:
        self.colors = colors or {}
        self.default = default
        self.queries: list[tuple[int, int]] = []

    def sample(self, x: int, y: int) -> Sequence[int] | None:
        self.queries.append((x, y))
        return self.colors.get((x, y), self.default)


@pytest.fixture
def transport() -> FakeTransport:
    """Create a fake transport for a Trinity pump."""
    return FakeTransport()


@pytest.fixture
def clock() -> ManualClock:
    """Create a manual clock starting at zero."""
    return ManualClock()


@pytest.fixture
def scheduler(clock: ManualClock) -> Scheduler:
    """Create a scheduler driven by the manual clock."""
    return Scheduler(clock=clock)


@pytest.fixture
def mock_device_info() -> dict:
    """Create mock device info dictionary (hidapi format)."""
    return {
        "product_id": 0x7373,  # Trinity
        "interface_number": 0,
        "usage": 0x0001,
        "usage_page": 0xFF00,
        "path": b"\\\\?\\HID#VID_0416&PID_7373&MI_00",
        "product_string": "Galahad II Trinity",
    }


@pytest.fixture
def mock_hid_device() -> MagicMock:
    """Create a mock hid.device object."""
    device = MagicMock()
    device.open_path = MagicMock()
    device.close = MagicMock()
    device.write = MagicMock(return_value=64)
    return device
