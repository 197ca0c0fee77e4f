"""Galahad RGB - Drive Lian Li Galahad II AIO pump lighting over USB HID.

This package translates a host canvas into the pump's vendor HID packets:
LED ring layout, color sampling, packet encoding, and a device session
that handles bring-up, per-frame updates and recovery from write errors.

Example:
    from galahad_rgb import DeviceSession, HIDTransport, SessionConfig, solid_canvas

    session = DeviceSession(HIDTransport(), solid_canvas("red"), SessionConfig())
    with session:
        while running:
            session.render()
"""

__version__ = "1.0.0"

from galahad_rgb.canvas import ImageCanvas, load_frames, solid_canvas
from galahad_rgb.config import SessionConfig
from galahad_rgb.constants import (
    MAX_LEDS_PER_PACKET,
    PACKET_SIZE,
    SUPPORTED_PIDS,
    VENDOR_ID,
)
from galahad_rgb.device import (
    HIDTransport,
    endpoint_matches,
    find_device_info,
)
from galahad_rgb.exceptions import (
    BringUpError,
    ConfigError,
    DeviceNotFoundError,
    GalahadError,
    ImageError,
    TransportError,
    TransportOpenError,
    TransportWriteError,
)
from galahad_rgb.layout import LedLayout
from galahad_rgb.models import DEVICE_PROFILES, ColorSample, DeviceProfile, RingMode
from galahad_rgb.protocol import check_packet, encode_packet
from galahad_rgb.sampler import sample_colors
from galahad_rgb.session import DeviceSession, SessionState

__all__ = [
    "DEVICE_PROFILES",
    "MAX_LEDS_PER_PACKET",
    "PACKET_SIZE",
    "SUPPORTED_PIDS",
    "VENDOR_ID",
    "BringUpError",
    "ColorSample",
    "ConfigError",
    "DeviceNotFoundError",
    "DeviceProfile",
    "DeviceSession",
    "GalahadError",
    "HIDTransport",
    "ImageCanvas",
    "ImageError",
    "LedLayout",
    "RingMode",
    "SessionConfig",
    "SessionState",
    "TransportError",
    "TransportOpenError",
    "TransportWriteError",
    "__version__",
    "check_packet",
    "encode_packet",
    "endpoint_matches",
    "find_device_info",
    "load_frames",
    "sample_colors",
    "solid_canvas",
]
