"""Constants for Lian Li Galahad II pump RGB communication.

The command codes and header bytes below were reverse-engineered from
common Lian Li HID patterns and have not been confirmed by the vendor.
"""

from typing import Final

# Lian Li USB Vendor ID
VENDOR_ID: Final[int] = 0x0416

# Supported Product IDs
SUPPORTED_PIDS: Final[tuple[int, ...]] = (
    0x7373,  # Galahad II Trinity
    0x7371,  # Galahad II Trinity Performance
    0x7395,  # Galahad II LCD
)

# Packet framing
PACKET_SIZE: Final[int] = 64
REPORT_ID: Final[int] = 0x00
DEFAULT_HEADER: Final[tuple[int, int]] = (0x16, 0x16)

# Byte offsets inside a frame
OFFSET_COMMAND: Final[int] = 3
OFFSET_LENGTH: Final[int] = 4
OFFSET_ZONE: Final[int] = 5
HEADER_SIZE: Final[int] = 5  # report id + 2 header bytes + command + length
ZONE_HEADER_SIZE: Final[int] = HEADER_SIZE + 1

# Commands
CMD_INITIALIZE: Final[int] = 0x01
CMD_SET_LED_COUNT: Final[int] = 0x02
CMD_SET_ZONE_COLOR: Final[int] = 0x06
CMD_SET_INDIVIDUAL_COLOR: Final[int] = 0x07
CMD_SET_BRIGHTNESS: Final[int] = 0x08
CMD_APPLY: Final[int] = 0x09
CMD_SET_EFFECT: Final[int] = 0x0A
CMD_RESET: Final[int] = 0xFF

# Commands carrying a zone byte before their payload
ZONE_COMMANDS: Final[frozenset[int]] = frozenset(
    {CMD_SET_ZONE_COLOR, CMD_SET_INDIVIDUAL_COLOR}
)

# Zone identifiers
ZONE_ALL: Final[int] = 0x00
ZONE_OUTER: Final[int] = 0x01
ZONE_INNER: Final[int] = 0x02
ZONE_INDEPENDENT: Final[int] = 0x03

# Effect types (reserved for CMD_SET_EFFECT)
EFFECT_STATIC: Final[int] = 0x00
EFFECT_BREATHING: Final[int] = 0x01
EFFECT_RAINBOW: Final[int] = 0x02
EFFECT_WAVE: Final[int] = 0x03

# Initialize payload: RGB mode on, default settings
INIT_RGB_MODE: Final[bytes] = bytes([0x01, 0x00])

# Per-LED payload: index, r, g, b
BYTES_PER_LED: Final[int] = 4
MAX_LEDS_PER_PACKET: Final[int] = (PACKET_SIZE - ZONE_HEADER_SIZE) // BYTES_PER_LED

# Header signatures probed by auto-detection, in order
HEADER_CANDIDATES: Final[tuple[tuple[str, tuple[int, int]], ...]] = (
    ("Standard Lian Li", DEFAULT_HEADER),
    ("Alternative 1", (0xAA, 0x55)),
    ("Alternative 2", (0x5A, 0xA5)),
)

# Layout grid
GRID_WIDTH: Final[int] = 10
GRID_HEIGHT: Final[int] = 8
GRID_CENTER: Final[tuple[int, int]] = (5, 4)
OUTER_RADIUS: Final[float] = 3.0
INNER_RADIUS: Final[float] = 1.5

# Bring-up and pacing delays (seconds)
RESET_SETTLE_DELAY: Final[float] = 0.15
LED_COUNT_SETTLE_DELAY: Final[float] = 0.10
INITIALIZE_SETTLE_DELAY: Final[float] = 0.05
RING_GAP_DELAY: Final[float] = 0.01
SHUTDOWN_STEP_DELAY: Final[float] = 0.05

# Render cadence
FRAME_RATE: Final[float] = 30.0
APPLY_FRAME_INTERVAL: Final[int] = 3
BRIGHTNESS_FRAME_INTERVAL: Final[int] = 30
RECOVERY_FRAME_INTERVAL: Final[int] = 300  # ~10s at 30Hz

# Error thresholds
MAX_ERRORS: Final[int] = 10
RECOVERY_ERROR_THRESHOLD: Final[int] = 5

# Host setting ranges
MIN_LED_COUNT: Final[int] = 12
MAX_LED_COUNT: Final[int] = 64
DEFAULT_LED_COUNT: Final[int] = 24
MIN_BRIGHTNESS: Final[int] = 1
MAX_BRIGHTNESS: Final[int] = 100
DEFAULT_BRIGHTNESS: Final[int] = 100
MIN_EFFECT_SPEED: Final[int] = 1
MAX_EFFECT_SPEED: Final[int] = 100
DEFAULT_EFFECT_SPEED: Final[int] = 50
DEFAULT_OUTER_FRACTION: Final[float] = 0.67

# Vendor-defined HID usage page range
VENDOR_USAGE_PAGE_MIN: Final[int] = 0xFF00
VENDOR_USAGE_PAGE_MAX: Final[int] = 0xFFFF
