"""Data models for galahad-rgb."""

from dataclasses import dataclass
from enum import Enum

from galahad_rgb.constants import (
    ZONE_ALL,
    ZONE_INDEPENDENT,
    ZONE_INNER,
    ZONE_OUTER,
)


@dataclass(frozen=True, slots=True)
class DeviceProfile:
    """Static description of one pump model.

    ``interface`` and ``usage_page`` are the exact HID endpoint the model
    must be driven through; ``None`` means any vendor endpoint will do.
    """

    product_id: int
    name: str
    outer_leds: int
    inner_leds: int
    interface: int | None = None
    usage_page: int | None = None
    supports_per_led: bool = True
    has_lcd: bool = False

    @property
    def total_leds(self) -> int:
        """Number of addressable LEDs on both rings."""
        return self.outer_leds + self.inner_leds


DEVICE_PROFILES: dict[int, DeviceProfile] = {
    0x7373: DeviceProfile(
        product_id=0x7373,
        name="Trinity",
        outer_leds=16,
        inner_leds=8,
        interface=0,
    ),
    0x7371: DeviceProfile(
        product_id=0x7371,
        name="Trinity Performance",
        outer_leds=16,
        inner_leds=8,
        interface=0,
    ),
    0x7395: DeviceProfile(
        product_id=0x7395,
        name="LCD",
        outer_leds=16,
        inner_leds=8,
        interface=1,
        usage_page=0xFF1A,
        has_lcd=True,
    ),
}


def get_profile(product_id: int | None) -> DeviceProfile | None:
    """Look up the profile for a product ID, or None if unknown."""
    if product_id is None:
        return None
    return DEVICE_PROFILES.get(product_id)


def get_device_name(product_id: int) -> str:
    """Get the human-readable name for a pump.

    Args:
        product_id: The USB product ID.

    Returns:
        The model name or "Unknown (0xXXXX)" if not recognized.
    """
    profile = DEVICE_PROFILES.get(product_id)
    if profile is None:
        return f"Unknown (0x{product_id:04X})"
    return profile.name


class RingMode(str, Enum):
    """Which rings are driven and how they are addressed."""

    COMBINED = "Combined"
    OUTER = "Outer Ring Only"
    INNER = "Inner Ring Only"
    INDEPENDENT = "Independent Rings"

    @property
    def zone(self) -> int:
        """Zone byte used for color packets in this mode."""
        return _RING_MODE_ZONES[self]


_RING_MODE_ZONES: dict[RingMode, int] = {
    RingMode.COMBINED: ZONE_ALL,
    RingMode.OUTER: ZONE_OUTER,
    RingMode.INNER: ZONE_INNER,
    RingMode.INDEPENDENT: ZONE_INDEPENDENT,
}


@dataclass(frozen=True, slots=True)
class ColorSample:
    """Brightness-scaled color for one LED, keyed by protocol index."""

    index: int
    r: int
    g: int
    b: int

    @property
    def rgb(self) -> tuple[int, int, int]:
        return (self.r, self.g, self.b)


@dataclass(frozen=True, slots=True)
class PacketCheck:
    """Outcome of a packet self-check.

    Carries every problem found rather than stopping at the first one,
    so a tester can print the full list.
    """

    valid: bool
    errors: tuple[str, ...] = ()

    def __bool__(self) -> bool:
        return self.valid
