"""Host-supplied settings for a device session."""

import math
from dataclasses import dataclass

from galahad_rgb.constants import (
    DEFAULT_BRIGHTNESS,
    DEFAULT_EFFECT_SPEED,
    DEFAULT_LED_COUNT,
    DEFAULT_OUTER_FRACTION,
    MAX_BRIGHTNESS,
    MAX_EFFECT_SPEED,
    MAX_LED_COUNT,
    MIN_BRIGHTNESS,
    MIN_EFFECT_SPEED,
    MIN_LED_COUNT,
)
from galahad_rgb.exceptions import ConfigError
from galahad_rgb.models import DEVICE_PROFILES, DeviceProfile, RingMode

# Labels of the host's "Pump Model" selector
MODEL_CHOICES: dict[str, int] = {
    "Trinity (0x7373)": 0x7373,
    "Trinity Performance (0x7371)": 0x7371,
    "LCD (0x7395)": 0x7395,
}


@dataclass(frozen=True, slots=True)
class SessionConfig:
    """Settings the host makes available before initialization.

    Attributes:
        led_count: Total LED count, only used when no device profile is known.
        brightness: Global brightness in percent.
        ring_mode: Which rings to drive. Accepts the host's label string.
        per_led_mode: Send individual LED colors instead of one averaged color.
        model: Product ID of the pump model, or None to use the connected one.
        effect_speed: Reserved for hardware effect commands.
        auto_detect_header: Probe alternate header signatures before bring-up.

    Raises:
        ConfigError: If any value is out of range.
    """

    led_count: int = DEFAULT_LED_COUNT
    brightness: int = DEFAULT_BRIGHTNESS
    ring_mode: RingMode = RingMode.COMBINED
    per_led_mode: bool = True
    model: int | None = None
    effect_speed: int = DEFAULT_EFFECT_SPEED
    auto_detect_header: bool = False

    def __post_init__(self) -> None:
        _check_range("led_count", self.led_count, MIN_LED_COUNT, MAX_LED_COUNT)
        _check_range("brightness", self.brightness, MIN_BRIGHTNESS, MAX_BRIGHTNESS)
        _check_range(
            "effect_speed", self.effect_speed, MIN_EFFECT_SPEED, MAX_EFFECT_SPEED
        )

        if not isinstance(self.ring_mode, RingMode):
            try:
                # Frozen dataclass: bypass __setattr__ to normalize the label
                object.__setattr__(self, "ring_mode", RingMode(self.ring_mode))
            except ValueError as e:
                msg = f"Unknown ring mode: {self.ring_mode!r}"
                raise ConfigError(msg) from e

        if self.model is not None and self.model not in DEVICE_PROFILES:
            msg = f"Unknown pump model: 0x{self.model:04X}"
            raise ConfigError(msg)

    @property
    def profile(self) -> DeviceProfile | None:
        """Profile selected by the model setting, if any."""
        if self.model is None:
            return None
        return DEVICE_PROFILES[self.model]


def _check_range(name: str, value: int, low: int, high: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        msg = f"{name} must be an integer, got {value!r}"
        raise ConfigError(msg)
    if not low <= value <= high:
        msg = f"{name} must be between {low} and {high}, got {value}"
        raise ConfigError(msg)


def split_led_count(
    total: int, outer_fraction: float = DEFAULT_OUTER_FRACTION
) -> tuple[int, int]:
    """Split a total LED count into (outer, inner) ring sizes.

    The outer ring gets the rounded-up share, e.g. 24 -> (17, 7).
    """
    outer = math.ceil(total * outer_fraction)
    return outer, total - outer


def resolve_ring_counts(
    profile: DeviceProfile | None, led_count: int
) -> tuple[int, int]:
    """Return (outer, inner) LED counts for a session.

    A known profile is authoritative; the user total is only split when
    no profile could be determined.
    """
    if profile is not None:
        return profile.outer_leds, profile.inner_leds
    return split_led_count(led_count)
