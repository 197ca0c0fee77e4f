"""Protocol self-test and endpoint diagnostics.

The self-test builds the packets the session would send (bring-up
commands, test colors, ring zones, brightness levels), checks each one
with :func:`check_packet`, and can optionally write them to a real pump.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from galahad_rgb.constants import (
    CMD_INITIALIZE,
    CMD_RESET,
    CMD_SET_BRIGHTNESS,
    CMD_SET_LED_COUNT,
    CMD_SET_ZONE_COLOR,
    DEFAULT_HEADER,
    DEFAULT_LED_COUNT,
    INIT_RGB_MODE,
    OFFSET_LENGTH,
    PACKET_SIZE,
    ZONE_ALL,
    ZONE_COMMANDS,
    ZONE_HEADER_SIZE,
    ZONE_INDEPENDENT,
    ZONE_INNER,
    ZONE_OUTER,
)
from galahad_rgb.device import Transport, endpoint_matches, enumerate_lianli_devices
from galahad_rgb.exceptions import TransportWriteError
from galahad_rgb.models import get_device_name, get_profile
from galahad_rgb.protocol import check_packet, encode_packet

logger = logging.getLogger(__name__)

SELFTEST_COLORS: tuple[tuple[str, tuple[int, int, int]], ...] = (
    ("Red", (255, 0, 0)),
    ("Green", (0, 255, 0)),
    ("Blue", (0, 0, 255)),
    ("White", (255, 255, 255)),
    ("Purple", (255, 0, 255)),
    ("Off", (0, 0, 0)),
)

SELFTEST_RINGS: tuple[tuple[str, int, tuple[int, int, int]], ...] = (
    ("All Zones Red", ZONE_ALL, (255, 0, 0)),
    ("Outer Ring Green", ZONE_OUTER, (0, 255, 0)),
    ("Inner Ring Blue", ZONE_INNER, (0, 0, 255)),
    ("Both Rings White", ZONE_INDEPENDENT, (255, 255, 255)),
)

SELFTEST_BRIGHTNESS: tuple[int, ...] = (25, 50, 75, 100)


@dataclass(frozen=True, slots=True)
class SelftestCase:
    """One packet to check (and optionally send)."""

    name: str
    command: int
    frame: bytes


@dataclass(frozen=True, slots=True)
class SelftestResult:
    """Outcome of one self-test case."""

    name: str
    passed: bool
    errors: tuple[str, ...] = ()


def build_selftest_suite(
    header: tuple[int, int] = DEFAULT_HEADER,
) -> list[SelftestCase]:
    """Build the ordered list of self-test packets."""

    def case(
        name: str, command: int, payload: bytes = b"", zone: int = ZONE_ALL
    ) -> SelftestCase:
        frame = encode_packet(command, payload, zone=zone, header=header)
        return SelftestCase(name, command, frame)

    cases = [
        case("Init: Reset", CMD_RESET),
        case("Init: Set LED Count", CMD_SET_LED_COUNT, bytes([DEFAULT_LED_COUNT])),
        case("Init: Initialize RGB", CMD_INITIALIZE, INIT_RGB_MODE),
    ]
    cases += [
        case(f"Color: {name}", CMD_SET_ZONE_COLOR, bytes(rgb))
        for name, rgb in SELFTEST_COLORS
    ]
    cases += [
        case(f"Ring: {name}", CMD_SET_ZONE_COLOR, bytes(rgb), zone=zone)
        for name, zone, rgb in SELFTEST_RINGS
    ]
    cases += [
        case(f"Brightness: {level}%", CMD_SET_BRIGHTNESS, bytes([level]))
        for level in SELFTEST_BRIGHTNESS
    ]
    cases.append(
        case("Truncation: Oversized Payload", CMD_SET_ZONE_COLOR, bytes([0xFF] * 60))
    )
    return cases


def _check_case(case: SelftestCase, header: tuple[int, int]) -> list[str]:
    errors = list(check_packet(case.frame, header, case.command).errors)
    if case.command in ZONE_COMMANDS:
        capacity = PACKET_SIZE - ZONE_HEADER_SIZE
        length = case.frame[OFFSET_LENGTH]
        if length > capacity:
            errors.append(f"Payload length {length} exceeds capacity {capacity}")
    return errors


def run_selftest(
    transport: Transport | None = None,
    header: tuple[int, int] = DEFAULT_HEADER,
    delay: float = 0.5,
    sleep: Callable[[float], None] = time.sleep,
) -> list[SelftestResult]:
    """Check every self-test packet and optionally send it.

    Args:
        transport: Opened transport to write to, or None to only check
            packet structure.
        header: Header signature to build and expect.
        delay: Seconds to wait after each sent packet so the change is visible.
        sleep: Blocking wait between sent packets.

    Returns:
        One result per case, in suite order.
    """
    results = []
    for case in build_selftest_suite(header):
        errors = _check_case(case, header)
        if not errors and transport is not None:
            try:
                transport.write(case.frame)
            except TransportWriteError as e:
                errors.append(f"Write failed: {e}")
            else:
                sleep(delay)
        if errors:
            logger.warning("%s failed: %s", case.name, "; ".join(errors))
        results.append(SelftestResult(case.name, not errors, tuple(errors)))
    return results


def describe_endpoints() -> list[dict[str, Any]]:
    """List every Lian Li HID endpoint with its match verdict.

    Returns:
        One dictionary per endpoint with ``product_id``, ``name``,
        ``interface``, ``usage``, ``usage_page``, ``path`` and ``matched``.
    """
    rows = []
    for dev in enumerate_lianli_devices():
        pid = dev["product_id"]
        interface = dev.get("interface_number", -1)
        usage = dev.get("usage", 0)
        usage_page = dev.get("usage_page", 0)
        profile = get_profile(pid)
        rows.append(
            {
                "product_id": pid,
                "name": get_device_name(pid),
                "interface": interface,
                "usage": usage,
                "usage_page": usage_page,
                "path": dev.get("path", b""),
                "matched": profile is not None
                and endpoint_matches(profile, interface, usage, usage_page),
            }
        )
    return rows
