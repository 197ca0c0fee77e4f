"""Packet codec for the Galahad II HID protocol.

Frame layout (64 bytes, zero-filled):

- Byte 0: report ID (always 0x00)
- Bytes 1-2: header signature (0x16 0x16 unless auto-detected otherwise)
- Byte 3: command code
- Byte 4: number of payload bytes actually copied
- Zone commands: byte 5 is the zone, payload starts at byte 6
- Other commands: payload starts at byte 5

Payloads longer than the frame capacity are truncated, not rejected.
"""

from collections.abc import Iterable, Sequence

from galahad_rgb.constants import (
    DEFAULT_HEADER,
    HEADER_SIZE,
    MAX_BRIGHTNESS,
    MAX_LEDS_PER_PACKET,
    MIN_BRIGHTNESS,
    OFFSET_COMMAND,
    OFFSET_LENGTH,
    OFFSET_ZONE,
    PACKET_SIZE,
    REPORT_ID,
    ZONE_ALL,
    ZONE_COMMANDS,
    ZONE_HEADER_SIZE,
)
from galahad_rgb.models import ColorSample, PacketCheck


def encode_packet(
    command: int,
    payload: bytes | Sequence[int] = b"",
    zone: int = ZONE_ALL,
    header: tuple[int, int] = DEFAULT_HEADER,
) -> bytes:
    """Build a fixed-size command frame.

    Args:
        command: Protocol command code.
        payload: Command payload. Truncated to the space left in the frame.
        zone: Zone byte, only written for zone-color commands.
        header: Two-byte header signature.

    Returns:
        Exactly PACKET_SIZE bytes.
    """
    frame = bytearray(PACKET_SIZE)
    frame[0] = REPORT_ID
    frame[1], frame[2] = header
    frame[OFFSET_COMMAND] = command

    if command in ZONE_COMMANDS:
        frame[OFFSET_ZONE] = zone
        start = ZONE_HEADER_SIZE
    else:
        start = HEADER_SIZE

    data = bytes(payload)[: PACKET_SIZE - start]
    frame[OFFSET_LENGTH] = len(data)
    frame[start : start + len(data)] = data
    return bytes(frame)


def flatten_led_colors(samples: Iterable[ColorSample]) -> bytes:
    """Serialize samples as (index, r, g, b) quadruples."""
    data = bytearray()
    for sample in samples:
        data += bytes((sample.index, sample.r, sample.g, sample.b))
    return bytes(data)


def chunk_samples(
    samples: Sequence[ColorSample], size: int = MAX_LEDS_PER_PACKET
) -> list[Sequence[ColorSample]]:
    """Split samples into consecutive chunks of at most ``size`` LEDs."""
    return [samples[i : i + size] for i in range(0, len(samples), size)]


def brightness_payload(brightness: int) -> bytes:
    """Brightness payload, clamped to the protocol's 1-100 range."""
    return bytes([max(MIN_BRIGHTNESS, min(MAX_BRIGHTNESS, brightness))])


def check_packet(
    frame: bytes | Sequence[int],
    header: tuple[int, int] = DEFAULT_HEADER,
    expected_command: int | None = None,
) -> PacketCheck:
    """Check that a frame is well-formed.

    Only used by test tooling; production writes are never gated on it.

    Args:
        frame: The frame to check.
        header: Expected header pair.
        expected_command: Expected command code, or None to skip that check.

    Returns:
        A PacketCheck listing every problem found.
    """
    errors: list[str] = []

    if len(frame) != PACKET_SIZE:
        errors.append(f"Invalid packet size: {len(frame)}, expected {PACKET_SIZE}")

    if len(frame) > 0 and frame[0] != REPORT_ID:
        errors.append(
            f"Invalid report ID: 0x{frame[0]:02X}, expected 0x{REPORT_ID:02X}"
        )

    if len(frame) > 2 and (frame[1], frame[2]) != tuple(header):
        errors.append(
            f"Invalid headers: 0x{frame[1]:02X}, 0x{frame[2]:02X}, "
            f"expected 0x{header[0]:02X}, 0x{header[1]:02X}"
        )

    if expected_command is not None:
        if len(frame) <= OFFSET_COMMAND:
            errors.append("Packet too short to carry a command")
        elif frame[OFFSET_COMMAND] != expected_command:
            errors.append(
                f"Invalid command: 0x{frame[OFFSET_COMMAND]:02X}, "
                f"expected 0x{expected_command:02X}"
            )

    return PacketCheck(valid=not errors, errors=tuple(errors))
