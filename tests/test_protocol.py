"""Tests for protocol module."""

import pytest

from galahad_rgb.constants import (
    CMD_APPLY,
    CMD_INITIALIZE,
    CMD_RESET,
    CMD_SET_BRIGHTNESS,
    CMD_SET_EFFECT,
    CMD_SET_INDIVIDUAL_COLOR,
    CMD_SET_LED_COUNT,
    CMD_SET_ZONE_COLOR,
    DEFAULT_HEADER,
    MAX_LEDS_PER_PACKET,
    PACKET_SIZE,
    ZONE_ALL,
    ZONE_INNER,
    ZONE_OUTER,
)
from galahad_rgb.models import ColorSample
from galahad_rgb.protocol import (
    brightness_payload,
    check_packet,
    chunk_samples,
    encode_packet,
    flatten_led_colors,
)


class TestEncodePacket:
    """Tests for encode_packet function."""

    @pytest.mark.parametrize(
        "command",
        [
            CMD_INITIALIZE,
            CMD_SET_LED_COUNT,
            CMD_SET_ZONE_COLOR,
            CMD_SET_INDIVIDUAL_COLOR,
            CMD_SET_BRIGHTNESS,
            CMD_APPLY,
            CMD_RESET,
        ],
    )
    def test_frame_shape(self, command: int) -> None:
        """Every frame should be 64 bytes with report ID, header and command."""
        frame = encode_packet(command, b"\x01\x02\x03")
        assert len(frame) == PACKET_SIZE
        assert frame[0] == 0x00
        assert (frame[1], frame[2]) == DEFAULT_HEADER
        assert frame[3] == command

    def test_non_zone_payload_starts_at_byte_5(self) -> None:
        """Non-zone commands should place payload directly after the length."""
        frame = encode_packet(CMD_INITIALIZE, b"\x01\x00")
        assert frame[4] == 2
        assert frame[5:7] == b"\x01\x00"
        assert frame[7:] == bytes(PACKET_SIZE - 7)

    def test_zone_payload_starts_at_byte_6(self) -> None:
        """Zone commands should put the zone at byte 5 and payload at byte 6."""
        frame = encode_packet(CMD_SET_ZONE_COLOR, b"\xff\x80\x00", zone=ZONE_INNER)
        assert frame[4] == 3
        assert frame[5] == ZONE_INNER
        assert frame[6:9] == b"\xff\x80\x00"

    def test_zone_ignored_for_non_zone_commands(self) -> None:
        """A zone argument must not leak into non-zone frames."""
        frame = encode_packet(CMD_SET_BRIGHTNESS, b"\x32", zone=ZONE_OUTER)
        assert frame[5] == 0x32

    def test_empty_payload(self) -> None:
        """Commands without payload should be zero-filled after the header."""
        frame = encode_packet(CMD_RESET)
        assert frame[3] == CMD_RESET
        assert frame[4] == 0
        assert frame[5:] == bytes(PACKET_SIZE - 5)

    def test_truncates_zone_payload(self) -> None:
        """Oversized zone payloads should be truncated without raising."""
        frame = encode_packet(CMD_SET_ZONE_COLOR, bytes([0xFF] * 60))
        assert len(frame) == PACKET_SIZE
        assert frame[4] == PACKET_SIZE - 6
        assert frame[6:] == bytes([0xFF] * (PACKET_SIZE - 6))

    def test_truncates_plain_payload(self) -> None:
        """Oversized plain payloads keep the copied count in the length byte."""
        frame = encode_packet(CMD_SET_EFFECT, bytes(range(100)))
        assert frame[4] == PACKET_SIZE - 5
        assert frame[5:] == bytes(range(PACKET_SIZE - 5))

    def test_custom_header(self) -> None:
        """An auto-detected header should replace the default signature."""
        frame = encode_packet(CMD_APPLY, header=(0xAA, 0x55))
        assert frame[1:3] == b"\xaa\x55"

    def test_accepts_int_sequence(self) -> None:
        """Payload may be given as a list of ints."""
        frame = encode_packet(CMD_SET_LED_COUNT, [24])
        assert frame[5] == 24


class TestLedPayloads:
    """Tests for per-LED payload helpers."""

    def test_flatten_led_colors(self) -> None:
        """Samples should serialize as index, r, g, b."""
        samples = [ColorSample(0, 255, 0, 0), ColorSample(17, 1, 2, 3)]
        assert flatten_led_colors(samples) == bytes([0, 255, 0, 0, 17, 1, 2, 3])

    def test_chunk_24_samples(self) -> None:
        """24 samples should split into chunks of 14 and 10."""
        samples = [ColorSample(i, i, i, i) for i in range(24)]
        chunks = chunk_samples(samples)
        assert [len(chunk) for chunk in chunks] == [14, 10]
        assert chunks[1][0].index == 14

    def test_chunk_exact_multiple(self) -> None:
        """A multiple of the chunk size should not produce an empty chunk."""
        samples = [ColorSample(i, 0, 0, 0) for i in range(MAX_LEDS_PER_PACKET * 2)]
        assert [len(chunk) for chunk in chunk_samples(samples)] == [14, 14]

    def test_full_chunk_fits_frame(self) -> None:
        """A full chunk of LEDs should fit without truncation."""
        samples = [ColorSample(i, 10, 20, 30) for i in range(MAX_LEDS_PER_PACKET)]
        frame = encode_packet(CMD_SET_INDIVIDUAL_COLOR, flatten_led_colors(samples))
        assert frame[4] == MAX_LEDS_PER_PACKET * 4
        assert frame[6 + 13 * 4 : 6 + 14 * 4] == bytes([13, 10, 20, 30])


class TestBrightnessPayload:
    """Tests for brightness clamping."""

    @pytest.mark.parametrize(
        ("brightness", "expected"),
        [(0, 1), (1, 1), (50, 50), (100, 100), (150, 100)],
    )
    def test_clamps(self, brightness: int, expected: int) -> None:
        """Brightness should be clamped to 1-100 at the send boundary."""
        assert brightness_payload(brightness) == bytes([expected])


class TestCheckPacket:
    """Tests for check_packet function."""

    def test_valid_packet(self) -> None:
        """Encoded frames should pass the self-check."""
        result = check_packet(encode_packet(CMD_APPLY), expected_command=CMD_APPLY)
        assert result.valid
        assert result.errors == ()
        assert bool(result) is True

    def test_wrong_size(self) -> None:
        """Frames of the wrong length should fail."""
        result = check_packet(encode_packet(CMD_APPLY)[:63])
        assert not result.valid
        assert "Invalid packet size" in result.errors[0]

    def test_wrong_report_id(self) -> None:
        """A non-zero report ID should fail."""
        frame = bytearray(encode_packet(CMD_APPLY))
        frame[0] = 0x01
        result = check_packet(frame)
        assert not result.valid
        assert any("report ID" in error for error in result.errors)

    def test_wrong_header(self) -> None:
        """A different header pair should fail."""
        frame = encode_packet(CMD_APPLY, header=(0x5A, 0xA5))
        assert not check_packet(frame).valid
        assert check_packet(frame, header=(0x5A, 0xA5)).valid

    def test_wrong_command(self) -> None:
        """A mismatched command should fail only when one is expected."""
        frame = encode_packet(CMD_RESET)
        assert check_packet(frame).valid
        result = check_packet(frame, expected_command=CMD_APPLY)
        assert not result.valid
        assert "Invalid command: 0xFF, expected 0x09" in result.errors

    def test_collects_all_errors(self) -> None:
        """Every problem should be reported, not just the first."""
        frame = bytes([0x01, 0x00, 0x00, 0x00])
        result = check_packet(frame, expected_command=CMD_APPLY)
        assert len(result.errors) == 4
