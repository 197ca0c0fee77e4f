"""Device discovery and HID transport for Galahad II pumps."""

import contextlib
import logging
from typing import Any, Protocol

import hid

from galahad_rgb.constants import (
    PACKET_SIZE,
    SUPPORTED_PIDS,
    VENDOR_ID,
    VENDOR_USAGE_PAGE_MAX,
    VENDOR_USAGE_PAGE_MIN,
)
from galahad_rgb.exceptions import (
    DeviceNotFoundError,
    TransportOpenError,
    TransportWriteError,
)
from galahad_rgb.models import DeviceProfile, get_profile

logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Raw frame transport to one pump endpoint."""

    @property
    def product_id(self) -> int | None: ...

    def open(self) -> None:
        """Acquire the handle. Raises TransportOpenError on failure."""
        ...

    def write(self, frame: bytes) -> None:
        """Write one frame. Raises TransportWriteError on failure."""
        ...

    def close(self) -> None: ...


def endpoint_matches(
    profile: DeviceProfile | None,
    interface: int,
    usage: int,
    usage_page: int,
) -> bool:
    """Decide whether a HID endpoint is the pump's lighting endpoint.

    A profile that names an exact interface and/or usage page accepts only
    endpoints matching every field it names. Without such a profile, any
    vendor-defined usage page (0xFF00-0xFFFF) or interface 0/1 is accepted.

    Args:
        profile: Profile of the model being matched, if known.
        interface: Endpoint interface number.
        usage: Endpoint usage. Not consulted by the rule, kept for logging.
        usage_page: Endpoint usage page.

    Returns:
        True if the endpoint should be used.
    """
    if profile is not None and (
        profile.interface is not None or profile.usage_page is not None
    ):
        if profile.interface is not None and interface != profile.interface:
            return False
        return profile.usage_page is None or usage_page == profile.usage_page

    vendor_page = VENDOR_USAGE_PAGE_MIN <= usage_page <= VENDOR_USAGE_PAGE_MAX
    matched = vendor_page or interface in (0, 1)
    logger.debug(
        "Endpoint validation: %s (interface=%d, usage=0x%04X, usage_page=0x%04X)",
        matched,
        interface,
        usage,
        usage_page,
    )
    return matched


def _info_matches(dev_info: dict[str, Any]) -> bool:
    return endpoint_matches(
        get_profile(dev_info["product_id"]),
        dev_info.get("interface_number", -1),
        dev_info.get("usage", 0),
        dev_info.get("usage_page", 0),
    )


def enumerate_lianli_devices() -> list[dict[str, Any]]:
    """Enumerate every HID endpoint with the Lian Li vendor ID.

    Returns:
        List of device info dictionaries from hidapi.
    """
    devices: list[dict[str, Any]] = hid.enumerate(VENDOR_ID, 0)
    return devices


def enumerate_galahad_endpoints() -> list[dict[str, Any]]:
    """Enumerate supported pump endpoints that pass the match predicate."""
    return [
        dev
        for dev in enumerate_lianli_devices()
        if dev["product_id"] in SUPPORTED_PIDS and _info_matches(dev)
    ]


def find_device_info(product_id: int | None = None) -> dict[str, Any]:
    """Find the lighting endpoint of a connected pump.

    Args:
        product_id: Restrict the search to one model, or None for any.

    Returns:
        Device info dictionary from hidapi.

    Raises:
        DeviceNotFoundError: If no compatible endpoint is found.
    """
    for dev_info in enumerate_galahad_endpoints():
        if product_id is not None and dev_info["product_id"] != product_id:
            continue
        return dev_info

    raise DeviceNotFoundError


class HIDTransport:
    """hidapi-backed transport writing 64-byte output reports.

    Example:
        transport = HIDTransport()
        transport.open()
        transport.write(encode_packet(CMD_APPLY))
        transport.close()
    """

    def __init__(self, product_id: int | None = None) -> None:
        """Initialize the transport.

        Args:
            product_id: Model to open, or None for the first pump found.
        """
        self._requested_pid = product_id
        self._device: hid.device | None = None
        self._device_info: dict[str, Any] | None = None

    @property
    def product_id(self) -> int | None:
        """Product ID of the opened endpoint."""
        if self._device_info is None:
            return self._requested_pid
        return self._device_info.get("product_id")

    @property
    def is_open(self) -> bool:
        return self._device is not None

    def open(self) -> None:
        """Open the pump's lighting endpoint.

        Raises:
            TransportOpenError: If no endpoint is found or it cannot be opened.
        """
        self.close()
        try:
            self._device_info = find_device_info(self._requested_pid)
        except DeviceNotFoundError as e:
            raise TransportOpenError(str(e)) from e

        device = hid.device()
        try:
            device.open_path(self._device_info["path"])
        except OSError as e:
            msg = f"Failed to open device: {e}"
            raise TransportOpenError(msg) from e
        self._device = device

    def write(self, frame: bytes) -> None:
        """Write one frame to the pump.

        Raises:
            TransportWriteError: If the handle is closed or the write fails.
        """
        if self._device is None:
            msg = "Device not opened"
            raise TransportWriteError(msg)
        try:
            result = self._device.write(frame)
        except (OSError, ValueError) as e:
            msg = f"Failed to write frame: {e}"
            raise TransportWriteError(msg) from e
        if result < 0:
            msg = f"Frame rejected by device (result={result})"
            raise TransportWriteError(msg)
        if result < PACKET_SIZE:
            logger.debug("Short write: %d of %d bytes", result, PACKET_SIZE)

    def close(self) -> None:
        """Release the handle. Safe to call when already closed."""
        if self._device is not None:
            with contextlib.suppress(OSError):
                self._device.close()
            self._device = None
