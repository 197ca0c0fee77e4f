"""Custom exceptions for Galahad RGB."""


class GalahadError(Exception):
    """Base exception for Galahad RGB errors."""


class DeviceNotFoundError(GalahadError):
    """Raised when no compatible Galahad II pump is found."""

    def __init__(self, message: str = "No compatible Galahad II pump found") -> None:
        super().__init__(message)


class TransportError(GalahadError):
    """Base class for HID transport failures."""


class TransportOpenError(TransportError):
    """Raised when a handle to the pump endpoint cannot be acquired."""


class TransportWriteError(TransportError):
    """Raised when a single frame write fails."""


class BringUpError(GalahadError):
    """Raised when a step of the device bring-up sequence fails."""


class ConfigError(GalahadError, ValueError):
    """Raised when host-supplied settings are out of range."""


class ImageError(GalahadError):
    """Raised when a canvas image cannot be loaded."""
