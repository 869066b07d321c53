"""
AirKit Custom Exceptions

Simple exception hierarchy for error handling.
"""


class AirKitError(Exception):
    """Base exception for AirKit."""

    pass


class ConfigurationError(AirKitError):
    """Configuration is invalid."""

    pass


class DeviceConnectionError(AirKitError):
    """Cannot communicate with the MyPlace touch panel."""

    pass


class DeviceTimeoutError(DeviceConnectionError):
    """The touch panel kept returning empty payloads until the deadline."""

    pass


class SnapshotError(AirKitError):
    """The system state returned by the touch panel could not be decoded."""

    pass


class CommandRejectedError(AirKitError):
    """The touch panel refused a write."""

    def __init__(self, reason: str):
        super().__init__(reason or "command rejected by touch panel")
        self.reason = reason


class CharacteristicError(AirKitError):
    """A remote write to an accessory characteristic is invalid."""

    pass
