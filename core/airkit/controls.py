"""
Accessory Controls

In-process model of the accessory surface: accessories own services, services
own characteristics. Programmatic pushes (``set_value``) never notify; remote
writes (``remote_update``) validate, store and notify listeners.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Callable

from .exceptions import CharacteristicError


MANUFACTURER = "Advantage Air & James Harris"


class TargetHeatingCoolingState(IntEnum):
    OFF = 0
    HEAT = 1
    COOL = 2
    AUTO = 3


class CurrentHeatingCoolingState(IntEnum):
    OFF = 0
    HEAT = 1
    COOL = 2


class StatusLowBattery(IntEnum):
    NORMAL = 0
    LOW = 1


class ContactSensorState(IntEnum):
    DETECTED = 0
    NOT_DETECTED = 1


class Active(IntEnum):
    INACTIVE = 0
    ACTIVE = 1


class Characteristic:
    """A single observable value of a service."""

    def __init__(
        self,
        name: str,
        value: Any,
        min_value: float | None = None,
        max_value: float | None = None,
        step: float | None = None,
        writable: bool = False,
        valid_values: type[IntEnum] | None = None,
    ):
        self.name = name
        self.min_value = min_value
        self.max_value = max_value
        self.step = step
        self.writable = writable
        self.valid_values = valid_values
        self._value = value
        self._listeners: list[Callable[[Any], None]] = []

    @property
    def value(self) -> Any:
        return self._value

    def set_value(self, value: Any) -> None:
        """Push a value from the device side without notifying listeners."""
        self._value = value

    def on_remote_update(self, callback: Callable[[Any], None]) -> None:
        """Register a callback for values committed by a remote controller."""
        self._listeners.append(callback)

    def remote_update(self, value: Any) -> None:
        """Commit a value written by a remote controller.

        Raises:
            CharacteristicError: If the characteristic is read-only or the
                value is out of range
        """
        if not self.writable:
            raise CharacteristicError(f"{self.name} is read-only")

        value = self._validate(value)
        self._value = value

        for callback in self._listeners:
            callback(value)

    def _validate(self, value: Any) -> Any:
        if self.valid_values is not None:
            try:
                return self.valid_values(int(value))
            except (TypeError, ValueError):
                raise CharacteristicError(f"{value!r} is not a valid {self.name}")

        try:
            value = float(value)
        except (TypeError, ValueError):
            raise CharacteristicError(f"{value!r} is not a valid {self.name}")

        if self.min_value is not None and value < self.min_value:
            raise CharacteristicError(f"{self.name} must be >= {self.min_value}")
        if self.max_value is not None and value > self.max_value:
            raise CharacteristicError(f"{self.name} must be <= {self.max_value}")

        # snap to the nearest step, counted from the minimum
        if self.step:
            base = self.min_value or 0
            value = round(base + round((value - base) / self.step) * self.step, 6)
        return value

    def to_dict(self) -> dict[str, Any]:
        value = self._value
        if isinstance(value, IntEnum):
            value = int(value)
        data = {"value": value, "writable": self.writable}
        if self.min_value is not None:
            data.update(min=self.min_value, max=self.max_value, step=self.step)
        return data


class Service:
    """A named group of characteristics."""

    def __init__(self, name: str, *characteristics: Characteristic):
        self.name = name
        self.characteristics = {c.name: c for c in characteristics}

    def __getitem__(self, name: str) -> Characteristic:
        return self.characteristics[name]

    def to_dict(self) -> dict[str, Any]:
        return {name: c.to_dict() for name, c in self.characteristics.items()}


@dataclass
class AccessoryInfo:
    name: str
    model: str
    serial_number: str
    firmware: str
    manufacturer: str = MANUFACTURER


@dataclass
class Accessory:
    aid: int
    info: AccessoryInfo
    services: dict[str, Service] = field(default_factory=dict)

    def add(self, service: Service) -> Service:
        self.services[service.name] = service
        return service

    def characteristic(self, service: str, name: str) -> Characteristic:
        """Look up a characteristic.

        Raises:
            KeyError: If the service or characteristic does not exist
        """
        return self.services[service][name]

    def to_dict(self) -> dict[str, Any]:
        return {
            "aid": self.aid,
            "name": self.info.name,
            "manufacturer": self.info.manufacturer,
            "model": self.info.model,
            "serial_number": self.info.serial_number,
            "firmware": self.info.firmware,
            "services": {name: s.to_dict() for name, s in self.services.items()},
        }


def thermostat() -> Service:
    """Create a thermostat service with AirKit's temperature ranges."""
    return Service(
        "thermostat",
        Characteristic(
            "current_heating_cooling_state",
            CurrentHeatingCoolingState.OFF,
            valid_values=CurrentHeatingCoolingState,
        ),
        Characteristic(
            "target_heating_cooling_state",
            TargetHeatingCoolingState.OFF,
            writable=True,
            valid_values=TargetHeatingCoolingState,
        ),
        Characteristic("current_temperature", 0.0, min_value=0, max_value=100, step=0.1),
        Characteristic(
            "target_temperature", 21.0, min_value=16, max_value=32, step=1, writable=True
        ),
        Characteristic(
            "status_low_battery", StatusLowBattery.NORMAL, valid_values=StatusLowBattery
        ),
    )


def fan() -> Service:
    """Create a fan service with an active toggle and a rotation speed."""
    return Service(
        "fan",
        Characteristic("active", Active.INACTIVE, writable=True, valid_values=Active),
        Characteristic(
            "rotation_speed", 0.0, min_value=0, max_value=100, step=1, writable=True
        ),
    )


def contact_sensor() -> Service:
    """Create a contact sensor service."""
    return Service(
        "contact_sensor",
        Characteristic(
            "contact_sensor_state",
            ContactSensorState.NOT_DETECTED,
            valid_values=ContactSensorState,
        ),
    )
