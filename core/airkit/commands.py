"""
MyPlace Commands

A command is a single intended mutation of device state. Commands are applied,
in order, to a pending /setAircon request; commands that address the same
aircon or zone end up merged into one entry of that request.
"""

from dataclasses import dataclass
from typing import Any, Iterable

from .models import AirConMode, AirConPower, FanSpeed, Zone, ZoneState


@dataclass(frozen=True)
class Command:
    """One field of one aircon (or one of its zones) set to a value."""

    aircon_id: str
    field: str
    value: Any
    zone_id: str | None = None

    def __call__(self, request: dict[str, Any]) -> None:
        ac = request.setdefault(self.aircon_id, {})
        if self.zone_id is None:
            ac.setdefault("info", {})[self.field] = self.value
        else:
            ac.setdefault("zones", {}).setdefault(self.zone_id, {})[self.field] = self.value

    def __str__(self) -> str:
        target = self.aircon_id if self.zone_id is None else f"{self.aircon_id}/{self.zone_id}"
        return f"{target} {self.field}={self.value}"


def set_aircon_power(aircon_id: str, power: AirConPower) -> Command:
    """Turn an aircon on or off."""
    return Command(aircon_id, "state", AirConPower(power).value)


def set_aircon_mode(aircon_id: str, mode: AirConMode) -> Command:
    """Set the operating mode of an aircon."""
    return Command(aircon_id, "mode", AirConMode(mode).value)


def set_fan_speed(aircon_id: str, speed: FanSpeed) -> Command:
    """Set the fan speed of an aircon."""
    return Command(aircon_id, "fan", FanSpeed(speed).value)


def set_my_zone(aircon_id: str, zone: Zone) -> Command:
    """Select the zone the aircon regulates temperature against."""
    return Command(aircon_id, "myZone", zone.number)


def set_zone_state(aircon_id: str, zone: Zone, state: ZoneState) -> Command:
    """Open or close a zone's damper."""
    return Command(aircon_id, "state", ZoneState(state).value, zone_id=zone.id)


def set_zone_target_temp(aircon_id: str, zone: Zone, temperature: float) -> Command:
    """Set a zone's target temperature."""
    return Command(aircon_id, "setTemp", temperature, zone_id=zone.id)


def build_request(commands: Iterable[Command]) -> dict[str, Any]:
    """Merge commands into a single /setAircon request body."""
    request: dict[str, Any] = {}
    for command in commands:
        command(request)
    return request
