"""
MyPlace Data Models

Immutable snapshot of the system state read from the touch panel. A new
snapshot is decoded on every poll and replaces the previous one wholesale.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .exceptions import SnapshotError


class AirConPower(str, Enum):
    """Power state of an air-conditioning unit."""

    ON = "on"
    OFF = "off"


class AirConMode(str, Enum):
    """Operating mode of an air-conditioning unit."""

    HEAT = "heat"
    COOL = "cool"
    VENT = "vent"
    DRY = "dry"
    AUTO = "myauto"


class FanSpeed(str, Enum):
    """Fan speed of an air-conditioning unit."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    AUTO_HARDWARE = "auto"  # the unit's own auto fan
    AUTO_SOFTWARE = "autoAA"  # MyFan, managed by the touch panel

    @property
    def is_auto(self) -> bool:
        return self in (FanSpeed.AUTO_HARDWARE, FanSpeed.AUTO_SOFTWARE)


class ZoneState(str, Enum):
    """Damper state of a zone."""

    OPEN = "open"
    CLOSED = "close"  # the API uses 'close', without the trailing 'd'


class ZoneError(Enum):
    """Sensor error reported for a zone."""

    NONE = 0
    NO_SIGNAL = 1
    OTHER = -1

    @classmethod
    def from_code(cls, code: int) -> "ZoneError":
        if code == 0:
            return cls.NONE
        if code == 1:
            return cls.NO_SIGNAL
        return cls.OTHER


def _enum(enum_cls, value, what: str):
    try:
        return enum_cls(value)
    except ValueError:
        raise SnapshotError(f"Unrecognised {what}: {value!r}")


@dataclass(frozen=True)
class Zone:
    """A vent or collection of vents connected to a ducted unit."""

    id: str
    number: int  # 1-based, the unit's own zone numbering
    name: str
    state: ZoneState
    damper_percentage: int  # 5 - 1000 when open
    has_temp_sensor: bool
    current_temp: float
    target_temp: float
    error_code: int = 0

    @property
    def error(self) -> ZoneError:
        return ZoneError.from_code(self.error_code)

    @property
    def is_open(self) -> bool:
        return self.state == ZoneState.OPEN

    @classmethod
    def from_dict(cls, zone_id: str, data: dict[str, Any]) -> "Zone":
        """Create from the touch panel's zone payload."""
        try:
            number = int(data["number"])
        except (KeyError, TypeError, ValueError) as e:
            raise SnapshotError(f"Zone {zone_id} has no valid number: {e}")

        return cls(
            id=zone_id,
            number=number,
            name=data.get("name", zone_id),
            state=_enum(ZoneState, data.get("state", "close"), f"zone state for {zone_id}"),
            damper_percentage=int(data.get("value", 0)),
            has_temp_sensor=int(data.get("type", 0)) != 0,
            current_temp=float(data.get("measuredTemp", 0.0)),
            target_temp=float(data.get("setTemp", 0.0)),
            error_code=int(data.get("error", 0)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "number": self.number,
            "name": self.name,
            "state": self.state.value,
            "damper_percentage": self.damper_percentage,
            "has_temp_sensor": self.has_temp_sensor,
            "current_temp": self.current_temp,
            "target_temp": self.target_temp,
            "error": self.error.name.lower(),
        }


@dataclass(frozen=True)
class AirCon:
    """A ducted air-conditioning unit and its zones."""

    id: str
    number: int
    name: str
    power: AirConPower
    mode: AirConMode
    fan_speed: FanSpeed
    my_zone_number: int = 0
    constant_zone_numbers: tuple[int, ...] = ()
    my_fan_enabled: bool = False
    my_temp_enabled: bool = False
    my_auto_enabled: bool = False
    my_auto_mode: str = ""
    my_sleep_saver_enabled: bool = False
    filter_status: int = 0
    firmware_major: int = 0
    firmware_minor: int = 0
    zones: tuple[Zone, ...] = ()
    zone_by_id: dict[str, Zone] = field(default_factory=dict, compare=False)

    @property
    def firmware(self) -> str:
        return f"{self.firmware_major}.{self.firmware_minor}"

    def zone(self, number: int) -> Zone | None:
        """Return the zone with the given zone number."""
        for z in self.zones:
            if z.number == number:
                return z
        return None

    def is_constant_zone(self, zone: Zone) -> bool:
        """Return True if the firmware refuses to fully close this zone."""
        return zone.number in self.constant_zone_numbers

    @classmethod
    def from_dict(cls, aircon_id: str, number: int, data: dict[str, Any]) -> "AirCon":
        """Create from the touch panel's aircon payload."""
        info = data.get("info")
        if not isinstance(info, dict):
            raise SnapshotError(f"Aircon {aircon_id} has no info section")

        zone_data = data.get("zones") or {}
        zones = sorted(
            (Zone.from_dict(zid, z) for zid, z in zone_data.items()),
            key=lambda z: z.number,
        )

        constants = tuple(
            int(info[k])
            for k in ("constant1", "constant2", "constant3")
            if info.get(k)
        )

        return cls(
            id=aircon_id,
            number=number,
            name=info.get("name", aircon_id),
            power=_enum(AirConPower, info.get("state", "off"), f"power state for {aircon_id}"),
            mode=_enum(AirConMode, info.get("mode", "cool"), f"mode for {aircon_id}"),
            fan_speed=_enum(FanSpeed, info.get("fan", "auto"), f"fan speed for {aircon_id}"),
            my_zone_number=int(info.get("myZone", 0)),
            constant_zone_numbers=constants,
            my_fan_enabled=bool(info.get("aaAutoFanModeEnabled", False)),
            my_temp_enabled=bool(info.get("climateControlModeEnabled", False)),
            my_auto_enabled=bool(info.get("myAutoModeEnabled", False)),
            my_auto_mode=info.get("myAutoModeCurrentSetMode", ""),
            my_sleep_saver_enabled=bool(info.get("quietNightModeEnabled", False)),
            filter_status=int(info.get("filterCleanStatus", 0)),
            firmware_major=int(info.get("cbFWRevMajor", 0)),
            firmware_minor=int(info.get("cbFWRevMinor", 0)),
            zones=tuple(zones),
            zone_by_id={z.id: z for z in zones},
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "power": self.power.value,
            "mode": self.mode.value,
            "fan_speed": self.fan_speed.value,
            "my_zone": self.my_zone_number,
            "constant_zones": list(self.constant_zone_numbers),
            "my_fan_enabled": self.my_fan_enabled,
            "firmware": self.firmware,
            "zones": [z.to_dict() for z in self.zones],
        }


@dataclass(frozen=True)
class System:
    """One complete read of the MyPlace system."""

    app_version: str
    touch_screen_model: str = ""
    needs_update: bool = False
    has_aircons: bool = True
    has_lights: bool = False
    aircons: tuple[AirCon, ...] = ()
    aircon_by_id: dict[str, AirCon] = field(default_factory=dict, compare=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "System":
        """Create from the /getSystemData payload.

        Aircons are ordered by ID; zones by zone number.

        Raises:
            SnapshotError: If the payload is malformed
        """
        if not isinstance(data, dict):
            raise SnapshotError("System payload is not an object")

        details = data.get("system") or {}
        try:
            aircons = [
                AirCon.from_dict(acid, i + 1, ac)
                for i, (acid, ac) in enumerate(sorted((data.get("aircons") or {}).items()))
            ]
        except (TypeError, ValueError, AttributeError) as e:
            raise SnapshotError(f"Malformed system payload: {e}")

        return cls(
            app_version=details.get("myAppRev", ""),
            touch_screen_model=details.get("tspModel", ""),
            needs_update=bool(details.get("needsUpdate", False)),
            has_aircons=bool(details.get("hasAircons", True)),
            has_lights=bool(details.get("hasLights", False)),
            aircons=tuple(aircons),
            aircon_by_id={ac.id: ac for ac in aircons},
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "app_version": self.app_version,
            "touch_screen_model": self.touch_screen_model,
            "needs_update": self.needs_update,
            "aircons": [ac.to_dict() for ac in self.aircons],
        }
