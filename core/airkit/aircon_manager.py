"""
AirCon Manager

Keeps one thermostat accessory per zone synchronized with an air-conditioning
unit, and derives the unit-wide power, mode, MyZone and damper states from
what the user asked of those thermostats.
"""

import logging
import threading
from dataclasses import dataclass

from .accessory import (
    AccessoryManager,
    CommandSink,
    ZONE_MYZONE_INDICATOR_ID,
    ZONE_THERMOSTAT_ID,
    make_zone_accessory_id,
)
from .commands import (
    Command,
    set_aircon_mode,
    set_aircon_power,
    set_my_zone,
    set_zone_state,
    set_zone_target_temp,
)
from .controls import (
    Accessory,
    AccessoryInfo,
    Characteristic,
    ContactSensorState,
    CurrentHeatingCoolingState,
    StatusLowBattery,
    TargetHeatingCoolingState,
    contact_sensor,
    thermostat,
)
from .models import AirCon, AirConMode, AirConPower, System, Zone, ZoneError, ZoneState
from .store import ControlStore

logger = logging.getLogger(__name__)

# Cool until we're a little below the target temperature. This lets the unit
# regulate the temperature itself; we only switch it off if it over-cools.
DEFAULT_COOL_THRESHOLD = -0.1

# Don't start heating until we're well below the target temperature, to avoid
# flip-flopping between heating and cooling when zones are set to AUTO.
DEFAULT_HEAT_THRESHOLD = -0.5

# Consecutive passes on which a constant zone may be sent a close command.
DEFAULT_CONSTANT_ZONE_ATTEMPTS = 3


@dataclass
class ZoneAccessories:
    """The accessories representing a single zone."""

    thermostat: Accessory
    my_zone_indicator: Accessory

    @property
    def current_temperature(self) -> Characteristic:
        return self.thermostat.characteristic("thermostat", "current_temperature")

    @property
    def target_temperature(self) -> Characteristic:
        return self.thermostat.characteristic("thermostat", "target_temperature")

    @property
    def current_state(self) -> Characteristic:
        return self.thermostat.characteristic("thermostat", "current_heating_cooling_state")

    @property
    def target_state(self) -> Characteristic:
        return self.thermostat.characteristic("thermostat", "target_heating_cooling_state")

    @property
    def battery(self) -> Characteristic:
        return self.thermostat.characteristic("thermostat", "status_low_battery")

    @property
    def my_zone(self) -> Characteristic:
        return self.my_zone_indicator.characteristic("contact_sensor", "contact_sensor_state")

    @classmethod
    def create(cls, ac: AirCon, zone: Zone) -> "ZoneAccessories":
        t = Accessory(
            aid=make_zone_accessory_id(ac, zone, ZONE_THERMOSTAT_ID),
            info=AccessoryInfo(
                name=f"{zone.name} {ac.name}",
                model="MyAir Zone",
                serial_number=f"{ac.id}.{zone.id}",
                firmware=ac.firmware,
            ),
        )
        t.add(thermostat())

        m = Accessory(
            aid=make_zone_accessory_id(ac, zone, ZONE_MYZONE_INDICATOR_ID),
            info=AccessoryInfo(
                name=f"{zone.name} MyZone",
                model="MyAir Zone",
                serial_number=f"{ac.id}.{zone.id}",
                firmware=ac.firmware,
            ),
        )
        m.add(contact_sensor())

        return cls(thermostat=t, my_zone_indicator=m)


def allowed_zone_modes(state: TargetHeatingCoolingState) -> tuple[bool, bool]:
    """Return whether a thermostat state allows its zone to be cooled and/or heated."""
    if state == TargetHeatingCoolingState.COOL:
        return True, False
    if state == TargetHeatingCoolingState.HEAT:
        return False, True
    if state == TargetHeatingCoolingState.AUTO:
        return True, True
    return False, False


class AirConManager(AccessoryManager):
    """Manages the zone thermostats of one air-conditioning unit."""

    def __init__(
        self,
        store: ControlStore,
        submit: CommandSink,
        aircon: AirCon,
        cool_threshold: float = DEFAULT_COOL_THRESHOLD,
        heat_threshold: float = DEFAULT_HEAT_THRESHOLD,
        constant_zone_attempts: int = DEFAULT_CONSTANT_ZONE_ATTEMPTS,
    ):
        self.aircon_id = aircon.id
        self.cool_threshold = cool_threshold
        self.heat_threshold = heat_threshold
        self.max_constant_zone_attempts = constant_zone_attempts

        self._submit = submit
        self._store = store
        self._lock = threading.Lock()
        self._aircon = aircon
        self._constant_zone_attempts = 0
        self._zones: dict[int, ZoneAccessories] = {}

        for zone in aircon.zones:
            a = ZoneAccessories.create(aircon, zone)
            key = f"myplace-{aircon.id}-{zone.id}-target-state"

            stored = store.get(key)
            if stored is not None:
                try:
                    a.target_state.set_value(TargetHeatingCoolingState(int(stored)))
                except ValueError:
                    logger.warning(f"Ignoring invalid stored target state {stored!r} for {key}")

            a.target_temperature.on_remote_update(self._on_target_temperature)
            a.target_state.on_remote_update(
                lambda value, key=key: self._on_target_state(key, value)
            )
            self._zones[zone.number] = a

        with self._lock:
            self._update(aircon)

    @property
    def constant_zone_attempts(self) -> int:
        """Consecutive passes on which a constant zone close was attempted."""
        return self._constant_zone_attempts

    def accessories(self) -> list[Accessory]:
        accessories = []
        for number in sorted(self._zones):
            a = self._zones[number]
            accessories += [a.thermostat, a.my_zone_indicator]
        return accessories

    def zone_accessories(self, number: int) -> ZoneAccessories:
        return self._zones[number]

    def reconcile(self, system: System) -> None:
        """Project a new snapshot onto the thermostats, then act on any drift."""
        ac = system.aircon_by_id.get(self.aircon_id)
        if ac is None:
            logger.warning(f"Aircon {self.aircon_id} missing from snapshot")
            return

        with self._lock:
            self._update(ac)
            commands = self._safe_apply()

        if commands:
            self._submit(commands)

    def update(self, system: System) -> None:
        """Project a new snapshot onto the thermostats without acting on it."""
        ac = system.aircon_by_id.get(self.aircon_id)
        if ac is None:
            logger.warning(f"Aircon {self.aircon_id} missing from snapshot")
            return

        with self._lock:
            self._update(ac)

    def apply(self) -> list[Command]:
        """Compute and submit the commands that move the unit toward the thermostats.

        Returns:
            The submitted command batch (empty if already in sync)
        """
        with self._lock:
            commands = self._safe_apply()

        if commands:
            self._submit(commands)
        return commands

    def _on_target_temperature(self, value: float) -> None:
        logger.info(f"{self.aircon_id} target temperature set to {value}")
        self.apply()

    def _on_target_state(self, key: str, value: TargetHeatingCoolingState) -> None:
        logger.info(f"{key} set to {value.name}")
        self._store.set(key, str(int(value)))
        self.apply()

    def _update(self, ac: AirCon) -> None:
        for zone in ac.zones:
            a = self._zones.get(zone.number)
            if a is None:
                logger.warning(f"No accessory for zone {zone.number} of {ac.id}")
                continue

            a.current_temperature.set_value(zone.current_temp)
            a.target_temperature.set_value(zone.target_temp)
            a.current_state.set_value(self._current_state(ac, zone))

            if zone.error == ZoneError.NONE:
                a.battery.set_value(StatusLowBattery.NORMAL)
            else:
                a.battery.set_value(StatusLowBattery.LOW)

            if zone.number == ac.my_zone_number:
                a.my_zone.set_value(ContactSensorState.DETECTED)
            else:
                a.my_zone.set_value(ContactSensorState.NOT_DETECTED)

        self._aircon = ac

    @staticmethod
    def _current_state(ac: AirCon, zone: Zone) -> CurrentHeatingCoolingState:
        if zone.state == ZoneState.CLOSED or ac.power == AirConPower.OFF:
            return CurrentHeatingCoolingState.OFF

        mode = ac.mode
        if mode == AirConMode.AUTO and ac.my_auto_mode in ("cool", "heat"):
            mode = AirConMode(ac.my_auto_mode)

        if mode == AirConMode.COOL:
            return CurrentHeatingCoolingState.COOL
        if mode == AirConMode.HEAT:
            return CurrentHeatingCoolingState.HEAT
        # vent and dry are reported as "off"
        return CurrentHeatingCoolingState.OFF

    def _safe_apply(self) -> list[Command]:
        # Runs on every remote edit; a bug here must not take the bridge down.
        try:
            return self._apply()
        except Exception as e:
            logger.error(f"Failed to reconcile {self.aircon_id}: {e}", exc_info=True)
            return []

    def _apply(self) -> list[Command]:
        ac = self._aircon
        zones = [z for z in ac.zones if z.number in self._zones]
        if not zones:
            logger.debug(f"{ac.id} has no managed zones")
            return []

        commands: list[Command] = []

        for zone in zones:
            target = self._zones[zone.number].target_temperature.value
            if zone.target_temp != target:
                commands.append(set_zone_target_temp(ac.id, zone, target))

        power, mode = self._target_mode(ac, zones)

        if power != ac.power:
            commands.append(set_aircon_power(ac.id, power))

        if power == AirConPower.OFF:
            return commands

        if mode != ac.mode:
            commands.append(set_aircon_mode(ac.id, mode))

        is_cooling = mode == AirConMode.COOL
        open_zones, closed_zones = self._partition_zones(is_cooling, zones)

        modified_non_constant_zones = False
        for zone in open_zones:
            if zone.state != ZoneState.OPEN:
                modified_non_constant_zones = True
                commands.append(set_zone_state(ac.id, zone, ZoneState.OPEN))

        my_zone = self._select_my_zone(is_cooling, open_zones)
        if my_zone is not None and my_zone.number != ac.my_zone_number:
            commands.append(set_my_zone(ac.id, my_zone))

        closed_constant_zones = False
        for zone in closed_zones:
            if zone.state == ZoneState.CLOSED:
                continue

            if ac.is_constant_zone(zone):
                closed_constant_zones = True
                if self._constant_zone_attempts >= self.max_constant_zone_attempts:
                    continue
            else:
                modified_non_constant_zones = True

            commands.append(set_zone_state(ac.id, zone, ZoneState.CLOSED))

        if modified_non_constant_zones:
            if self._constant_zone_attempts > self.max_constant_zone_attempts:
                logger.info(f"{ac.id}: enabling closing of constant zones")
            self._constant_zone_attempts = 0
        elif closed_constant_zones:
            self._constant_zone_attempts += 1
            if self._constant_zone_attempts == self.max_constant_zone_attempts + 1:
                logger.info(f"{ac.id}: disabling closing of constant zones")

        return commands

    def _target_mode(self, ac: AirCon, zones: list[Zone]) -> tuple[AirConPower, AirConMode]:
        """Return the desired power and mode for the unit.

        Cooling always wins: if any zone needs cooling the whole unit cools,
        and must reach temperature before it will be switched to heat.
        """
        needs_heating = False

        for zone in zones:
            # a zone without a sensor reports 0°C and would demand heat forever
            if not zone.has_temp_sensor:
                continue

            a = self._zones[zone.number]
            cool, heat = allowed_zone_modes(a.target_state.value)
            delta = a.current_temperature.value - a.target_temperature.value

            if cool and delta > self.cool_threshold:
                return AirConPower.ON, AirConMode.COOL

            if heat and delta < self.heat_threshold:
                needs_heating = True

        if needs_heating:
            return AirConPower.ON, AirConMode.HEAT

        return AirConPower.OFF, ac.mode

    def _partition_zones(self, is_cooling: bool, zones: list[Zone]) -> tuple[list[Zone], list[Zone]]:
        """Split zones into those that must be opened and those that must be closed."""
        open_zones, closed_zones = [], []

        for zone in zones:
            cool, heat = allowed_zone_modes(self._zones[zone.number].target_state.value)
            if (is_cooling and cool) or (not is_cooling and heat):
                open_zones.append(zone)
            else:
                closed_zones.append(zone)

        return open_zones, closed_zones

    def _select_my_zone(self, is_cooling: bool, zones: list[Zone]) -> Zone | None:
        """Return the open zone furthest from its target in the active direction."""
        best, best_delta = None, 0.0

        for zone in zones:
            # can't regulate against a zone whose temperature we can't trust
            if zone.error != ZoneError.NONE or not zone.has_temp_sensor:
                continue

            a = self._zones[zone.number]
            delta = a.current_temperature.value - a.target_temperature.value
            if not is_cooling:
                delta = -delta

            if best is None or delta > best_delta:
                best, best_delta = zone, delta

        return best
