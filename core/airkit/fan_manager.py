"""
Fan Manager

Exposes an air-conditioning unit's fan speed as a fan accessory.

There is no fan accessory with an "auto" setting, so the accessory is
presented as an override of the auto setting: when the accessory is inactive
the unit's fan runs on auto, when it is active the fan runs at the chosen
speed. This gives natural voice phrases such as "turn off the fan speed
override".
"""

import logging
import threading

from .accessory import (
    AC_FAN_SPEED_OVERRIDE_ID,
    AccessoryManager,
    CommandSink,
    make_aircon_accessory_id,
)
from .commands import set_fan_speed
from .controls import Accessory, AccessoryInfo, Active, Characteristic, fan
from .models import AirCon, FanSpeed, System

logger = logging.getLogger(__name__)

# Upper bounds of the rotation speed ranges that map to each fan speed.
LOW_SPEED_MAX = 33.333
MEDIUM_SPEED_MAX = 66.666


def marshal_fan_speed(speed: FanSpeed) -> float:
    """Convert a fan speed to a rotation speed percentage."""
    if speed == FanSpeed.HIGH:
        return 100
    if speed == FanSpeed.MEDIUM:
        return 50
    if speed == FanSpeed.LOW:
        return 25
    return 0


def unmarshal_fan_speed(value: float, auto_speed: FanSpeed) -> FanSpeed:
    """Convert a rotation speed percentage to a fan speed."""
    if value == 0:
        return auto_speed
    if value <= LOW_SPEED_MAX:
        return FanSpeed.LOW
    if value <= MEDIUM_SPEED_MAX:
        return FanSpeed.MEDIUM
    return FanSpeed.HIGH


class FanManager(AccessoryManager):
    """Manages the fan speed override accessory of one air-conditioning unit."""

    def __init__(self, submit: CommandSink, aircon: AirCon):
        self.aircon_id = aircon.id
        self._submit = submit
        self._lock = threading.Lock()
        self._auto_speed = FanSpeed.AUTO_HARDWARE
        self._prev_speed = FanSpeed.MEDIUM

        self._accessory = Accessory(
            aid=make_aircon_accessory_id(aircon, AC_FAN_SPEED_OVERRIDE_ID),
            info=AccessoryInfo(
                name=f"{aircon.name} Fan Speed Override",
                model="MyAir Air Conditioner Fan Speed Override",
                serial_number=aircon.id,
                firmware=aircon.firmware,
            ),
        )
        self._accessory.add(fan())

        self.active.on_remote_update(self._set_fan_active)
        self.speed.on_remote_update(self._set_fan_speed)

        with self._lock:
            self._update(aircon)

    @property
    def active(self) -> Characteristic:
        return self._accessory.characteristic("fan", "active")

    @property
    def speed(self) -> Characteristic:
        return self._accessory.characteristic("fan", "rotation_speed")

    @property
    def auto_speed(self) -> FanSpeed:
        return self._auto_speed

    @property
    def previous_speed(self) -> FanSpeed:
        return self._prev_speed

    def accessories(self) -> list[Accessory]:
        return [self._accessory]

    def reconcile(self, system: System) -> None:
        ac = system.aircon_by_id.get(self.aircon_id)
        if ac is None:
            logger.warning(f"Aircon {self.aircon_id} missing from snapshot")
            return

        with self._lock:
            self._update(ac)

    def _update(self, ac: AirCon) -> None:
        if ac.fan_speed.is_auto:
            self.active.set_value(Active.INACTIVE)
        else:
            self._prev_speed = ac.fan_speed
            self.active.set_value(Active.ACTIVE)
            self.speed.set_value(marshal_fan_speed(ac.fan_speed))

        if ac.my_fan_enabled:
            self._auto_speed = FanSpeed.AUTO_SOFTWARE
        else:
            self._auto_speed = FanSpeed.AUTO_HARDWARE

    def _set_fan_active(self, value: Active) -> None:
        with self._lock:
            speed = self._prev_speed if value == Active.ACTIVE else self._auto_speed

        logger.info(f"{self.aircon_id} fan override {value.name.lower()}, fan speed -> {speed.value}")
        self._submit([set_fan_speed(self.aircon_id, speed)])

    def _set_fan_speed(self, value: float) -> None:
        with self._lock:
            speed = unmarshal_fan_speed(value, self._auto_speed)

        logger.info(f"{self.aircon_id} rotation speed {value}, fan speed -> {speed.value}")
        self._submit([set_fan_speed(self.aircon_id, speed)])
