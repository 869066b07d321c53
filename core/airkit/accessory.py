"""
Accessory Managers

An accessory manager keeps a set of accessories synchronized with one
air-conditioning unit. Managers are created once at start-up; the control
loop hands every new snapshot to each of them.
"""

from abc import ABC, abstractmethod
from typing import Callable

from .commands import Command
from .controls import Accessory
from .models import AirCon, System, Zone

# Hands a command batch to the control loop without blocking.
CommandSink = Callable[[list[Command]], None]

# Accessory IDs within an aircon.
AC_FAN_SPEED_OVERRIDE_ID = 1

# Accessory IDs within a zone.
ZONE_THERMOSTAT_ID = 1
ZONE_MYZONE_INDICATOR_ID = 2


def make_aircon_accessory_id(ac: AirCon, id: int) -> int:
    return ac.number << 56 | id


def make_zone_accessory_id(ac: AirCon, zone: Zone, id: int) -> int:
    return ac.number << 56 | zone.number << 48 | id


class AccessoryManager(ABC):
    """Synchronizes accessories with the state of one aircon."""

    @abstractmethod
    def accessories(self) -> list[Accessory]:
        """Return the managed accessories."""

    @abstractmethod
    def reconcile(self, system: System) -> None:
        """Update the accessories from a new snapshot and act on any drift."""
