"""
Bridge Assembly

Builds the bridge accessory and the fixed set of accessory managers for a
MyPlace system. Managers are chosen once at start-up from the initial
snapshot.
"""

import logging

from .accessory import AccessoryManager, CommandSink
from .aircon_manager import AirConManager
from .controls import Accessory, AccessoryInfo
from .fan_manager import FanManager
from .models import System
from .settings import Settings
from .store import ControlStore

logger = logging.getLogger(__name__)

BRIDGE_AID = 1


def new_bridge(version: str, system: System) -> Accessory:
    """Return the bridge accessory the managed accessories hang off."""
    return Accessory(
        aid=BRIDGE_AID,
        info=AccessoryInfo(
            name="MyPlace",
            model=system.touch_screen_model or "Unknown",
            serial_number="Unknown",
            firmware=f"MyPlace v{system.app_version} & AirKit v{version}",
        ),
    )


def create_managers(
    system: System,
    store: ControlStore,
    submit: CommandSink,
    settings: Settings,
) -> list[AccessoryManager]:
    """Create a zone manager and a fan manager for every aircon."""
    managers: list[AccessoryManager] = []

    for ac in system.aircons:
        logger.info(f"Adding accessories for the '{ac.name}' air-conditioner")
        managers.append(
            AirConManager(
                store,
                submit,
                ac,
                cool_threshold=settings.cool_threshold,
                heat_threshold=settings.heat_threshold,
                constant_zone_attempts=settings.constant_zone_attempts,
            )
        )
        managers.append(FanManager(submit, ac))

    return managers
