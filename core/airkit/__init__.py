"""AirKit MyPlace accessory bridge package."""

__version__ = "0.1.0"

# Define public API
__all__ = [
    "AirConManager",
    "ControlLoop",
    "FanManager",
    "MyPlaceClient",
    "Settings",
    "System",
    "load_settings",
]

# Import settings
from .settings import Settings, load_settings

# Import models
from .models import System

# Import MyPlace client
from .myplace_client import MyPlaceClient

# Import managers and control loop
from .aircon_manager import AirConManager
from .fan_manager import FanManager
from .control_loop import ControlLoop
