# tests/conftest.py
"""Shared pytest fixtures for AirKit tests.

Snapshots are built from payloads shaped like the touch panel's
/getSystemData response, so every test exercises the real decoder.
"""

import pytest

from airkit.history import HistoryTracker
from airkit.models import System
from airkit.store import ControlStore


def zone_payload(
    number: int,
    state: str = "open",
    current: float = 22.0,
    target: float = 22.0,
    error: int = 0,
    name: str | None = None,
    value: int = 100,
    sensor: int = 1,
) -> dict:
    return {
        "number": number,
        "name": name or f"Zone {number}",
        "state": state,
        "value": value,
        "type": sensor,
        "measuredTemp": current,
        "setTemp": target,
        "error": error,
    }


def system_payload(
    zones: list[dict] | None = None,
    power: str = "on",
    mode: str = "cool",
    fan: str = "medium",
    my_zone: int = 1,
    constants: tuple[int, ...] = (),
    my_fan: bool = False,
    aircon_id: str = "ac1",
    app_version: str = "15.1",
) -> dict:
    zones = zones if zones is not None else [zone_payload(1)]
    info = {
        "name": "Downstairs",
        "state": power,
        "mode": mode,
        "fan": fan,
        "myZone": my_zone,
        "aaAutoFanModeEnabled": my_fan,
        "cbFWRevMajor": 9,
        "cbFWRevMinor": 4,
    }
    for i, number in enumerate(constants):
        info[f"constant{i + 1}"] = number

    return {
        "system": {"myAppRev": app_version, "tspModel": "tsp7"},
        "aircons": {
            aircon_id: {
                "info": info,
                "zones": {f"z{z['number']:02d}": z for z in zones},
            }
        },
    }


# ----------------------------------------------------------------
# Snapshot fixtures
# ----------------------------------------------------------------
@pytest.fixture
def make_zone():
    """Factory for zone payloads."""
    return zone_payload


@pytest.fixture
def make_payload():
    """Factory for raw /getSystemData payloads."""
    return system_payload


@pytest.fixture
def make_system():
    """Factory for decoded System snapshots."""

    def _make(**kwargs) -> System:
        return System.from_dict(system_payload(**kwargs))

    return _make


# ----------------------------------------------------------------
# Collaborator fixtures
# ----------------------------------------------------------------
@pytest.fixture
def store(tmp_path) -> ControlStore:
    """Control store in a temporary directory."""
    return ControlStore(str(tmp_path))


@pytest.fixture
def submitted() -> list:
    """Records every command batch handed off by a manager."""
    return []


@pytest.fixture
def history() -> HistoryTracker:
    return HistoryTracker()
