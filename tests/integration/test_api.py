# tests/integration/test_api.py
"""Integration tests for the accessory API.

The router is mounted on a bare FastAPI app; the module globals normally set
by the lifespan handler are patched in directly.
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

import api
from airkit.aircon_manager import AirConManager
from airkit.bridge import new_bridge
from airkit.commands import set_aircon_power
from airkit.control_loop import ControlLoop
from airkit.fan_manager import FanManager
from airkit.models import AirConPower


@pytest.fixture
def system(make_system, make_zone):
    return make_system(power="off", zones=[make_zone(1, current=25.0), make_zone(2)])


@pytest.fixture
def managers(system, store, submitted):
    ac = system.aircons[0]
    return [AirConManager(store, submitted.append, ac), FanManager(submitted.append, ac)]


@pytest.fixture
def client(monkeypatch, system, managers, history):
    loop = ControlLoop(client=None, managers=managers, history=history)
    loop.latest = system

    monkeypatch.setattr(api, "control_loop", loop)
    monkeypatch.setattr(api, "bridge", new_bridge("0.1.0", system))
    monkeypatch.setattr(api, "managers", managers)
    monkeypatch.setattr(api, "history_tracker", history)

    app = FastAPI()
    app.include_router(api.router)
    return TestClient(app)


def thermostat_aid(managers, number: int) -> int:
    return managers[0].zone_accessories(number).thermostat.aid


# ================================================================
# READ ENDPOINTS
# ================================================================
class TestReadEndpoints:

    def test_health(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["running"] is True

    def test_status(self, client):
        response = client.get("/api/status")

        assert response.status_code == 200
        assert response.json()["aircons"][0]["power"] == "off"

    def test_status_before_first_read(self, client, monkeypatch):
        monkeypatch.setattr(api.control_loop, "latest", None)

        assert client.get("/api/status").status_code == 503

    def test_accessories(self, client):
        accessories = client.get("/api/accessories").json()["accessories"]

        # bridge, two thermostats, two MyZone indicators and a fan
        assert len(accessories) == 6
        assert accessories[0]["name"] == "MyPlace"

    def test_accessory(self, client, managers):
        aid = thermostat_aid(managers, 1)

        data = client.get(f"/api/accessories/{aid}").json()

        assert data["name"] == "Zone 1 Downstairs"
        assert data["services"]["thermostat"]["current_temperature"]["value"] == 25.0

    def test_unknown_accessory(self, client):
        assert client.get("/api/accessories/999").status_code == 404

    def test_events(self, client, history):
        history.add_write(["ac1 state=on"], success=True)

        data = client.get("/api/events", params={"limit": 10}).json()

        assert data["writes"][0]["commands"] == ["ac1 state=on"]

    def test_events_limit_validated(self, client):
        assert client.get("/api/events", params={"limit": 0}).status_code == 422


# ================================================================
# WRITE ENDPOINT
# ================================================================
class TestWriteCharacteristic:

    def test_target_state_write_submits_commands(self, client, managers, submitted):
        aid = thermostat_aid(managers, 1)

        response = client.put(
            f"/api/accessories/{aid}/thermostat/target_heating_cooling_state",
            json={"value": 2},
        )

        assert response.status_code == 200
        assert response.json()["services"]["thermostat"]["target_heating_cooling_state"]["value"] == 2
        assert submitted[0][0] == set_aircon_power("ac1", AirConPower.ON)

    def test_read_only_characteristic(self, client, managers, submitted):
        aid = thermostat_aid(managers, 1)

        response = client.put(
            f"/api/accessories/{aid}/thermostat/current_temperature", json={"value": 20}
        )

        assert response.status_code == 400
        assert submitted == []

    def test_out_of_range(self, client, managers):
        aid = thermostat_aid(managers, 1)

        response = client.put(
            f"/api/accessories/{aid}/thermostat/target_temperature", json={"value": 40}
        )

        assert response.status_code == 400

    def test_unknown_characteristic(self, client, managers):
        aid = thermostat_aid(managers, 1)

        response = client.put(f"/api/accessories/{aid}/thermostat/swing", json={"value": 1})

        assert response.status_code == 404

    def test_fan_speed_write(self, client, managers, submitted):
        aid = managers[1].accessories()[0].aid

        response = client.put(f"/api/accessories/{aid}/fan/rotation_speed", json={"value": 90})

        assert response.status_code == 200
        assert submitted[0][0].value == "high"
