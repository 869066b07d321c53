# tests/unit/test_commands.py
"""Tests for commands and /setAircon request building."""

from airkit.commands import (
    build_request,
    set_aircon_mode,
    set_aircon_power,
    set_fan_speed,
    set_my_zone,
    set_zone_state,
    set_zone_target_temp,
)
from airkit.models import AirConMode, AirConPower, FanSpeed, ZoneState


class TestBuildRequest:

    def test_commands_merge_into_one_request(self, make_system, make_zone):
        ac = make_system(zones=[make_zone(1), make_zone(2)]).aircons[0]

        request = build_request(
            [
                set_aircon_power("ac1", AirConPower.ON),
                set_aircon_mode("ac1", AirConMode.COOL),
                set_zone_state("ac1", ac.zone(1), ZoneState.OPEN),
                set_zone_target_temp("ac1", ac.zone(1), 21.0),
                set_zone_state("ac1", ac.zone(2), ZoneState.CLOSED),
                set_my_zone("ac1", ac.zone(1)),
            ]
        )

        assert request == {
            "ac1": {
                "info": {"state": "on", "mode": "cool", "myZone": 1},
                "zones": {
                    "z01": {"state": "open", "setTemp": 21.0},
                    "z02": {"state": "close"},
                },
            }
        }

    def test_later_command_wins(self):
        request = build_request(
            [set_fan_speed("ac1", FanSpeed.LOW), set_fan_speed("ac1", FanSpeed.AUTO_SOFTWARE)]
        )

        assert request == {"ac1": {"info": {"fan": "autoAA"}}}

    def test_multiple_aircons(self):
        request = build_request(
            [set_aircon_power("ac1", AirConPower.OFF), set_aircon_power("ac2", AirConPower.ON)]
        )

        assert request == {"ac1": {"info": {"state": "off"}}, "ac2": {"info": {"state": "on"}}}

    def test_empty(self):
        assert build_request([]) == {}


class TestCommand:

    def test_equality(self):
        assert set_aircon_power("ac1", AirConPower.ON) == set_aircon_power("ac1", "on")

    def test_str(self, make_system):
        zone = make_system().aircons[0].zone(1)

        assert str(set_aircon_power("ac1", AirConPower.ON)) == "ac1 state=on"
        assert str(set_zone_target_temp("ac1", zone, 22.0)) == "ac1/z01 setTemp=22.0"
