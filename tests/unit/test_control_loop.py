# tests/unit/test_control_loop.py
"""Tests for the polling/writing control loop.

Test Coverage:
- Debouncing of command batches into a single write
- Polling and fan-out of snapshots to managers
- Poll and write failures never stop the loop
- Bounded command queue
"""

import asyncio

import pytest

from airkit.commands import set_aircon_mode, set_aircon_power, set_fan_speed
from airkit.control_loop import ControlLoop, read_initial_state
from airkit.exceptions import CommandRejectedError, DeviceConnectionError
from airkit.models import AirConMode, AirConPower, FanSpeed


class FakeClient:
    """Stands in for MyPlaceClient; records writes and serves canned reads."""

    def __init__(self, reads=None, write_error=None):
        self.reads = list(reads or [])
        self.write_error = write_error
        self.writes = []
        self.read_count = 0
        self.stop = None

    def read(self, timeout=10.0, stop=None):
        self.read_count += 1
        self.stop = stop
        result = self.reads.pop(0) if len(self.reads) > 1 else self.reads[0]
        if isinstance(result, Exception):
            raise result
        return result

    def write(self, commands):
        if self.write_error:
            raise self.write_error
        self.writes.append(list(commands))


class RecordingManager:
    def __init__(self):
        self.snapshots = []

    def accessories(self):
        return []

    def reconcile(self, system):
        self.snapshots.append(system)


class FailingManager(RecordingManager):
    def reconcile(self, system):
        raise RuntimeError("broken manager")


POWER_ON = [set_aircon_power("ac1", AirConPower.ON)]
MODE_COOL = [set_aircon_mode("ac1", AirConMode.COOL)]
FAN_LOW = [set_fan_speed("ac1", FanSpeed.LOW)]


# ================================================================
# DEBOUNCE TESTS
# ================================================================
class TestDebounce:

    @pytest.mark.asyncio
    async def test_rapid_batches_written_together(self, make_system, history):
        client = FakeClient(reads=[make_system()])
        loop = ControlLoop(client, poll_interval=10, debounce_window=0.25, history=history)

        await loop.start()
        try:
            loop.submit(POWER_ON)
            await asyncio.sleep(0.05)
            loop.submit(MODE_COOL)
            await asyncio.sleep(0.05)
            loop.submit(FAN_LOW)
            await asyncio.sleep(0.5)
        finally:
            await loop.stop()

        assert client.writes == [POWER_ON + MODE_COOL + FAN_LOW]

    @pytest.mark.asyncio
    async def test_batches_outside_window_written_separately(self, make_system, history):
        client = FakeClient(reads=[make_system()])
        loop = ControlLoop(client, poll_interval=10, debounce_window=0.05, history=history)

        await loop.start()
        try:
            loop.submit(POWER_ON)
            await asyncio.sleep(0.3)
            loop.submit(MODE_COOL)
            await asyncio.sleep(0.3)
        finally:
            await loop.stop()

        assert client.writes == [POWER_ON, MODE_COOL]

    @pytest.mark.asyncio
    async def test_empty_batch_ignored(self, history):
        loop = ControlLoop(FakeClient(), history=history)

        loop.submit([])

        assert loop._commands.qsize() == 0

    @pytest.mark.asyncio
    async def test_queue_full_drops_batch(self, history):
        loop = ControlLoop(FakeClient(), queue_size=2, history=history)

        loop.submit(POWER_ON)
        loop.submit(MODE_COOL)
        loop.submit(FAN_LOW)

        assert loop._commands.qsize() == 2


# ================================================================
# POLL TESTS
# ================================================================
class TestPoll:

    @pytest.mark.asyncio
    async def test_poll_fans_out_snapshot(self, make_system, history):
        system = make_system()
        manager = RecordingManager()
        loop = ControlLoop(FakeClient(reads=[system]), managers=[manager], history=history)

        result = await loop.poll()

        assert result is system
        assert loop.latest is system
        assert manager.snapshots == [system]

    @pytest.mark.asyncio
    async def test_poll_failure_recorded(self, make_system, history):
        previous = make_system()
        manager = RecordingManager()
        client = FakeClient(reads=[DeviceConnectionError("refused")])
        loop = ControlLoop(client, managers=[manager], history=history)
        loop.latest = previous

        assert await loop.poll() is None
        assert loop.latest is previous
        assert manager.snapshots == []
        assert history.get_events()["poll_failures"][0]["error"] == "refused"

    @pytest.mark.asyncio
    async def test_failing_manager_does_not_block_others(self, make_system, history):
        manager = RecordingManager()
        loop = ControlLoop(
            FakeClient(reads=[make_system()]),
            managers=[FailingManager(), manager],
            history=history,
        )

        await loop.poll()

        assert len(manager.snapshots) == 1

    @pytest.mark.asyncio
    async def test_loop_polls_when_idle(self, make_system, history):
        manager = RecordingManager()
        client = FakeClient(reads=[DeviceConnectionError("refused"), make_system()])
        loop = ControlLoop(client, managers=[manager], poll_interval=0.05, history=history)

        await loop.start()
        await asyncio.sleep(0.4)
        await loop.stop()

        assert client.read_count >= 3
        assert len(manager.snapshots) >= 1


# ================================================================
# WRITE TESTS
# ================================================================
class TestWrite:

    @pytest.mark.asyncio
    async def test_successful_write_recorded(self, history):
        loop = ControlLoop(FakeClient(), history=history)

        assert await loop.write(POWER_ON) is True

        (event,) = history.get_events()["writes"]
        assert event["commands"] == ["ac1 state=on"]
        assert event["success"] is True

    @pytest.mark.asyncio
    async def test_rejected_write_recorded(self, history):
        loop = ControlLoop(FakeClient(write_error=CommandRejectedError("busy")), history=history)

        assert await loop.write(POWER_ON) is False

        (event,) = history.get_events()["writes"]
        assert event["success"] is False
        assert event["reason"] == "busy"

    @pytest.mark.asyncio
    async def test_write_failure_does_not_stop_loop(self, make_system, history):
        client = FakeClient(reads=[make_system()], write_error=DeviceConnectionError("refused"))
        loop = ControlLoop(client, poll_interval=10, debounce_window=0.01, history=history)

        await loop.start()
        loop.submit(POWER_ON)
        await asyncio.sleep(0.2)
        client.write_error = None
        loop.submit(MODE_COOL)
        await asyncio.sleep(0.2)
        await loop.stop()

        assert client.writes == [MODE_COOL]
        assert len(history.get_events()["writes"]) == 2


# ================================================================
# LIFECYCLE TESTS
# ================================================================
class TestLifecycle:

    @pytest.mark.asyncio
    async def test_stop_without_start(self, history):
        loop = ControlLoop(FakeClient(), history=history)

        await loop.stop()

    @pytest.mark.asyncio
    async def test_stop_signals_pending_read(self, make_system, history):
        """WHY: a read retrying empty payloads in a worker thread must give up on stop."""
        client = FakeClient(reads=[make_system()])
        loop = ControlLoop(client, poll_interval=0.01, history=history)

        await loop.start()
        await asyncio.sleep(0.1)
        assert client.stop is not None
        assert not client.stop.is_set()

        await loop.stop()

        assert client.stop.is_set()

    @pytest.mark.asyncio
    async def test_read_initial_state_retries(self, make_system):
        system = make_system()
        client = FakeClient(reads=[DeviceConnectionError("refused"), system])

        result = await read_initial_state(client, retry_delay=0.01)

        assert result is system
        assert client.read_count == 2
