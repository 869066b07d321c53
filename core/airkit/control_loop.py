"""
Control Loop

Background service that owns all traffic with the touch panel. It polls the
system state on a fixed interval and fans each snapshot out to the accessory
managers, and it collects command batches produced by the managers, debounces
them, and writes them to the panel.
"""

import asyncio
import threading
import logging

from .accessory import AccessoryManager
from .commands import Command
from .exceptions import AirKitError, CommandRejectedError
from .history import HistoryTracker, history_tracker
from .models import System
from .myplace_client import MyPlaceClient

logger = logging.getLogger(__name__)


class ControlLoop:
    """
    Background service polling and writing the MyPlace system.

    A single user gesture (e.g. dragging a thermostat) produces many rapid
    edits; batches arriving within the debounce window of the first one are
    written together in a single request.
    """

    def __init__(
        self,
        client: MyPlaceClient,
        managers: list[AccessoryManager] | None = None,
        poll_interval: float = 2.0,
        debounce_window: float = 0.25,
        queue_size: int = 100,
        read_timeout: float = 10.0,
        history: HistoryTracker = history_tracker,
    ):
        self.client = client
        self.managers: list[AccessoryManager] = list(managers or [])
        self.poll_interval = poll_interval
        self.debounce_window = debounce_window
        self.read_timeout = read_timeout
        self.history = history
        self.latest: System | None = None

        self._commands: asyncio.Queue[list[Command]] = asyncio.Queue(maxsize=queue_size)
        self._task: asyncio.Task | None = None
        self._running = False
        self._stopping = threading.Event()

    def submit(self, commands: list[Command]) -> None:
        """Hand a command batch to the loop without waiting for it to be written."""
        if not commands:
            return

        try:
            self._commands.put_nowait(list(commands))
        except asyncio.QueueFull:
            logger.warning(f"Command queue full, dropping {len(commands)} command(s)")

    async def start(self):
        """Start the control loop."""
        if self._running:
            logger.warning("Control loop already running")
            return

        self._stopping.clear()
        self._running = True
        self._task = asyncio.create_task(self._run_loop())
        logger.info(f"Control loop started for {len(self.managers)} manager(s)")
        logger.info(f"   Poll interval: {self.poll_interval} seconds")

    async def stop(self):
        """Stop the control loop. In-flight polls and writes are abandoned."""
        if not self._running:
            return

        self._running = False
        # Wakes a read that is waiting out empty payloads in a worker thread
        self._stopping.set()
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass

        logger.info("Control loop stopped")

    async def _run_loop(self):
        """Main loop - write debounced command batches, poll when idle."""
        while self._running:
            try:
                try:
                    batch = await asyncio.wait_for(
                        self._commands.get(), timeout=self.poll_interval
                    )
                except asyncio.TimeoutError:
                    await self.poll()
                    continue

                commands = await self._debounce(batch)
                await self.write(commands)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Error in control loop: {e}", exc_info=True)

    async def _debounce(self, first: list[Command]) -> list[Command]:
        """Collect every batch that arrives within the debounce window."""
        commands = list(first)
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.debounce_window

        while True:
            remaining = deadline - loop.time()
            if remaining <= 0:
                break

            try:
                batch = await asyncio.wait_for(self._commands.get(), timeout=remaining)
            except asyncio.TimeoutError:
                break

            commands.extend(batch)

        return commands

    async def poll(self) -> System | None:
        """Read the system state and forward it to every manager.

        Returns:
            The new snapshot, or None if the read failed
        """
        try:
            system = await asyncio.to_thread(
                self.client.read, self.read_timeout, self._stopping
            )
        except AirKitError as e:
            logger.warning(f"Failed to read system state: {e}")
            self.history.add_poll_failure(str(e))
            return None

        self.latest = system

        for manager in self.managers:
            try:
                manager.reconcile(system)
            except Exception as e:
                logger.error(f"Failed to update {type(manager).__name__}: {e}", exc_info=True)

        return system

    async def write(self, commands: list[Command]) -> bool:
        """Write a command batch to the touch panel.

        Failures are logged only; the next poll reveals the unit's real state.

        Returns:
            True if the panel acknowledged the write
        """
        descriptions = [str(c) for c in commands]

        try:
            await asyncio.to_thread(self.client.write, commands)
        except CommandRejectedError as e:
            logger.error(f"Touch panel rejected {descriptions}: {e.reason}")
            self.history.add_write(descriptions, success=False, reason=e.reason)
            return False
        except AirKitError as e:
            logger.warning(f"Failed to write {descriptions}: {e}")
            self.history.add_write(descriptions, success=False, reason=str(e))
            return False

        logger.debug(f"Wrote {len(commands)} command(s)")
        self.history.add_write(descriptions, success=True)
        return True


async def read_initial_state(
    client: MyPlaceClient,
    read_timeout: float = 10.0,
    retry_delay: float = 1.0,
) -> System:
    """Read the system state, retrying until it succeeds or the task is cancelled."""
    while True:
        logger.info("Reading MyPlace system information")
        try:
            return await asyncio.to_thread(client.read, read_timeout)
        except AirKitError as e:
            logger.warning(f"Failed to read MyPlace system information: {e}")

        await asyncio.sleep(retry_delay)
