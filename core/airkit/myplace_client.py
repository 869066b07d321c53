"""
Simple MyPlace API Client for AirKit

Minimal client for reading system state from, and writing commands to, the
MyPlace wall-mounted touch panel.
"""

import json
import logging
import threading
import time
from typing import Iterable

import requests

from .commands import Command, build_request
from .exceptions import (
    CommandRejectedError,
    DeviceConnectionError,
    DeviceTimeoutError,
    SnapshotError,
)
from .models import System

logger = logging.getLogger(__name__)

DEFAULT_PORT = 2025

# How long to wait between reads while the panel returns empty payloads.
EMPTY_PAYLOAD_RETRY_DELAY = 0.25


class MyPlaceClient:
    """Simple MyPlace touch panel HTTP client."""

    def __init__(self, host: str, port: int = DEFAULT_PORT, timeout: float = 5):
        """Initialize MyPlace client.

        Args:
            host: Hostname or IP address of the touch panel
            port: TCP port of the panel's HTTP server
            timeout: Timeout for each individual HTTP request, in seconds
        """
        if not host:
            raise ValueError("host must not be empty")

        self.base_url = f"http://{host}:{port}"
        # Create a session for connection pooling
        self.session = requests.Session()
        self.timeout = timeout

    def read(self, timeout: float = 10.0, stop: threading.Event | None = None) -> System:
        """Fetch the state of the entire system.

        After a successful write the panel answers with an empty payload for a
        few seconds. That is not an error; keep reading until a populated
        payload arrives or the timeout elapses. Empty payloads may carry stub
        aircons, so they are recognised before decoding.

        Args:
            timeout: Overall deadline for obtaining a populated snapshot
            stop: Set by the caller to abandon the retries early

        Returns:
            Decoded system snapshot

        Raises:
            DeviceConnectionError: If the API request fails or the read is
                abandoned through ``stop``
            DeviceTimeoutError: If only empty payloads arrive before the deadline
            SnapshotError: If the payload cannot be decoded
        """
        deadline = time.monotonic() + timeout
        if stop is None:
            stop = threading.Event()

        while True:
            data = self._get("/getSystemData")

            if not isinstance(data, dict) or self._app_version(data):
                return System.from_dict(data)

            if time.monotonic() + EMPTY_PAYLOAD_RETRY_DELAY > deadline:
                raise DeviceTimeoutError(
                    f"Touch panel returned empty payloads for {timeout}s"
                )

            logger.debug("Empty system payload, retrying")
            if stop.wait(EMPTY_PAYLOAD_RETRY_DELAY):
                raise DeviceConnectionError("Read abandoned, client stopping")

    @staticmethod
    def _app_version(data: dict) -> str:
        details = data.get("system")
        if not isinstance(details, dict):
            return ""
        return details.get("myAppRev") or ""

    def write(self, commands: Iterable[Command]) -> None:
        """Update the state of the system by performing one or more commands.

        Commands addressing the same aircon or zone are merged into a single
        request entry.

        Raises:
            DeviceConnectionError: If the API request fails
            CommandRejectedError: If the panel does not acknowledge the write
        """
        request = build_request(commands)
        payload = json.dumps(request, separators=(",", ":"))
        logger.debug(f"Writing {payload}")

        result = self._get("/setAircon", params={"json": payload})

        if not isinstance(result, dict):
            raise SnapshotError(f"Unexpected /setAircon response: {result!r}")

        if not result.get("ack", False):
            raise CommandRejectedError(result.get("reason", ""))

        logger.info(f"Wrote {payload}")

    def _get(self, path: str, params: dict | None = None):
        """Perform a GET request and decode the JSON body."""
        url = f"{self.base_url}{path}"
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise DeviceConnectionError(f"MyPlace API request failed: {e}")

        try:
            return response.json()
        except ValueError as e:
            raise SnapshotError(f"Invalid JSON from {path}: {e}")
