"""
Control Store

Small key/value store persisting user-chosen control values (e.g. each zone's
target heating/cooling state) across restarts.
"""

import json
import logging
import os
import threading

logger = logging.getLogger(__name__)


class ControlStore:
    """JSON file backed key/value store."""

    def __init__(self, db_path: str, filename: str = "controls.json"):
        self.path = os.path.join(db_path, filename)
        self.lock = threading.Lock()
        self._data: dict[str, str] = self._load()

    def _load(self) -> dict[str, str]:
        if not os.path.exists(self.path):
            return {}

        try:
            with open(self.path) as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not load control store {self.path}: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"Ignoring malformed control store {self.path}")
            return {}

        return {str(k): str(v) for k, v in data.items()}

    def get(self, key: str) -> str | None:
        with self.lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        """Store a value and flush the store to disk."""
        with self.lock:
            self._data[key] = value
            snapshot = dict(self._data)

        try:
            os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
            tmp = f"{self.path}.tmp"
            with open(tmp, "w") as f:
                json.dump(snapshot, f, indent=2, sort_keys=True)
            os.replace(tmp, self.path)
        except OSError as e:
            logger.error(f"Failed to persist control store {self.path}: {e}")
