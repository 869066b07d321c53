"""
AirKit Configuration Settings

User-facing settings are loaded from options.json (add-on deployments) or
config.yaml (development), then overridden by AIRKIT_* environment variables.
"""

from dataclasses import dataclass, fields
import json
import logging
import os
import re

import yaml

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

OPTIONS_PATH = "/data/options.json"


def _camel_to_snake(name: str) -> str:
    """Convert camelCase to snake_case."""
    s1 = re.sub("(.)([A-Z][a-z]+)", r"\1_\2", name)
    return re.sub("([a-z0-9])([A-Z])", r"\1_\2", s1).lower()


@dataclass
class Settings:
    """Configuration for the bridge."""

    api_host: str
    api_port: int = 2025
    db_path: str = "artifacts/db"
    poll_interval: float = 2.0  # seconds between polls
    debounce_window: float = 0.25  # seconds to coalesce command batches
    read_timeout: float = 10.0  # overall deadline for one snapshot read
    request_timeout: float = 5.0  # per HTTP request
    command_queue_size: int = 100
    cool_threshold: float = -0.1  # keep cooling until current - target drops below this
    heat_threshold: float = -0.5  # start heating once current - target drops below this
    constant_zone_attempts: int = 3

    def __post_init__(self):
        if not self.api_host:
            raise ConfigurationError("AIRKIT_API_HOST is not set")
        try:
            self.api_port = int(self.api_port)
        except (TypeError, ValueError):
            raise ConfigurationError(f"Invalid API port: {self.api_port!r}")
        if not 0 < self.api_port < 65536:
            raise ConfigurationError(f"API port out of range: {self.api_port}")
        if self.poll_interval <= 0 or self.debounce_window < 0:
            raise ConfigurationError("Poll interval must be positive and debounce window non-negative")
        if self.command_queue_size < 1:
            raise ConfigurationError("Command queue size must be at least 1")
        if self.heat_threshold > self.cool_threshold:
            raise ConfigurationError("Heat threshold must not exceed cool threshold")

    @classmethod
    def from_dict(cls, data: dict) -> "Settings":
        """Create from dictionary."""
        converted = {_camel_to_snake(k): v for k, v in data.items()}

        known = {f.name for f in fields(cls)}
        unknown = set(converted) - known
        if unknown:
            raise ConfigurationError(f"Unknown settings: {', '.join(sorted(unknown))}")

        try:
            return cls(**converted)
        except TypeError as e:
            raise ConfigurationError(f"Invalid settings: {e}")


def _load_options(config_path: str | None) -> dict:
    """Load the options section from options.json or config.yaml."""
    if os.path.exists(OPTIONS_PATH):
        with open(OPTIONS_PATH) as f:
            options = json.load(f)
            logger.debug("Loaded options from options.json")
            return options.get("airkit", options)

    if config_path and os.path.exists(config_path):
        with open(config_path) as f:
            try:
                config = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid {config_path}: {e}")
            logger.debug(f"Loaded options from {config_path}")
            return config.get("options", {}) or {}

    return {}


def load_settings(config_path: str | None = "config.yaml", environ: dict | None = None) -> Settings:
    """Load settings from the options file and the environment.

    Raises:
        ConfigurationError: If the configuration is incomplete or invalid
    """
    environ = os.environ if environ is None else environ
    options = dict(_load_options(config_path))

    if environ.get("AIRKIT_API_HOST"):
        options["api_host"] = environ["AIRKIT_API_HOST"]
    if environ.get("AIRKIT_API_PORT"):
        options["api_port"] = environ["AIRKIT_API_PORT"]
    if environ.get("AIRKIT_DB_PATH"):
        options["db_path"] = environ["AIRKIT_DB_PATH"]

    options.setdefault("api_host", "")
    return Settings.from_dict(options)
