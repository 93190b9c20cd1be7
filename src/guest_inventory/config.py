"""
Configuration management for Guest Inventory.

Supports configuration via YAML files, environment variables, and programmatic access.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

DEFAULT_ATTRIBUTES_URL = (
    "http://metadata.google.internal/computeMetadata/v1/instance/guest-attributes"
)

DEFAULT_CONFIG_PATHS = [
    Path("/etc/guest-inventory/config.yaml"),
    Path.home() / ".config" / "guest-inventory" / "config.yaml",
    Path("guest-inventory.yaml"),
]


@dataclass
class Config:
    """
    Configuration container for Guest Inventory.

    Priority (highest to lowest):
    1. Programmatic values passed to __init__
    2. Environment variables (prefixed with GUEST_INVENTORY_)
    3. Config file values
    4. Default values
    """

    # Guest attributes endpoint
    attributes_url: str = DEFAULT_ATTRIBUTES_URL
    attributes_timeout: int = 10

    # Logging
    log_level: str = "INFO"
    log_file: str | None = None

    @property
    def inventory_url(self) -> str:
        """Base key under which every inventory field is written."""
        return f"{self.attributes_url.rstrip('/')}/guestInventory"

    @classmethod
    def from_file(cls, path: str | Path) -> Config:
        """Load configuration from a YAML file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Config:
        """Create config from a dictionary."""
        # Nested sections map to "<section>_<key>" fields
        flat = {}
        for key, value in data.items():
            if isinstance(value, dict):
                for subkey, subvalue in value.items():
                    flat[f"{key}_{subkey}"] = subvalue
            else:
                flat[key] = value

        known_fields = {f.name for f in cls.__dataclass_fields__.values()}
        filtered = {k: v for k, v in flat.items() if k in known_fields}

        return cls(**filtered)

    @classmethod
    def load(cls, config_path: str | Path | None = None) -> Config:
        """
        Load configuration with full resolution order.

        Args:
            config_path: Explicit path to config file. If None, searches
                        default locations.

        Returns:
            Fully resolved Config instance.
        """
        candidates = [Path(config_path)] if config_path else DEFAULT_CONFIG_PATHS
        path = next((p for p in candidates if p.exists()), None)

        config = cls.from_file(path) if path else cls()
        config._apply_env_overrides()

        return config

    def _apply_env_overrides(self) -> None:
        """Apply environment variable overrides."""
        env_mappings = {
            "GUEST_INVENTORY_ATTRIBUTES_URL": "attributes_url",
            "GUEST_INVENTORY_ATTRIBUTES_TIMEOUT": "attributes_timeout",
            "GUEST_INVENTORY_LOG_LEVEL": "log_level",
            "GUEST_INVENTORY_LOG_FILE": "log_file",
        }

        for env_var, attr in env_mappings.items():
            value = os.environ.get(env_var)
            if value is None:
                continue
            # Coerce to the type of the default
            if isinstance(getattr(self, attr), int):
                setattr(self, attr, int(value))
            else:
                setattr(self, attr, value)

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary."""
        return {
            "attributes": {
                "url": self.attributes_url,
                "timeout": self.attributes_timeout,
            },
            "log": {
                "level": self.log_level,
                "file": self.log_file,
            },
        }

    def save(self, path: str | Path) -> None:
        """Save configuration to a YAML file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)
