"""
Configuration Module
====================

Settings are resolved in three layers, later ones winning:
built-in defaults, an optional YAML file (POST_CATALOG_CONFIG), and
environment variables (a .env file is loaded first when present).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from post_catalog.core.errors import ConfigError

CONFIG_ENV_VAR = "POST_CATALOG_CONFIG"

# Load .env file from current directory or project root
ENV_PATHS = [
    Path.cwd() / ".env",
    Path(__file__).parent.parent / ".env",
]


@dataclass
class Settings:
    """Process-wide settings."""

    telegram_token: str = ""
    telegram_chat_id: int = 0
    database_url: str = ""
    api_host: str = "127.0.0.1"
    api_port: int = 8080
    relay_capacity: int = 100
    store_write_timeout: float = 5.0
    store_query_timeout: float = 10.0
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> Settings:
        """Create from a mapping of lower- or upper-case keys."""
        settings = cls()
        if not data:
            return settings
        settings.update({str(k).lower(): v for k, v in data.items()})
        return settings

    def update(self, values: dict[str, Any]) -> None:
        """Overwrite known fields, converting to each field's type."""
        for f in fields(self):
            if f.name not in values or values[f.name] is None:
                continue
            raw = values[f.name]
            default = getattr(type(self), f.name)
            try:
                setattr(self, f.name, type(default)(raw))
            except (TypeError, ValueError) as e:
                raise ConfigError(f"{f.name.upper()} must be {type(default).__name__}, got {raw!r}") from e

    @property
    def listener_enabled(self) -> bool:
        """Whether enough is configured to listen to the channel."""
        return bool(self.telegram_token and self.telegram_chat_id)

    def validate(self, require_listener: bool = True) -> None:
        """
        Check required settings.

        Raises:
            ConfigError: naming the first missing or invalid setting.
        """
        if require_listener:
            if not self.telegram_token:
                raise ConfigError("TELEGRAM_TOKEN is required")
            if self.telegram_chat_id == 0:
                raise ConfigError("TELEGRAM_CHAT_ID is required and must be a valid integer")
        if self.relay_capacity < 1:
            raise ConfigError("RELAY_CAPACITY must be positive")
        if self.store_write_timeout <= 0 or self.store_query_timeout <= 0:
            raise ConfigError("store timeouts must be positive")


def load_env_file() -> Path | None:
    """Load the first .env file found; return its path."""
    for env_path in ENV_PATHS:
        if env_path.exists():
            load_dotenv(env_path)
            return env_path
    return None


def load_yaml_config(path: str | Path) -> dict[str, Any]:
    """Read a YAML settings file."""
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")

    with open(path) as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ConfigError(f"Config file must contain a mapping: {path}")
    return data


def load_settings(config_path: str | Path | None = None) -> Settings:
    """
    Resolve settings from defaults, YAML and the environment.

    Args:
        config_path: YAML file to read; defaults to $POST_CATALOG_CONFIG.
    """
    load_env_file()

    config_path = config_path or os.environ.get(CONFIG_ENV_VAR)
    settings = Settings.from_dict(load_yaml_config(config_path) if config_path else None)

    env_values = {}
    for f in fields(settings):
        value = os.environ.get(f.name.upper())
        if value:
            env_values[f.name] = value
    settings.update(env_values)

    return settings
