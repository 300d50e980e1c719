"""Layered configuration: defaults file, user file, environment, command line."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from signal_watch.config.schema import AppConfig

logger = logging.getLogger(__name__)

# Environment variable -> (section, key). Values are strings; pydantic coerces.
ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "SIGNAL_WATCH_ROUTER": ("router", "address"),
    "SIGNAL_WATCH_PASSWORD": ("router", "password"),
    "SIGNAL_WATCH_INTERVAL_MS": ("router", "poll_interval_ms"),
    "SIGNAL_WATCH_LOG_LEVEL": ("logging", "level"),
}


class ConfigError(Exception):
    """A config file is unreadable or the merged settings are invalid."""


class ConfigManager:
    """Builds an AppConfig from layered sources.

    Later layers win: ``config.defaults.yaml``, the user's ``config.yaml``,
    environment variables, then runtime overrides from the command line.
    Only ``save_user_config`` ever writes to disk, and only the user file.
    """

    def __init__(
        self,
        defaults_path: Path | None = None,
        user_path: Path | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._defaults_path = defaults_path or Path("config.defaults.yaml")
        self._user_path = user_path or Path("config.yaml")
        self._environ = os.environ if environ is None else environ
        self._config: AppConfig | None = None

    @property
    def config(self) -> AppConfig:
        if self._config is None:
            raise RuntimeError("Config not loaded. Call load() first.")
        return self._config

    def load(self, overrides: dict[str, Any] | None = None) -> AppConfig:
        """Merge all layers and validate the result.

        Raises:
            ConfigError: a YAML file fails to parse or a value is out of range.
        """
        merged: dict[str, Any] = {}
        for layer in (
            self._read_yaml(self._defaults_path),
            self._read_yaml(self._user_path),
            self.env_overrides(),
            overrides or {},
        ):
            merged = merge_dicts(merged, layer)

        try:
            self._config = AppConfig.model_validate(merged)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e
        logger.info("Configuration loaded (user file: %s)", self._user_path)
        return self._config

    def env_overrides(self) -> dict[str, Any]:
        """Settings taken from the environment."""
        result: dict[str, Any] = {}
        for name, (section, key) in ENV_OVERRIDES.items():
            value = self._environ.get(name)
            if value:
                result.setdefault(section, {})[key] = value
        if self._environ.get("NO_CLEAR_SCREEN"):
            result.setdefault("display", {})["clear_screen"] = False
        return result

    def to_json(self) -> str:
        """Effective settings with the password masked."""
        config = self.config
        if config.router.password:
            config = config.model_copy(
                update={"router": config.router.model_copy(update={"password": "***"})}
            )
        return config.model_dump_json(indent=2)

    def save_user_config(self, updates: dict[str, Any]) -> AppConfig:
        """Merge ``updates`` into the user file and reload."""
        current = self._read_yaml(self._user_path)
        with open(self._user_path, "w") as f:
            yaml.safe_dump(merge_dicts(current, updates), f, default_flow_style=False, sort_keys=False)
        logger.info("Saved user config to %s", self._user_path)
        return self.load()

    @staticmethod
    def _read_yaml(path: Path) -> dict[str, Any]:
        if not path.exists():
            return {}
        try:
            with open(path) as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Cannot parse {path}: {e}") from e
        return data if isinstance(data, dict) else {}


def merge_dicts(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into ``base``, returning a new dict."""
    result = dict(base)
    for key, value in override.items():
        if isinstance(result.get(key), dict) and isinstance(value, Mapping):
            result[key] = merge_dicts(result[key], value)
        else:
            result[key] = value
    return result
