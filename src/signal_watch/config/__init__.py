"""Configuration management for Signal Watch."""

from signal_watch.config.manager import ConfigError, ConfigManager
from signal_watch.config.schema import AppConfig

__all__ = ["AppConfig", "ConfigError", "ConfigManager"]
