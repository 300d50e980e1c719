"""Pydantic configuration models for all system settings."""

from __future__ import annotations

from pydantic import BaseModel, Field


class RouterConfig(BaseModel):
    address: str = "192.168.0.1"
    password: str = ""  # Plaintext; Base64-encoded before it reaches the session
    poll_interval_ms: int = Field(1000, ge=100)
    connect_timeout_seconds: float = Field(30.0, gt=0.0)
    timeout_seconds: float = Field(30.0, gt=0.0)


class SimulationConfig(BaseModel):
    """Synthetic log source, no router required."""

    enabled: bool = False
    switch_every: int = Field(30, ge=1)  # Batches before switching network generation
    seed: int | None = None


class DisplayConfig(BaseModel):
    clear_screen: bool = True
    refresh_interval_seconds: float = Field(1.0, gt=0.0)
    show_stats: bool = True


class LoggingConfig(BaseModel):
    level: str = "WARNING"
    format: str = "console"
    file: str = ""


class AppConfig(BaseModel):
    """Root configuration model containing all system settings."""

    router: RouterConfig = RouterConfig()
    simulation: SimulationConfig = SimulationConfig()
    display: DisplayConfig = DisplayConfig()
    logging: LoggingConfig = LoggingConfig()
