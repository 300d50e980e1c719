"""Shared test fixtures for Signal Watch."""

from __future__ import annotations

from pathlib import Path

import pytest

from signal_watch.config.manager import ConfigManager
from signal_watch.config.schema import AppConfig

LTE_BATCH = (
    " ProcAtZrssiRes network_type = LTE, \n"
    " +ZRSSI: -95,-10,-70,12.3\n"
    " +CSQ: 20\n"
    " LAC=1A2B CELL_ID=FF00FF \n"
)

UMTS_BATCH = (
    "Jan  1 00:00:01 syslog: at_ctl ProcAtZrssiRes network_type = UMTS, sub = x\n"
    "Jan  1 00:00:01 syslog: at_ctl +ZRSSI: -85,-7.5\n"
    "Jan  1 00:00:01 syslog: at_ctl +CSQ: 12,5\n"
)

EDGE_BATCH = (
    "Jan  1 00:00:01 syslog: at_ctl ProcAtZrssiRes network_type = EDGE, sub = x\n"
    "Jan  1 00:00:01 syslog: at_ctl +ZRSSI: -71\n"
)


@pytest.fixture
def config() -> AppConfig:
    """Provide a default test configuration."""
    return AppConfig()


@pytest.fixture
def config_manager(tmp_path: Path) -> ConfigManager:
    """Provide a config manager with test paths."""
    defaults = tmp_path / "config.defaults.yaml"
    defaults.write_text("router:\n  address: 10.0.0.1\n")
    user = tmp_path / "config.yaml"
    mgr = ConfigManager(defaults_path=defaults, user_path=user, environ={})
    mgr.load()
    return mgr


@pytest.fixture
def lte_batch() -> str:
    return LTE_BATCH


@pytest.fixture
def umts_batch() -> str:
    return UMTS_BATCH


@pytest.fixture
def edge_batch() -> str:
    return EDGE_BATCH
