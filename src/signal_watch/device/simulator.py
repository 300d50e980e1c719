"""Simulated router log source.

Produces log batches in the MF283+ syslog dialect with random but
realistic values, so the parser, statistics and display can be exercised
without a device. The network generation rotates LTE -> UMTS -> EDGE every
``switch_every`` batches.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Provider:
    desc: str
    mcc: int
    mnc: int


_PROVIDERS = (
    _Provider("A1", 232, 1),
    _Provider("Magenta T", 232, 3),
    _Provider("3 AT", 232, 5),
)

GENERATION_CYCLE = ("LTE", "UMTS", "EDGE")
_LTE_BANDS = ("B3", "B7", "B20", "B1")
_PREFIX = "Jan  1 00:00:01 syslog: at_ctl "


class SimulatedSession:
    """LogSource that fabricates log text instead of calling a router."""

    def __init__(self, switch_every: int = 30, seed: int | None = None) -> None:
        if switch_every < 1:
            raise ValueError("switch_every must be >= 1")
        self._switch_every = switch_every
        self._rng = random.Random(seed)
        self._batches = 0
        self._provider = self._rng.choice(_PROVIDERS)
        self._lac = self._rng.randrange(0x100, 0xFFFF)
        self._cell_id = self._rng.randrange(0x10000, 0xFFFFFFF)

    @property
    def address(self) -> str:
        return "simulator"

    @property
    def current_network_type(self) -> str:
        index = (self._batches // self._switch_every) % len(GENERATION_CYCLE)
        return GENERATION_CYCLE[index]

    async def login(self) -> None:
        logger.info("Simulated login accepted")

    async def fetch_log(self) -> str:
        network_type = self.current_network_type
        self._batches += 1
        return self.build_batch(network_type)

    async def close(self) -> None:
        return None

    def build_batch(self, network_type: str) -> str:
        """Render one syslog batch for the given network type label."""
        rng = self._rng
        lines = [
            f"{_PREFIX}ProcAtZrssiRes network_type = "
            f"{network_type}, sub_network_type = {network_type}",
        ]

        if network_type == "LTE":
            lines.append(
                f"{_PREFIX}+ZRSSI: "
                f"{rng.randint(-120, -70)},{rng.randint(-20, -3)},"
                f"{rng.randint(-95, -50)},{rng.uniform(-5.0, 30.0):.1f}"
            )
            band = rng.choice(_LTE_BANDS)
            lines.append(
                f"{_PREFIX}+ZCELLINFO: "
                f"{self._cell_id}, {rng.randint(0, 503)}, LTE {band}, {rng.randint(0, 6449)}"
            )
        elif network_type == "EDGE":
            lines.append(f"{_PREFIX}+ZRSSI: {rng.randint(-110, -50)}")
            lines.append(
                f"{_PREFIX}+ZCELLINFO: "
                f"{self._cell_id}, {rng.randint(0, 63)}, GSM {rng.choice((900, 1800))}"
            )
        else:
            lines.append(
                f"{_PREFIX}+ZRSSI: "
                f"{rng.randint(-115, -60)},{rng.uniform(-20.0, -2.0):.1f}"
            )
            lines.append(
                f"{_PREFIX}+ZCELLINFO: "
                f"{self._cell_id}, {rng.randint(0, 511)}, UMTS {rng.choice((900, 2100))}"
            )

        csq_text = f"{rng.uniform(0.0, 31.0):.1f}"
        if rng.random() < 0.5:
            # Mimic firmware that prints a comma decimal separator
            csq_text = csq_text.replace(".", ",")
        lines.append(f"{_PREFIX}+CSQ: {csq_text}")
        lines.append(f"{_PREFIX}LAC={self._lac:X} CELL_ID={self._cell_id:X}")
        p = self._provider
        lines.append(f'{_PREFIX}+ZDON: " {p.desc}",{p.mcc},{p.mnc}')
        return "\n".join(lines) + "\n"
