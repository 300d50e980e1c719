"""Running min/max/average statistics per signal metric."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace

from signal_watch.device.info import Info

logger = logging.getLogger(__name__)

METRICS = ("rsrp", "rscp", "rsrq", "rssi", "sinr", "ecio", "csq")

# CSQ 0..31 maps linearly onto 0..100 %
CSQ_PERCENT_FACTOR = 100.0 / 31.99


def csq_percent(csq: float) -> float:
    """Convert a CSQ coverage index to a percentage for display."""
    return CSQ_PERCENT_FACTOR * csq


@dataclass
class RunningStat:
    """Running aggregate of one metric."""

    minimum: float = 0.0
    maximum: float = 0.0
    total: float = 0.0
    count: int = 0

    def add(self, value: float) -> None:
        if self.count == 0:
            self.minimum = self.maximum = value
        else:
            self.minimum = min(self.minimum, value)
            self.maximum = max(self.maximum, value)
        self.total += value
        self.count += 1

    @property
    def average(self) -> float:
        if self.count == 0:
            return 0.0
        return self.total / self.count


@dataclass
class CsqPercentView:
    minimum: float
    average: float
    maximum: float


class StatsAggregator:
    """Aggregates signal metrics for the currently active network generation.

    Samples from different generations are never mixed: whenever the
    generation ordinal passed to ``update`` changes, all aggregates are
    cleared before the new sample is folded in. "No Service" (ordinal 0)
    is aggregated like any other generation.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._stats: dict[str, RunningStat] = {m: RunningStat() for m in METRICS}
        self._network_type: int | None = None
        self._resets = 0

    @property
    def network_type(self) -> int | None:
        """Generation ordinal the current aggregates belong to."""
        return self._network_type

    @property
    def resets(self) -> int:
        return self._resets

    def update(self, info: Info, network_type: int | None = None) -> None:
        """Fold the present metrics of ``info`` into the running aggregates.

        Samples whose generation is unknown are dropped.
        """
        if network_type is None:
            network_type = info.network_type_as_int()
        if network_type is None:
            logger.debug("Skipping statistics update without a network type")
            return

        with self._lock:
            if network_type != self._network_type:
                if self._network_type is not None:
                    logger.info(
                        "Network generation %s -> %s, resetting statistics",
                        self._network_type, network_type,
                    )
                    self._clear()
                self._network_type = network_type

            for metric in METRICS:
                value = getattr(info, metric)
                if value is not None:
                    self._stats[metric].add(value)

    def reset(self) -> None:
        """Clear all aggregates and forget the active generation."""
        with self._lock:
            self._clear()
            self._network_type = None

    def get(self, metric: str) -> RunningStat:
        """Return a copy of the aggregate for ``metric``."""
        with self._lock:
            return replace(self._stats[metric])

    def snapshot(self) -> dict[str, RunningStat]:
        with self._lock:
            return {m: replace(s) for m, s in self._stats.items()}

    def csq_percent_view(self) -> CsqPercentView:
        """CSQ aggregates as percentages, derived on demand."""
        stat = self.get("csq")
        return CsqPercentView(
            minimum=csq_percent(stat.minimum),
            average=csq_percent(stat.average),
            maximum=csq_percent(stat.maximum),
        )

    def _clear(self) -> None:
        self._stats = {m: RunningStat() for m in METRICS}
        self._resets += 1
