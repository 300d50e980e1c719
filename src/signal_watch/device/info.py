"""Signal snapshot data model for router log readings."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

# Generation ordinals
NO_SERVICE = 0
GEN_2G = 2
GEN_3G = 3
GEN_4G = 4

_2G_LABELS = frozenset({"GSM", "GPRS", "EDGE", "E-EDGE"})
_NO_SERVICE_LABELS = frozenset({"No Service", "Limited Service"})


def classify_network_type(label: str | None) -> int | None:
    """Map a device network-type label to a generation ordinal.

    Returns None when no label is known. Labels the device uses for
    anything between 2G and LTE (UMTS, HSPA, HSPA+, ...) count as 3G.
    """
    if label is None:
        return None
    if label == "LTE":
        return GEN_4G
    if label in _2G_LABELS:
        return GEN_2G
    if label in _NO_SERVICE_LABELS:
        return NO_SERVICE
    return GEN_3G


@dataclass
class Info:
    """Snapshot of router signal telemetry.

    A value of None means the metric was not reported in the batch the
    snapshot was built from. The ``got_*`` properties are the presence
    flags consumers must check before rendering a value.
    """

    last_update: datetime | None = None
    n: int = 0  # Sequence number; 0 = never updated

    network_type: str | None = None
    provider_desc: str | None = None
    mcc_mnc: int | None = None

    rsrp: int | None = None  # dBm
    rscp: int | None = None  # dBm
    rsrq: int | None = None  # dB
    rssi: int | None = None  # dBm
    sinr: float | None = None  # dB
    ecio: float | None = None  # dB
    csq: float | None = None  # 0..31

    lac: int | None = None
    global_cell_id: int | None = None
    frequency: int | None = None  # MHz, -1 = unknown LTE band
    channel: int | None = None

    @property
    def got_network_type(self) -> bool:
        return self.network_type is not None

    @property
    def got_provider_info(self) -> bool:
        """True only when the MCC/MNC pair was reported."""
        return self.mcc_mnc is not None

    @property
    def got_signal_strength(self) -> bool:
        return any(
            v is not None
            for v in (self.rsrp, self.rscp, self.rsrq, self.rssi, self.sinr, self.ecio)
        )

    @property
    def got_csq(self) -> bool:
        return self.csq is not None

    @property
    def got_lac(self) -> bool:
        return self.lac is not None

    @property
    def got_cell_id(self) -> bool:
        return self.global_cell_id is not None

    @property
    def got_frequency(self) -> bool:
        return self.frequency is not None

    @property
    def got_channel(self) -> bool:
        return self.channel is not None

    def network_type_as_int(self) -> int | None:
        return classify_network_type(self.network_type)

    def reset(self, keep_sequence: bool = True) -> Info:
        """Return a zeroed copy with every presence flag cleared.

        By default the sequence number and timestamp survive so consumers
        do not mistake a reset for fresh data.
        """
        if keep_sequence:
            return Info(last_update=self.last_update, n=self.n)
        return Info()
