"""One-line status rendering for the terminal."""

from __future__ import annotations

from datetime import datetime, timezone

from signal_watch.device.info import GEN_2G, GEN_3G, GEN_4G, NO_SERVICE, Info
from signal_watch.monitor.stats import StatsAggregator, csq_percent

CLEAR_SCREEN = "\x1b[1;1H\x1b[2J"


def _opt(value: int | None) -> int:
    return -1 if value is None else value


def _optf(value: float | None) -> float:
    return -1.0 if value is None else value


def _csq(info: Info) -> float:
    return csq_percent(info.csq) if info.csq is not None else -1.0


def _provider(info: Info) -> str:
    if info.got_provider_info and info.provider_desc is not None:
        return f"{info.provider_desc} ({info.mcc_mnc})"
    return "?? (-1)"


def is_displayable(info: Info | None) -> bool:
    """A snapshot is worth rendering once both type and signal are known."""
    return info is not None and info.got_network_type and info.got_signal_strength


def format_status(info: Info) -> str:
    """Render the snapshot as a single status line for its generation."""
    generation = info.network_type_as_int()

    if generation == GEN_4G:
        return (
            f"[LTE | {_provider(info)} | {_opt(info.frequency)} MHz ({_opt(info.channel)})] "
            f"[RSRP: {_opt(info.rsrp)}, RSRQ: {_opt(info.rsrq)}, RSSI: {_opt(info.rssi)}, "
            f"SINR: {_optf(info.sinr):.1f} ({_csq(info):.1f}%)] "
            f"[CELL ID: {_opt(info.global_cell_id)}]"
        )
    if generation == GEN_3G:
        return (
            f"[{info.network_type} | {_provider(info)} | {_opt(info.frequency)} MHz] "
            f"[RSCP: {_opt(info.rscp)}, "
            f"EC/IO: {_optf(info.ecio):.1f} ({_csq(info):.1f}%)] "
            f"[CELL ID: {_opt(info.global_cell_id)}, LAC: {_opt(info.lac)}]"
        )
    if generation == GEN_2G:
        return (
            f"[{info.network_type} | {_provider(info)} | {_opt(info.frequency)} MHz] "
            f"[RSSI: {_opt(info.rssi)} ({_csq(info):.1f}%)] "
            f"[CELL ID: {_opt(info.global_cell_id)}, LAC: {_opt(info.lac)}]"
        )
    if generation == NO_SERVICE:
        return "No Service!"
    return ""


_GENERATION_METRICS: dict[int, tuple[str, ...]] = {
    GEN_4G: ("rsrp", "rsrq", "rssi", "sinr"),
    GEN_3G: ("rscp", "ecio"),
    GEN_2G: ("rssi",),
}


def format_stats(stats: StatsAggregator) -> str:
    """Render min/avg/max of the metrics relevant to the active generation."""
    generation = stats.network_type
    if generation is None:
        return ""

    parts = []
    for metric in _GENERATION_METRICS.get(generation, ()):
        s = stats.get(metric)
        if s.count:
            parts.append(
                f"{metric.upper()}: {s.minimum:.1f}/{s.average:.1f}/{s.maximum:.1f}"
            )
    if stats.get("csq").count:
        view = stats.csq_percent_view()
        parts.append(f"CSQ%: {view.minimum:.1f}/{view.average:.1f}/{view.maximum:.1f}")
    if not parts:
        return ""
    return "[min/avg/max] " + ", ".join(parts)


def age_seconds(info: Info, now: datetime | None = None) -> int:
    """Seconds since the snapshot was last updated."""
    if info.last_update is None:
        return 0
    now = now or datetime.now(timezone.utc)
    return int((now - info.last_update).total_seconds())
