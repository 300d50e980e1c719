"""Parser for the ZTE MF283+ syslog (``/messages``) text.

The router's log is a noisy concatenation of AT-command echoes. Only a
handful of lines carry signal telemetry:

  ProcAtZrssiRes network_type = LTE, ...        network generation label
  +ZRSSI: -95,-10,-70,12.3                     signal strength (2G/3G/4G layout)
  +CSQ: 20,5                                   coverage index (comma decimal on some firmware)
  LAC=1A2B CELL_ID=FF00FF                      location area / cell id (hex)
  +ZDON: " A1",232,1                           provider description, MCC, MNC
  +ZCELLINFO: 123, 45, LTE B20, 6300           band / channel or frequency

Each line is owned by the first category whose marker it contains. Within
one batch the first successful match of a category wins. Malformed fields
never raise; they simply leave the metric absent.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable

from signal_watch.device.info import Info

logger = logging.getLogger(__name__)

MAX_TEXT_LENGTH = 63

LTE_BAND_FREQUENCIES: dict[str, int] = {
    "B3": 1800,
    "B7": 2600,
    "B20": 800,
}
UNKNOWN_FREQUENCY = -1

_NETWORK_TYPE_MARKER = "ProcAtZrssiRes"
_ZRSSI_MARKER = "+ZRSSI: "
_CSQ_MARKER = "+CSQ: "
_LAC_MARKER = "LAC="
_CELL_ID_MARKER = "CELL_ID="
_ZDON_MARKER = "+ZDON: "
_ZCELLINFO_MARKER = "+ZCELLINFO: "

_INT = r"[+-]?\d+"
_FLOAT = r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?"
_HEX = r"(?:0[xX])?([0-9A-Fa-f]+)"

_INT_RE = re.compile(r"\s*(" + _INT + r")")
_FLOAT_RE = re.compile(r"\s*(" + _FLOAT + r")")
_SEPARATOR_RE = re.compile(r"\s*,")
_NETWORK_TYPE_RE = re.compile(r"network_type\s*=\s*([^,\r\n]{1," + str(MAX_TEXT_LENGTH) + r"})")
_LAC_RE = re.compile(re.escape(_LAC_MARKER) + _HEX)
_CELL_ID_RE = re.compile(re.escape(_CELL_ID_MARKER) + _HEX)
# MCC and MNC are unsigned; a signed value leaves the codes unset
_MCC_MNC_RE = re.compile(r",\s*(\d+)\s*,\s*(\d+)")
_CELLINFO_LTE_RE = re.compile(
    r"\s*" + _INT + r"\s*,\s*" + _INT + r"\s*,\s*LTE\s*([^,]{1," + str(MAX_TEXT_LENGTH) + r"})\s*,\s*(" + _INT + r")"
)
_CELLINFO_OTHER_RE = re.compile(r"\s*" + _INT + r"\s*,\s*" + _INT + r"\s*,\s*\S+\s+(" + _INT + r")")


@dataclass
class ParseResult:
    """Outcome of parsing one log batch."""

    info: Info
    was_reset: bool = False


def scan_numbers(text: str, kinds: str) -> list[int | float]:
    """Scan comma-separated numbers from the start of ``text``.

    ``kinds`` is a pattern of ``d`` (int) and ``f`` (float) slots. Scanning
    stops at the first slot that does not match, so the length of the
    result is the number of fields read. An int slot stops at a decimal
    point, leaving the rest of that field unread.
    """
    values: list[int | float] = []
    pos = 0
    for i, kind in enumerate(kinds):
        if i > 0:
            sep = _SEPARATOR_RE.match(text, pos)
            if sep is None:
                break
            pos = sep.end()
        m = (_INT_RE if kind == "d" else _FLOAT_RE).match(text, pos)
        if m is None:
            break
        values.append(int(m.group(1)) if kind == "d" else float(m.group(1)))
        pos = m.end()
    return values


def _parse_network_type(line: str, start: int) -> dict[str, Any] | None:
    m = _NETWORK_TYPE_RE.search(line, start)
    if m is None:
        return None
    label = m.group(1).strip()
    if not label:
        return None
    return {"network_type": label}


def _parse_signal_strength(line: str, start: int) -> dict[str, Any] | None:
    rest = line[start:]
    # Every signal slot is cleared first so a partial match cannot leave
    # values from an earlier generation looking valid.
    values: dict[str, Any] = dict.fromkeys(("rsrp", "rscp", "rsrq", "rssi", "sinr", "ecio"))

    fields = scan_numbers(rest, "dddf")
    if not fields:
        return None
    if len(fields) == 1:  # 2G
        values["rssi"] = fields[0]
    elif len(fields) == 2:  # 3G
        fields = scan_numbers(rest, "df")
        if len(fields) != 2:
            return None
        values["rscp"], values["ecio"] = fields
    else:  # 4G
        values["rsrp"], values["rsrq"], values["rssi"] = fields[:3]
        if len(fields) == 4:
            values["sinr"] = fields[3]
    return values


def _parse_csq(line: str, start: int) -> dict[str, Any] | None:
    # Some firmware prints the index with a comma as decimal separator.
    fields = scan_numbers(line[start:].replace(",", "."), "f")
    if not fields:
        return None
    return {"csq": fields[0]}


def _parse_location(line: str, start: int) -> dict[str, Any] | None:
    m = _LAC_RE.match(line, start - len(_LAC_MARKER))
    if m is None:
        return None
    values: dict[str, Any] = {"lac": int(m.group(1), 16)}
    cell = _CELL_ID_RE.search(line)
    if cell is not None:
        values["global_cell_id"] = int(cell.group(1), 16)
    return values


def _parse_provider(line: str, start: int) -> dict[str, Any] | None:
    if line[start:start + 1] != '"':
        return None
    close = line.find('"', start + 1)
    if close < 0:
        return None
    desc = line[start + 1:close].lstrip(" ")[:MAX_TEXT_LENGTH]
    values: dict[str, Any] = {"provider_desc": desc}
    m = _MCC_MNC_RE.match(line, close + 1)
    if m is not None:
        mcc, mnc = int(m.group(1)), int(m.group(2))
        values["mcc_mnc"] = int(f"{mcc}{mnc:02d}")
    return values


def _parse_cell_info(line: str, start: int) -> dict[str, Any] | None:
    # Fields: global cell id, physical cell id, band, channel/frequency
    m = _CELLINFO_LTE_RE.match(line, start)
    if m is not None:
        band = m.group(1).strip()
        return {
            "frequency": LTE_BAND_FREQUENCIES.get(band, UNKNOWN_FREQUENCY),
            "channel": int(m.group(2)),
        }
    m = _CELLINFO_OTHER_RE.match(line, start)
    if m is not None:
        return {"frequency": int(m.group(1))}
    return None


_Extractor = Callable[[str, int], "dict[str, Any] | None"]

# Order matters: a line belongs to the first category whose marker it contains.
_EXTRACTORS: tuple[tuple[str, str, _Extractor], ...] = (
    ("network_type", _NETWORK_TYPE_MARKER, _parse_network_type),
    ("signal_strength", _ZRSSI_MARKER, _parse_signal_strength),
    ("csq", _CSQ_MARKER, _parse_csq),
    ("location", _LAC_MARKER, _parse_location),
    ("provider", _ZDON_MARKER, _parse_provider),
    ("cell_info", _ZCELLINFO_MARKER, _parse_cell_info),
)


def extract_fields(raw_text: str) -> dict[str, Any]:
    """Extract all telemetry fields present in one log batch."""
    fields: dict[str, Any] = {}
    matched: set[str] = set()

    for line in raw_text.splitlines():
        for category, marker, extractor in _EXTRACTORS:
            pos = line.find(marker)
            if pos < 0:
                continue
            if category not in matched:
                values = extractor(line, pos + len(marker))
                if values is not None:
                    fields.update(values)
                    matched.add(category)
            break

    return fields


def parse(raw_text: str, previous: Info, now: datetime | None = None) -> ParseResult:
    """Parse a log batch into a new snapshot.

    If both ``previous`` and the new batch report a network type and the
    generations differ, nothing from the batch is kept: the result is a
    zeroed snapshot with ``was_reset`` set, and the sequence number and
    timestamp are left as they were. Callers must then reset any
    aggregates built for the old generation.
    """
    info = Info(**extract_fields(raw_text))

    old_type = previous.network_type_as_int()
    new_type = info.network_type_as_int()
    if old_type is not None and new_type is not None and old_type != new_type:
        logger.info(
            "Network type changed %s -> %s, resetting snapshot",
            previous.network_type, info.network_type,
        )
        return ParseResult(info=previous.reset(), was_reset=True)

    info.n = previous.n + 1
    info.last_update = now or datetime.now(timezone.utc)
    return ParseResult(info=info)
