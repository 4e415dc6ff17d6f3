"""Block parser: raw BMS log text → MeasurementRecords.

The log is a flat, YAML-like dialect: documents separated by ``---``
lines, each holding ``key: value`` lines and two optional nested lists::

    ---
    header:
      stamp:
        sec: 1700000000
        nanosec: 250000000
    voltage: 52.31
    current: -4.2
    soc: 81.0
    cell_voltages:
    - 3.27
    - 3.28
    cell_temperatures: [24.5, 25.0]

This is deliberately *not* a YAML parser.  Every field has its own
compiled matcher, so a malformed or missing field never blocks the
extraction of the others, and a malformed block never aborts the parse.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any

from src.contracts.record import MeasurementRecord
from src.contracts.thresholds import ValidRanges
from src.ingest.validator import derive_power, filter_cells
from src.shared.errors import ParseError

log = logging.getLogger(__name__)

# ── Value patterns ───────────────────────────────────────────────────────────

# signed decimal with optional exponent; must not run into another digit or dot
_NUMBER = r"([-+]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?)(?![\d.])"
# unsigned integer only ("12.5" and "-3" do not match)
_UINT = r"(\d+)(?![\d.])"

_SEPARATOR = re.compile(r"^[ \t]*-{3,}[ \t]*$", re.MULTILINE)
_NUMBER_PREFIX = re.compile(_NUMBER)
_KEY_LINE = re.compile(r"^([ \t]*)([A-Za-z_][\w.-]*)[ \t]*:(.*)$")
_ITEM_LINE = re.compile(r"^[ \t]*-(?:[ \t]+(.*?))?[ \t]*$")


def _field(key: str, value_pattern: str) -> re.Pattern[str]:
    # anchored at line start so "sec" never matches inside "nanosec"
    return re.compile(rf"^[ \t]*{key}[ \t]*:[ \t]*{value_pattern}", re.MULTILINE)


FLOAT_FIELDS: dict[str, re.Pattern[str]] = {
    "voltage": _field("voltage", _NUMBER),
    "current": _field("current", _NUMBER),
    "soc": _field("soc", _NUMBER),
    "power": _field("power", _NUMBER),
    "remaining_ah": _field("remaining_ah", _NUMBER),
}

INT_FIELDS: dict[str, re.Pattern[str]] = {
    "sec": _field("sec", _UINT),
    "nanosec": _field("nanosec", _UINT),
    "charge_fet": _field("charge_fet", _UINT),
    "discharge_fet": _field("discharge_fet", _UINT),
}

LIST_FIELDS: tuple[str, ...] = ("cell_voltages", "cell_temperatures")

_NANOS_PER_SEC = 1_000_000_000


@dataclass(slots=True)
class ParseResult:
    """Records extracted from one document plus the skipped fragments."""

    records: list[MeasurementRecord] = field(default_factory=list)
    quarantine: list[dict[str, Any]] = field(default_factory=list)

    @property
    def skipped(self) -> int:
        return len(self.quarantine)


# ── Document splitting ───────────────────────────────────────────────────────


def split_blocks(raw_text: str) -> list[str]:
    """Split on ``---`` separator lines, dropping empty fragments."""
    text = raw_text.replace("\r\n", "\n").replace("\r", "\n")
    return [b for b in _SEPARATOR.split(text) if b.strip()]


# ── Field extraction helpers ─────────────────────────────────────────────────


def _to_float(text: str) -> float | None:
    """Leading number of *text* as a finite float, or None."""
    m = _NUMBER_PREFIX.match(text.strip())
    if not m:
        return None
    value = float(m.group(1))
    return value if math.isfinite(value) else None


def _extract_float(block: str, key: str) -> float | None:
    m = FLOAT_FIELDS[key].search(block)
    if not m:
        return None
    value = float(m.group(1))
    return value if math.isfinite(value) else None


def _extract_int(block: str, key: str) -> int | None:
    m = INT_FIELDS[key].search(block)
    return int(m.group(1)) if m else None


def _parse_inline_list(text: str) -> list[float | None]:
    """``[3.3, 3.31, .nan]`` → ``[3.3, 3.31, None]``."""
    body = text.strip()[1:]
    end = body.find("]")
    if end >= 0:
        body = body[:end]
    if not body.strip():
        return []
    return [_to_float(item) for item in body.split(",")]


def _extract_list(lines: list[str], key: str) -> list[float | None] | None:
    """Values listed under *key*; None when the key is absent.

    Collects ``- value`` lines until the next non-item line at the same or a
    lower indentation (or the end of the block).  An item that is not a number
    keeps its slot as None.
    """
    for idx, line in enumerate(lines):
        m = _KEY_LINE.match(line)
        if not m or m.group(2) != key:
            continue

        rest = m.group(3).strip()
        if rest.startswith("["):
            return _parse_inline_list(rest)

        indent = len(m.group(1).expandtabs())
        values: list[float | None] = []
        for nxt in lines[idx + 1 :]:
            if not nxt.strip():
                continue
            item = _ITEM_LINE.match(nxt)
            if item:
                values.append(_to_float(item.group(1) or ""))
                continue
            expanded = nxt.expandtabs()
            if len(expanded) - len(expanded.lstrip()) <= indent:
                break
        return values
    return None


# ── Block parsing ────────────────────────────────────────────────────────────


def parse_block(
    block: str,
    *,
    invert_current: bool = False,
    ranges: ValidRanges | None = None,
) -> MeasurementRecord | tuple[str, str]:
    """Parse one document fragment.

    Returns:
        MeasurementRecord — on success
        (raw_block, reason) — when the fragment yields no record
    """
    ranges = ranges or ValidRanges()

    if not block.strip():
        return (block, "empty_block")

    try:
        sec = _extract_int(block, "sec")
        if sec is None:
            return (block, "no_timestamp")

        scalars = {key: _extract_float(block, key) for key in FLOAT_FIELDS}
        lines = block.split("\n")
        raw_cells = _extract_list(lines, "cell_voltages") or []
        raw_temps = _extract_list(lines, "cell_temperatures") or []

        has_scalar = any(scalars[k] is not None for k in ("voltage", "current", "soc", "power"))
        if not has_scalar and not raw_cells:
            return (block, "no_measurement")

        # nanosec ≥ 1e9 is carried into the seconds part; timestamp is unchanged
        carry, nanosec = divmod(_extract_int(block, "nanosec") or 0, _NANOS_PER_SEC)
        sec += carry
        timestamp = sec + nanosec * 1e-9
        if not math.isfinite(timestamp):
            return (block, "parse_error")

        current = scalars["current"]
        power = scalars["power"]
        if invert_current:
            current = -current if current is not None else None
            power = -power if power is not None else None
        if power is None:
            power = derive_power(scalars["voltage"], current)

        return MeasurementRecord(
            seconds_epoch=sec,
            nanoseconds=nanosec,
            timestamp=timestamp,
            voltage=scalars["voltage"],
            current=current,
            soc=scalars["soc"],
            power=power,
            remaining_ah=scalars["remaining_ah"],
            charge_fet=1 if _extract_int(block, "charge_fet") else 0,
            discharge_fet=1 if _extract_int(block, "discharge_fet") else 0,
            cell_voltages=filter_cells(
                raw_cells, ranges.cell_voltage_min, ranges.cell_voltage_max, ranges.cell_count
            ),
            cell_temperatures=filter_cells(
                raw_temps, ranges.cell_temp_min, ranges.cell_temp_max, ranges.temp_sensor_count
            ),
        )
    except (ValueError, OverflowError) as exc:
        log.debug("Block parse error: %s", exc)
        return (block, "parse_error")


def _opt(value: float | None) -> tuple[int, float]:
    # absent values sort after present ones
    return (1, 0.0) if value is None else (0, value)


def _order_key(rec: MeasurementRecord) -> tuple:
    return (
        rec.timestamp,
        _opt(rec.voltage),
        _opt(rec.current),
        _opt(rec.soc),
        _opt(rec.power),
        _opt(rec.remaining_ah),
        rec.charge_fet,
        rec.discharge_fet,
        tuple(_opt(v) for v in rec.cell_voltages),
        tuple(_opt(t) for t in rec.cell_temperatures),
    )


def order_series(records: list[MeasurementRecord]) -> list[MeasurementRecord]:
    """Sort *records* by timestamp in place and rebase relative_time.

    Records sharing a timestamp are ordered by their readings, so the result
    does not depend on the order of the fragments in the log.

    ``relative_time`` is measured from the earliest record of this list, so
    it has to be recomputed whenever the list membership changes.
    """
    records.sort(key=_order_key)
    if records:
        t0 = records[0].timestamp
        for rec in records:
            rec.relative_time = rec.timestamp - t0
    return records


# ── Main parse functions ─────────────────────────────────────────────────────


def parse_document(
    raw_text: str,
    *,
    invert_current: bool = False,
    ranges: ValidRanges | None = None,
) -> ParseResult:
    """Parse a whole log document, keeping skipped fragments for diagnostics.

    Raises:
        ParseError: if *raw_text* is not a string.  Bad *content* never
            raises; it only lands in ``ParseResult.quarantine``.
    """
    if not isinstance(raw_text, str):
        raise ParseError(
            f"Expected log text (str), got {type(raw_text).__name__}",
            details={"input_type": type(raw_text).__name__},
        )

    ranges = ranges or ValidRanges()
    result = ParseResult()

    for block_no, block in enumerate(split_blocks(raw_text), 1):
        parsed = parse_block(block, invert_current=invert_current, ranges=ranges)
        if isinstance(parsed, MeasurementRecord):
            result.records.append(parsed)
        else:
            raw_block, reason = parsed
            log.debug("Skipping block %d: %s", block_no, reason)
            result.quarantine.append(
                {
                    "block_no": block_no,
                    "reason": reason,
                    "raw_block": raw_block.strip()[:200],
                }
            )

    order_series(result.records)
    log.info(
        "Parsed %d records, skipped %d blocks",
        len(result.records),
        result.skipped,
    )
    return result


def parse(
    raw_text: str,
    *,
    invert_current: bool = False,
    ranges: ValidRanges | None = None,
) -> list[MeasurementRecord]:
    """Parse *raw_text* into a time-ordered list of records (possibly empty)."""
    return parse_document(raw_text, invert_current=invert_current, ranges=ranges).records
