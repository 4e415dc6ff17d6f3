"""Post-parse validation: range checks and normalisation of records.

Runs *after* raw blocks have been parsed into MeasurementRecords and
*before* any derivation.  ``validate`` is a pure, idempotent filter: it
never mutates its input and ``validate(validate(x)) == validate(x)``.

Policies
────────
  timestamp      non-finite          → record dropped
  voltage        non-finite, ≤ 0,
                 > ranges.voltage_max → record dropped (sensor disconnected)
  soc            outside [0, 100]    → clamped, record kept
                 non-finite          → treated as absent
  current, power,
  remaining_ah   non-finite          → treated as absent
  power          absent              → voltage × current when both are finite,
                                       otherwise left absent (never zero)
  cells          truncated to capacity, out-of-range entries become None
                 in place (indices are never shifted)
  FET flags      normalised to 0 / 1

A record left with no voltage, current, SOC or valid cell voltage is
dropped as well.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable

from src.contracts.record import MeasurementRecord, is_finite
from src.contracts.thresholds import ValidRanges

log = logging.getLogger(__name__)

SOC_MIN = 0.0
SOC_MAX = 100.0


def filter_cells(
    values: Iterable[float | None],
    low: float,
    high: float,
    capacity: int,
) -> list[float | None]:
    """Truncate *values* to *capacity* and null out entries outside [low, high].

    The result has the same length as the truncated input: index 3 stays
    index 3 even when its reading is rejected.
    """
    result: list[float | None] = []
    for v in list(values)[:capacity]:
        if v is not None and math.isfinite(v) and low <= v <= high:
            result.append(float(v))
        else:
            result.append(None)
    return result


def derive_power(voltage: float | None, current: float | None) -> float | None:
    """``voltage × current`` when both are finite and the product is too."""
    if not (is_finite(voltage) and is_finite(current)):
        return None
    power = voltage * current
    return power if math.isfinite(power) else None


def _finite_or_none(value: float | None) -> float | None:
    return value if is_finite(value) else None


def _drop_reason(record: MeasurementRecord, ranges: ValidRanges) -> str | None:
    """Reason the record must be discarded, or None if it may be kept."""
    if record.timestamp is None or not math.isfinite(record.timestamp):
        return "non_finite_timestamp"
    v = record.voltage
    if v is not None and (not math.isfinite(v) or v <= 0 or v > ranges.voltage_max):
        return "voltage_out_of_range"
    return None


def _normalize(record: MeasurementRecord, ranges: ValidRanges) -> MeasurementRecord:
    """Return a normalised copy of *record* (see module policies)."""
    rec = record.clone()

    if is_finite(rec.soc):
        rec.soc = min(max(rec.soc, SOC_MIN), SOC_MAX)
    else:
        rec.soc = None

    rec.current = _finite_or_none(rec.current)
    rec.power = _finite_or_none(rec.power)
    rec.remaining_ah = _finite_or_none(rec.remaining_ah)

    if rec.power is None:
        rec.power = derive_power(rec.voltage, rec.current)

    rec.cell_voltages = filter_cells(
        rec.cell_voltages, ranges.cell_voltage_min, ranges.cell_voltage_max, ranges.cell_count
    )
    rec.cell_temperatures = filter_cells(
        rec.cell_temperatures, ranges.cell_temp_min, ranges.cell_temp_max, ranges.temp_sensor_count
    )

    rec.charge_fet = 1 if rec.charge_fet else 0
    rec.discharge_fet = 1 if rec.discharge_fet else 0
    return rec


def validate(
    records: list[MeasurementRecord],
    ranges: ValidRanges | None = None,
) -> list[MeasurementRecord]:
    """Filter and normalise *records*; returns a new list of new records.

    Input order is preserved.  The input list and its records are left
    untouched.
    """
    ranges = ranges or ValidRanges()
    result: list[MeasurementRecord] = []
    dropped: dict[str, int] = {}

    for rec in records:
        reason = _drop_reason(rec, ranges)
        if reason is None:
            normalized = _normalize(rec, ranges)
            if normalized.has_measurement():
                result.append(normalized)
                continue
            reason = "no_measurement"
        dropped[reason] = dropped.get(reason, 0) + 1
        log.debug("Dropped record at t=%s: %s", rec.timestamp, reason)

    if dropped:
        log.info(
            "Validation kept %d of %d records (dropped: %s)",
            len(result),
            len(records),
            ", ".join(f"{k}={v}" for k, v in sorted(dropped.items())),
        )
    return result


def validation_warnings(
    record: MeasurementRecord,
    ranges: ValidRanges | None = None,
) -> list[str]:
    """Return a list of validation warnings (empty = record passes unchanged).

    Lists both fatal problems (the record would be dropped) and values that
    ``validate`` would clamp or null out.
    """
    ranges = ranges or ValidRanges()
    warnings: list[str] = []

    reason = _drop_reason(record, ranges)
    if reason == "non_finite_timestamp":
        warnings.append(f"non-finite timestamp {record.timestamp!r}")
    elif reason == "voltage_out_of_range":
        warnings.append(f"voltage {record.voltage!r} outside (0, {ranges.voltage_max}]")

    if is_finite(record.soc) and not SOC_MIN <= record.soc <= SOC_MAX:
        warnings.append(f"soc {record.soc} clamped to [{SOC_MIN:g}, {SOC_MAX:g}]")

    if len(record.cell_voltages) > ranges.cell_count:
        warnings.append(
            f"{len(record.cell_voltages)} cell voltages truncated to {ranges.cell_count}"
        )
    bad_cells = [
        i
        for i, v in enumerate(record.cell_voltages[: ranges.cell_count])
        if v is not None
        and not (math.isfinite(v) and ranges.cell_voltage_min <= v <= ranges.cell_voltage_max)
    ]
    if bad_cells:
        warnings.append(f"cell voltages out of range at index {bad_cells}")

    if len(record.cell_temperatures) > ranges.temp_sensor_count:
        warnings.append(
            f"{len(record.cell_temperatures)} cell temperatures truncated "
            f"to {ranges.temp_sensor_count}"
        )
    bad_temps = [
        i
        for i, t in enumerate(record.cell_temperatures[: ranges.temp_sensor_count])
        if t is not None
        and not (math.isfinite(t) and ranges.cell_temp_min <= t <= ranges.cell_temp_max)
    ]
    if bad_temps:
        warnings.append(f"cell temperatures out of range at index {bad_temps}")

    if not record.has_measurement():
        warnings.append("no voltage, current, soc or valid cell voltage")

    return warnings
