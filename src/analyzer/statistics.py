"""Statistics Engine -- summary figures for a record series.

Pack statistics
───────────────
  avg / min / max voltage, avg current, max |current|, avg SOC,
  avg power, max |power|
      Computed over finite values only.  A record without a power reading
      makes no contribution to the power average; it is never counted as
      zero.  A field with no finite value at all is reported as None.

  duration_sec
      ``last.relative_time - first.relative_time`` of the ordered series.

Cell statistics
───────────────
  min / max / avg cell voltage
      Over valid (non-null) cell voltages.  The average is the mean of the
      per-record means.

  cell_imbalance
      Largest per-record spread ``max(valid) - min(valid)`` over the series.

  min / max / avg cell temperature
      Same rules over the valid cell temperatures.

  cell_count / temp_count
      Largest number of valid entries seen in a single record.
"""

from __future__ import annotations

import logging
import math

from src.contracts.record import MeasurementRecord
from src.contracts.summary import CellStats, SeriesStats

log = logging.getLogger(__name__)


def _finite(values: list[float | None]) -> list[float]:
    return [v for v in values if v is not None and math.isfinite(v)]


def _mean(values: list[float]) -> float | None:
    return sum(values) / len(values) if values else None


def series_stats(records: list[MeasurementRecord]) -> SeriesStats:
    """Compute summary statistics for a record series.

    Args:
        records: Time-ordered series.

    Returns:
        SeriesStats with the computed figures.
    """
    s = SeriesStats(record_count=len(records))
    if not records:
        return s

    last, first = records[-1].relative_time, records[0].relative_time
    s.duration_sec = last - first if math.isfinite(last - first) else 0.0

    voltages = _finite([r.voltage for r in records])
    currents = _finite([r.current for r in records])
    socs = _finite([r.soc for r in records])
    powers = _finite([r.power for r in records])

    s.avg_voltage = _mean(voltages)
    s.min_voltage = min(voltages) if voltages else None
    s.max_voltage = max(voltages) if voltages else None
    s.avg_current = _mean(currents)
    s.max_abs_current = max(abs(i) for i in currents) if currents else None
    s.avg_soc = _mean(socs)
    s.avg_power = _mean(powers)
    s.max_abs_power = max(abs(p) for p in powers) if powers else None

    if not voltages:
        log.warning("No valid voltage data for statistics")
    return s


def _spread(values: list[float]) -> float:
    return max(values) - min(values)


def cell_stats(records: list[MeasurementRecord]) -> CellStats | None:
    """Per-cell statistics; None when no record carries cell data."""
    if not any(r.cell_voltages or r.cell_temperatures for r in records):
        return None

    stats = CellStats()
    v_means: list[float] = []
    t_means: list[float] = []
    v_min, v_max = math.inf, -math.inf
    t_min, t_max = math.inf, -math.inf

    for rec in records:
        valid_v = _finite(rec.cell_voltages)
        if valid_v:
            v_min = min(v_min, min(valid_v))
            v_max = max(v_max, max(valid_v))
            stats.cell_imbalance = max(stats.cell_imbalance, _spread(valid_v))
            stats.cell_count = max(stats.cell_count, len(valid_v))
            v_means.append(sum(valid_v) / len(valid_v))

        valid_t = _finite(rec.cell_temperatures)
        if valid_t:
            t_min = min(t_min, min(valid_t))
            t_max = max(t_max, max(valid_t))
            stats.temp_count = max(stats.temp_count, len(valid_t))
            t_means.append(sum(valid_t) / len(valid_t))

    if v_means:
        stats.has_voltages = True
        stats.min_cell_voltage, stats.max_cell_voltage = v_min, v_max
        stats.avg_cell_voltage = sum(v_means) / len(v_means)
    if t_means:
        stats.has_temperatures = True
        stats.min_cell_temp, stats.max_cell_temp = t_min, t_max
        stats.avg_cell_temp = sum(t_means) / len(t_means)

    log.debug(
        "Cell stats: imbalance=%.3f V, max temp=%.1f C, cells=%d, sensors=%d",
        stats.cell_imbalance,
        stats.max_cell_temp,
        stats.cell_count,
        stats.temp_count,
    )
    return stats


def max_cell_spread(record: MeasurementRecord) -> float | None:
    """Spread of the valid cell voltages of one record (None without any)."""
    valid = _finite(record.cell_voltages)
    return _spread(valid) if valid else None


def max_cell_temperature(record: MeasurementRecord) -> float | None:
    valid = _finite(record.cell_temperatures)
    return max(valid) if valid else None
