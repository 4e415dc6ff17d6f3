"""Energy Engine -- trapezoidal integration of pack power over time.

Integration rule
────────────────
    For each consecutive pair (prev, curr) of a time-ordered series::

        dt         = curr.relative_time - prev.relative_time        [s]
        avgVoltage = (prev.voltage + curr.voltage) / 2
        avgCurrent = (prev.current + curr.current) / 2
        intervalWh = avgVoltage * avgCurrent * dt / 3600

    ``cumulative_energy_wh`` of ``curr`` is the running sum of intervalWh.

Degenerate intervals
────────────────────
    An interval with ``dt <= 0`` or a non-finite voltage, current or
    relative time at either end contributes nothing: ``curr`` carries the
    previous cumulative value forward unchanged.

Charge / discharge split
────────────────────────
    Current is positive while charging.  ``avgCurrent > 0`` adds intervalWh
    to the charged total, ``avgCurrent < 0`` adds ``|intervalWh|`` to the
    discharged total; ``avgCurrent == 0`` only affects the net total.

    efficiency = discharged / charged * 100 when both totals are positive,
    otherwise 100.0.  A series that only charged or only discharged has no
    round trip to measure; the fallback is not a claim of perfect efficiency.

Units
─────
    Everything accumulates in watt-hours; kWh values are produced only when
    writing the record fields and the summary.
"""

from __future__ import annotations

import logging
import math

from src.contracts.record import MeasurementRecord, is_finite
from src.contracts.summary import EnergySummary

log = logging.getLogger(__name__)


def _usable_pair(prev: MeasurementRecord, curr: MeasurementRecord) -> float | None:
    """Interval length in seconds, or None if the pair must be skipped."""
    for value in (prev.voltage, curr.voltage, prev.current, curr.current):
        if not is_finite(value):
            return None
    if not (math.isfinite(prev.relative_time) and math.isfinite(curr.relative_time)):
        return None
    dt = curr.relative_time - prev.relative_time
    if dt <= 0 or not math.isfinite(dt):
        return None
    return dt


def integrate_energy(records: list[MeasurementRecord]) -> EnergySummary:
    """Assign cumulative energy to every record **in place**.

    *records* must be time-ordered with ``relative_time`` already assigned
    (see ``src.ingest.parser.order_series``).  Callers that need the
    pre-derivation values must clone the records first.

    Returns an EnergySummary recomputed from scratch over the whole list.
    """
    summary = EnergySummary()
    if not records:
        log.warning("No records -- energy integration skipped")
        return summary

    total_wh = 0.0
    charged_wh = 0.0
    discharged_wh = 0.0

    records[0].cumulative_energy_wh = 0.0
    records[0].cumulative_energy_kwh = 0.0

    for prev, curr in zip(records, records[1:]):
        dt = _usable_pair(prev, curr)
        if dt is None:
            summary.intervals_skipped += 1
            curr.cumulative_energy_wh = prev.cumulative_energy_wh
            curr.cumulative_energy_kwh = curr.cumulative_energy_wh / 1000
            continue

        avg_voltage = (prev.voltage + curr.voltage) / 2
        avg_current = (prev.current + curr.current) / 2
        interval_wh = avg_voltage * avg_current * (dt / 3600)

        total_wh += interval_wh
        if avg_current > 0:
            charged_wh += interval_wh
        elif avg_current < 0:
            discharged_wh += abs(interval_wh)

        summary.intervals_used += 1
        curr.cumulative_energy_wh = total_wh
        curr.cumulative_energy_kwh = total_wh / 1000

    summary.net_kwh = total_wh / 1000
    summary.charged_kwh = charged_wh / 1000
    summary.discharged_kwh = discharged_wh / 1000
    summary.efficiency_percent = (
        (discharged_wh / charged_wh) * 100
        if charged_wh > 0 and discharged_wh > 0
        else 100.0
    )

    log.info(
        "Energy: net=%.3f kWh, charged=%.3f kWh, discharged=%.3f kWh, "
        "efficiency=%.1f%% (%d intervals, %d skipped)",
        summary.net_kwh,
        summary.charged_kwh,
        summary.discharged_kwh,
        summary.efficiency_percent,
        summary.intervals_used,
        summary.intervals_skipped,
    )
    return summary
