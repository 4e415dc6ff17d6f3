"""Runtime and cost of a record series.

Runtime is the sum of all *positive* time gaps between consecutive
records rather than ``last - first``, so duplicate or out-of-order
timestamps never produce a negative or inflated duration.

Energy for cost purposes is computed independently of the trapezoidal
integration: each interval uses the power of the record that opens it
(sample-and-hold), falling back to ``voltage × current`` when power is
absent.  The signed interval energies are summed without a
charge/discharge split and the cost is taken on the magnitude::

    total_cost    = |energy_kwh| * unit_price
    cost_per_hour = total_cost / hours   (0.0 when hours == 0)

The hourly breakdown buckets every interval's energy into
``floor(prev.relative_time / 3600)``.  Only hours that received energy
appear in it.
"""

from __future__ import annotations

import logging
import math

from src.contracts.record import MeasurementRecord, is_finite
from src.contracts.summary import HourlyBucket, RuntimeCostSummary
from src.ingest.validator import derive_power
from src.shared.errors import ConfigError

log = logging.getLogger(__name__)


def _interval_power(record: MeasurementRecord) -> float | None:
    if is_finite(record.power):
        return record.power
    return derive_power(record.voltage, record.current)


def check_unit_price(unit_price: float) -> float:
    """Return *unit_price* as float; reject negative or non-finite prices."""
    try:
        price = float(unit_price)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Unit price must be a number, got {unit_price!r}") from exc
    if not math.isfinite(price) or price < 0:
        raise ConfigError(f"Unit price must be a finite value >= 0, got {unit_price!r}")
    return price


def compute_runtime_cost(
    records: list[MeasurementRecord],
    unit_price: float = 0.0,
) -> RuntimeCostSummary:
    """Compute runtime, energy cost and the hourly cost breakdown.

    Read-only with respect to *records*.

    Raises:
        ConfigError: if *unit_price* is negative or not a finite number.
    """
    price = check_unit_price(unit_price)
    summary = RuntimeCostSummary(unit_price=price)
    buckets: dict[int, HourlyBucket] = {}

    for prev, curr in zip(records, records[1:]):
        dt = curr.relative_time - prev.relative_time
        if not math.isfinite(dt) or dt <= 0:
            continue
        summary.total_seconds += dt

        power = _interval_power(prev)
        if power is None or not math.isfinite(prev.relative_time):
            continue
        interval_wh = power * dt / 3600
        summary.energy_wh += interval_wh

        hour = math.floor(prev.relative_time / 3600)
        bucket = buckets.get(hour)
        if bucket is None:
            bucket = buckets[hour] = HourlyBucket(hour_index=hour)
        bucket.energy_wh += interval_wh

    for bucket in buckets.values():
        bucket.energy_kwh = bucket.energy_wh / 1000
        bucket.cost = abs(bucket.energy_kwh) * price
    summary.hourly_breakdown = [buckets[h] for h in sorted(buckets)]

    summary.energy_kwh = summary.energy_wh / 1000
    summary.total_cost = abs(summary.energy_kwh) * price
    hours = summary.total_hours
    summary.cost_per_hour = summary.total_cost / hours if hours > 0 else 0.0

    log.info(
        "Runtime: %.1f s, energy=%.3f kWh, cost=%.4f (%.4f/h, %d hourly buckets)",
        summary.total_seconds,
        summary.energy_kwh,
        summary.total_cost,
        summary.cost_per_hour,
        len(summary.hourly_breakdown),
    )
    return summary
