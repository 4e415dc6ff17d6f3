"""Detector — threshold rules: record series → Alerts.

Each rule scans the whole series and raises at most one Alert.  Rules
are evaluated in a fixed order that doubles as the display order:

  voltage_low            finite voltage < thresholds.voltage_low
  voltage_high           finite voltage > thresholds.voltage_high
  over_current           |current| > thresholds.current_max
  soc_low                soc < thresholds.soc_low
  cell_imbalance         largest per-record cell spread > cell_imbalance_max
  cell_over_temperature  hottest valid cell temperature > cell_temp_max

The detector keeps no state between calls: every call recomputes the full
alert list from the series and thresholds it is given.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from src.analyzer.statistics import max_cell_spread, max_cell_temperature
from src.contracts.alert import Alert
from src.contracts.enums import AlertKind, Severity
from src.contracts.record import MeasurementRecord, is_finite
from src.contracts.thresholds import Thresholds

log = logging.getLogger(__name__)

_SEVERITY: dict[AlertKind, Severity] = {
    AlertKind.VOLTAGE_LOW: Severity.HIGH,
    AlertKind.VOLTAGE_HIGH: Severity.HIGH,
    AlertKind.OVER_CURRENT: Severity.HIGH,
    AlertKind.SOC_LOW: Severity.MEDIUM,
    AlertKind.CELL_IMBALANCE: Severity.MEDIUM,
    AlertKind.CELL_OVER_TEMPERATURE: Severity.CRITICAL,
}


def _alert(
    kind: AlertKind,
    message: str,
    count: int,
    observed: float,
    threshold: float,
) -> Alert:
    return Alert(
        kind=kind,
        severity=_SEVERITY[kind].value,
        message=message,
        count=count,
        observed=observed,
        threshold=threshold,
    )


# ═══════════════════════════════════════════════════════════════════════════
#  Rule implementations
# ═══════════════════════════════════════════════════════════════════════════


def _check_voltage_low(records: list[MeasurementRecord], th: Thresholds) -> Alert | None:
    low = [r.voltage for r in records if is_finite(r.voltage) and r.voltage < th.voltage_low]
    if not low:
        return None
    return _alert(
        AlertKind.VOLTAGE_LOW,
        f"Low voltage: {len(low)} readings below {th.voltage_low:g} V "
        f"(min {min(low):.2f} V)",
        len(low),
        min(low),
        th.voltage_low,
    )


def _check_voltage_high(records: list[MeasurementRecord], th: Thresholds) -> Alert | None:
    high = [r.voltage for r in records if is_finite(r.voltage) and r.voltage > th.voltage_high]
    if not high:
        return None
    return _alert(
        AlertKind.VOLTAGE_HIGH,
        f"High voltage: {len(high)} readings above {th.voltage_high:g} V "
        f"(max {max(high):.2f} V)",
        len(high),
        max(high),
        th.voltage_high,
    )


def _check_current(records: list[MeasurementRecord], th: Thresholds) -> Alert | None:
    over = [
        abs(r.current)
        for r in records
        if is_finite(r.current) and abs(r.current) > th.current_max
    ]
    if not over:
        return None
    return _alert(
        AlertKind.OVER_CURRENT,
        f"High current: {len(over)} readings exceed {th.current_max:g} A "
        f"(max |I| {max(over):.2f} A)",
        len(over),
        max(over),
        th.current_max,
    )


def _check_soc(records: list[MeasurementRecord], th: Thresholds) -> Alert | None:
    low = [r.soc for r in records if is_finite(r.soc) and r.soc < th.soc_low]
    if not low:
        return None
    return _alert(
        AlertKind.SOC_LOW,
        f"Low SOC: {len(low)} readings below {th.soc_low:g}% (min {min(low):.1f}%)",
        len(low),
        min(low),
        th.soc_low,
    )


def _check_imbalance(records: list[MeasurementRecord], th: Thresholds) -> Alert | None:
    spreads = [s for s in (max_cell_spread(r) for r in records) if s is not None]
    if not spreads or max(spreads) <= th.cell_imbalance_max:
        return None
    worst = max(spreads)
    return _alert(
        AlertKind.CELL_IMBALANCE,
        f"Cell imbalance: {worst:.3f} V (max {th.cell_imbalance_max:g} V)",
        sum(1 for s in spreads if s > th.cell_imbalance_max),
        worst,
        th.cell_imbalance_max,
    )


def _check_temperature(records: list[MeasurementRecord], th: Thresholds) -> Alert | None:
    temps = [t for t in (max_cell_temperature(r) for r in records) if t is not None]
    if not temps or max(temps) <= th.cell_temp_max:
        return None
    hottest = max(temps)
    return _alert(
        AlertKind.CELL_OVER_TEMPERATURE,
        f"High cell temperature: {hottest:.1f} C (max {th.cell_temp_max:g} C)",
        sum(1 for t in temps if t > th.cell_temp_max),
        hottest,
        th.cell_temp_max,
    )


_RULES: list[Callable[[list[MeasurementRecord], Thresholds], Alert | None]] = [
    _check_voltage_low,
    _check_voltage_high,
    _check_current,
    _check_soc,
    _check_imbalance,
    _check_temperature,
]


# ═══════════════════════════════════════════════════════════════════════════
#  Public API
# ═══════════════════════════════════════════════════════════════════════════


def evaluate(
    records: list[MeasurementRecord],
    thresholds: Thresholds | None = None,
) -> list[Alert]:
    """Run all rules against *records* and return the raised Alerts.

    Parameters
    ──────────
    records
        Validated series; read only.
    thresholds
        Alert thresholds.  None means the defaults.

    Returns
    ───────
    Alerts in rule order (voltage low/high, current, SOC, imbalance,
    temperature).
    """
    if not records:
        log.warning("No records to analyse — detector returns empty list")
        return []

    th = thresholds or Thresholds()
    alerts: list[Alert] = []
    for rule in _RULES:
        alert = rule(records, th)
        if alert is not None:
            alerts.append(alert)

    log.info("Detector raised %d alerts from %d records", len(alerts), len(records))
    return alerts
