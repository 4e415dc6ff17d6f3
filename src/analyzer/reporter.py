"""Reporting: CSV export of the series and the plain-text report."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from src.analyzer.pipeline import PipelineResult
from src.contracts.record import MeasurementRecord

log = logging.getLogger(__name__)


def _atomic_write(path: str | Path, content: str) -> None:
    """Write *content* to *path* atomically."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(
        dir=str(target.parent),
        prefix=f".{target.name}.",
        suffix=".tmp",
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(content)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp, target)
    except BaseException:
        # Clean up temp file on any failure
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise


def _fmt(value: float | None, fmt: str, unit: str = "") -> str:
    if value is None:
        return "n/a"
    return f"{value:{fmt}}{unit}"


# ═══════════════════════════════════════════════════════════════════════════
#  CSV writer
# ═══════════════════════════════════════════════════════════════════════════


def write_records_csv(records: list[MeasurementRecord], path: str | Path) -> None:
    """Write the derived series; absent readings become empty cells."""
    lines = [MeasurementRecord.csv_header()]
    for rec in records:
        lines.append(rec.to_csv_row())
    _atomic_write(path, "\n".join(lines) + "\n")
    log.info("Wrote records → %s (%d rows)", path, len(records))


# ═══════════════════════════════════════════════════════════════════════════
#  TXT report
# ═══════════════════════════════════════════════════════════════════════════


def render_report(result: PipelineResult) -> str:
    """Format *result* as a plain-text report."""
    lines: list[str] = []

    lines.append("=" * 60)
    lines.append("  BMS Telemetry Analysis Report")
    lines.append("=" * 60)
    lines.append("")

    if result.is_empty:
        lines.append("  No valid data found. Please check the log file format.")
        lines.append(f"  Blocks skipped:   {result.skipped_blocks}")
        lines.append(f"  Records dropped:  {result.dropped_records}")
        lines.append("")
        lines.append("=" * 60)
        return "\n".join(lines) + "\n"

    s = result.stats
    lines.append("--- Series ---")
    lines.append(f"  Records:          {s.record_count}")
    lines.append(f"  Duration:         {s.duration_sec:.1f} s")
    lines.append(f"  Blocks skipped:   {result.skipped_blocks}")
    lines.append(f"  Records dropped:  {result.dropped_records}")
    lines.append("")

    lines.append("--- Pack ---")
    lines.append(f"  Avg voltage:      {_fmt(s.avg_voltage, '.2f', ' V')}")
    lines.append(
        f"  Voltage range:    {_fmt(s.min_voltage, '.2f')} .. {_fmt(s.max_voltage, '.2f', ' V')}"
    )
    lines.append(f"  Avg current:      {_fmt(s.avg_current, '.2f', ' A')}")
    lines.append(f"  Max |current|:    {_fmt(s.max_abs_current, '.2f', ' A')}")
    lines.append(f"  Avg SOC:          {_fmt(s.avg_soc, '.1f', '%')}")
    lines.append(f"  Avg power:        {_fmt(s.avg_power, '.1f', ' W')}")
    lines.append(f"  Max |power|:      {_fmt(s.max_abs_power, '.1f', ' W')}")
    lines.append("")

    c = result.cells
    if c is not None:
        lines.append("--- Cells ---")
        if c.has_voltages:
            lines.append(f"  Cells:            {c.cell_count}")
            lines.append(
                f"  Cell voltage:     {c.min_cell_voltage:.3f} .. {c.max_cell_voltage:.3f} V "
                f"(avg {c.avg_cell_voltage:.3f} V)"
            )
            lines.append(f"  Max imbalance:    {c.cell_imbalance:.3f} V")
        if c.has_temperatures:
            lines.append(f"  Sensors:          {c.temp_count}")
            lines.append(
                f"  Cell temperature: {c.min_cell_temp:.1f} .. {c.max_cell_temp:.1f} C "
                f"(avg {c.avg_cell_temp:.1f} C)"
            )
        lines.append("")

    e = result.energy
    lines.append("--- Energy ---")
    lines.append(f"  Net:              {e.net_kwh:.4f} kWh")
    lines.append(f"  Charged:          {e.charged_kwh:.4f} kWh")
    lines.append(f"  Discharged:       {e.discharged_kwh:.4f} kWh")
    lines.append(f"  Efficiency:       {e.efficiency_percent:.1f}%")
    lines.append("")

    rt = result.runtime
    lines.append("--- Runtime & cost ---")
    lines.append(f"  Runtime:          {rt.total_hours:.2f} h")
    lines.append(f"  Energy:           {rt.energy_kwh:.4f} kWh")
    lines.append(f"  Unit price:       {rt.unit_price:.4f} /kWh")
    lines.append(f"  Total cost:       {rt.total_cost:.4f}")
    lines.append(f"  Cost per hour:    {rt.cost_per_hour:.4f}")
    for bucket in rt.hourly_breakdown:
        lines.append(
            f"    hour {bucket.hour_index:>3}: {bucket.energy_kwh:.4f} kWh, "
            f"cost {bucket.cost:.4f}"
        )
    lines.append("")

    lines.append("--- Alerts ---")
    if not result.alerts:
        lines.append("  none")
    for a in result.alerts:
        lines.append(f"  [{a.severity.upper()}] {a.message}")
    lines.append("")
    lines.append("=" * 60)

    return "\n".join(lines) + "\n"


def write_report_txt(result: PipelineResult, path: str | Path) -> None:
    """Write the plain-text report to *path*."""
    _atomic_write(path, render_report(result))
    log.info("Wrote report → %s", path)
