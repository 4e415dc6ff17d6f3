"""MeasurementRecord — one validated BMS telemetry sample."""

from __future__ import annotations

import csv
import io
import json
import math
from dataclasses import asdict, dataclass, field, replace

from src.contracts.enums import TimeMode

# CSV column order for exported series
CSV_COLUMNS: list[str] = [
    "timestamp",
    "relative_time",
    "voltage",
    "current",
    "soc",
    "power",
    "cumulative_energy_kwh",
]


def is_finite(value: float | None) -> bool:
    """True for a real, finite number (None, NaN and ±inf are not)."""
    return value is not None and math.isfinite(value)


@dataclass(slots=True)
class MeasurementRecord:
    """One telemetry sample from a BMS log.

    Sign convention for ``current``: positive = charging, negative =
    discharging.  Cell lists keep their slot positions; an invalid reading
    is stored as ``None`` at its original index.
    """

    # ── capture time ──
    seconds_epoch: int
    nanoseconds: int
    timestamp: float            # seconds_epoch + nanoseconds * 1e-9
    relative_time: float = 0.0  # seconds since the first record of the series

    # ── pack readings (None = absent) ──
    voltage: float | None = None
    current: float | None = None
    soc: float | None = None
    power: float | None = None
    remaining_ah: float | None = None
    charge_fet: int = 0
    discharge_fet: int = 0

    # ── per-cell readings ──
    cell_voltages: list[float | None] = field(default_factory=list)
    cell_temperatures: list[float | None] = field(default_factory=list)

    # ── derived ──
    cumulative_energy_wh: float = 0.0
    cumulative_energy_kwh: float = 0.0

    # ── helpers ───────────────────────────────────────────────────────────

    def clone(self) -> MeasurementRecord:
        """Return a copy that shares no mutable state with this record."""
        return replace(
            self,
            cell_voltages=list(self.cell_voltages),
            cell_temperatures=list(self.cell_temperatures),
        )

    def has_measurement(self) -> bool:
        """At least one pack reading or one valid cell voltage is present."""
        if is_finite(self.voltage) or is_finite(self.current) or is_finite(self.soc):
            return True
        return any(v is not None for v in self.cell_voltages)

    def time_value(self, mode: TimeMode) -> float:
        if mode == TimeMode.RELATIVE:
            return self.relative_time
        return self.timestamp

    # ── serialisation ─────────────────────────────────────────────────────

    def to_dict(self) -> dict:
        return asdict(self)

    def to_json(self) -> str:
        """Return compact JSON string."""
        return json.dumps(self.to_dict(), ensure_ascii=False, separators=(",", ":"))

    def to_csv_row(self) -> str:
        """Return a single CSV line (no trailing newline); absent values are empty."""
        buf = io.StringIO()
        writer = csv.writer(buf)
        writer.writerow(["" if getattr(self, c) is None else getattr(self, c) for c in CSV_COLUMNS])
        return buf.getvalue().rstrip("\r\n")

    @staticmethod
    def csv_header() -> str:
        return ",".join(CSV_COLUMNS)
