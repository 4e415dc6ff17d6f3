"""Aggregate results computed over a whole record series.

All of these are recomputed from scratch on every derivation pass; none
of them is updated incrementally.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field


@dataclass
class EnergySummary:
    """Trapezoidal energy totals for one series.

    ``efficiency_percent`` is ``discharged / charged * 100`` and falls back
    to 100.0 unless both totals are positive ("nothing to measure", not a
    claim of a perfect round trip).
    """

    net_kwh: float = 0.0
    charged_kwh: float = 0.0
    discharged_kwh: float = 0.0
    efficiency_percent: float = 100.0
    intervals_used: int = 0
    intervals_skipped: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class HourlyBucket:
    hour_index: int
    energy_wh: float = 0.0
    energy_kwh: float = 0.0
    cost: float = 0.0


@dataclass
class RuntimeCostSummary:
    """Elapsed runtime and energy cost for one series."""

    total_seconds: float = 0.0
    energy_wh: float = 0.0
    energy_kwh: float = 0.0
    unit_price: float = 0.0
    total_cost: float = 0.0
    cost_per_hour: float = 0.0
    hourly_breakdown: list[HourlyBucket] = field(default_factory=list)

    @property
    def total_hours(self) -> float:
        return self.total_seconds / 3600

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class SeriesStats:
    """Summary statistics of the pack readings (finite values only)."""

    record_count: int = 0
    duration_sec: float = 0.0
    avg_voltage: float | None = None
    min_voltage: float | None = None
    max_voltage: float | None = None
    avg_current: float | None = None
    max_abs_current: float | None = None
    avg_soc: float | None = None
    avg_power: float | None = None
    max_abs_power: float | None = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class CellStats:
    """Per-cell voltage and temperature statistics across a series."""

    min_cell_voltage: float = 0.0
    max_cell_voltage: float = 0.0
    avg_cell_voltage: float = 0.0
    cell_imbalance: float = 0.0
    min_cell_temp: float = 0.0
    max_cell_temp: float = 0.0
    avg_cell_temp: float = 0.0
    cell_count: int = 0
    temp_count: int = 0
    has_voltages: bool = False
    has_temperatures: bool = False

    def to_dict(self) -> dict:
        return asdict(self)
