"""Alert thresholds and physical validity ranges.

Both are plain inputs: every stage that needs them takes them as an
argument, nothing reads them from module state.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any

from src.shared.errors import ConfigError


def _coerce(cls: type, data: dict[str, Any] | None, section: str) -> dict[str, Any]:
    """Pick known keys from *data* and coerce them to the declared field types."""
    kwargs: dict[str, Any] = {}
    for f in fields(cls):
        if not data or f.name not in data:
            continue
        raw = data[f.name]
        cast = int if f.type in ("int", int) else float
        try:
            kwargs[f.name] = cast(raw)
        except (TypeError, ValueError) as exc:
            raise ConfigError(
                f"{section}.{f.name} must be a number, got {raw!r}",
                details={"section": section, "key": f.name},
            ) from exc
    return kwargs


@dataclass(frozen=True)
class Thresholds:
    """Alert thresholds (volts, amperes, percent, °C)."""

    voltage_low: float = 48.0
    voltage_high: float = 60.0
    current_max: float = 50.0
    soc_low: float = 20.0
    cell_imbalance_max: float = 0.1
    cell_temp_max: float = 60.0

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> Thresholds:
        return cls(**_coerce(cls, data, "thresholds"))


@dataclass(frozen=True)
class ValidRanges:
    """Physical validity ranges and fixed cell-array capacities."""

    voltage_max: float = 100.0
    cell_voltage_min: float = 2.0
    cell_voltage_max: float = 4.5
    cell_temp_min: float = -40.0
    cell_temp_max: float = 120.0
    cell_count: int = 16
    temp_sensor_count: int = 5

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> ValidRanges:
        ranges = cls(**_coerce(cls, data, "ranges"))
        if ranges.cell_count < 0 or ranges.temp_sensor_count < 0:
            raise ConfigError("ranges: cell_count and temp_sensor_count must be >= 0")
        if ranges.cell_voltage_min > ranges.cell_voltage_max:
            raise ConfigError("ranges: cell_voltage_min is above cell_voltage_max")
        if ranges.cell_temp_min > ranges.cell_temp_max:
            raise ConfigError("ranges: cell_temp_min is above cell_temp_max")
        return ranges
