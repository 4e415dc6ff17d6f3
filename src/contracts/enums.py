"""Canonical enumerations shared by the pipeline stages."""

from __future__ import annotations

from enum import Enum


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class AlertKind(str, Enum):
    """Alert types, declared in display order."""

    VOLTAGE_LOW = "voltage_low"
    VOLTAGE_HIGH = "voltage_high"
    OVER_CURRENT = "over_current"
    SOC_LOW = "soc_low"
    CELL_IMBALANCE = "cell_imbalance"
    CELL_OVER_TEMPERATURE = "cell_over_temperature"


class TimeMode(str, Enum):
    """Which time field downstream charts plot on the X axis."""

    ABSOLUTE = "absolute"
    RELATIVE = "relative"


class RunStatus(str, Enum):
    OK = "ok"
    NO_DATA = "no_data"
