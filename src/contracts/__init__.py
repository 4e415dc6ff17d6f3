"""Record contract — canonical data structures shared by all pipeline stages."""

from src.contracts.alert import Alert
from src.contracts.enums import AlertKind, RunStatus, Severity, TimeMode
from src.contracts.record import CSV_COLUMNS, MeasurementRecord
from src.contracts.summary import (
    CellStats,
    EnergySummary,
    HourlyBucket,
    RuntimeCostSummary,
    SeriesStats,
)
from src.contracts.thresholds import Thresholds, ValidRanges

__all__ = [
    "CSV_COLUMNS",
    "Alert",
    "AlertKind",
    "CellStats",
    "EnergySummary",
    "HourlyBucket",
    "MeasurementRecord",
    "RunStatus",
    "RuntimeCostSummary",
    "SeriesStats",
    "Severity",
    "Thresholds",
    "TimeMode",
    "ValidRanges",
]
