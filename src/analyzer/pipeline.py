"""Pipeline — orchestrator: parse -> validate -> derive -> smooth -> alerts.

The pipeline receives one complete in-memory log text and returns one
complete PipelineResult.  Two outcomes are kept apart on purpose:

  * the input is structurally unreadable (not text, missing or oversized
    file) -> a ``StructuralInputError`` is raised and there is no result;
  * the input was read but holds no usable sample -> a result with
    ``status == RunStatus.NO_DATA`` is returned so the caller can tell the
    user to re-check the file.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from src.analyzer.detector import evaluate
from src.analyzer.energy import integrate_energy
from src.analyzer.runtime import compute_runtime_cost
from src.analyzer.smoothing import smooth
from src.analyzer.statistics import cell_stats, series_stats
from src.contracts.alert import Alert
from src.contracts.enums import RunStatus, TimeMode
from src.contracts.record import MeasurementRecord
from src.contracts.summary import (
    CellStats,
    EnergySummary,
    RuntimeCostSummary,
    SeriesStats,
)
from src.ingest.parser import order_series, parse_document
from src.ingest.validator import validate
from src.shared.errors import InputFileError
from src.shared.settings import AnalysisSettings

log = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Everything the presentation layer consumes, as plain data."""

    status: RunStatus
    records: list[MeasurementRecord] = field(default_factory=list)
    display_records: list[MeasurementRecord] = field(default_factory=list)
    energy: EnergySummary = field(default_factory=EnergySummary)
    runtime: RuntimeCostSummary = field(default_factory=RuntimeCostSummary)
    stats: SeriesStats = field(default_factory=SeriesStats)
    cells: CellStats | None = None
    alerts: list[Alert] = field(default_factory=list)
    skipped_blocks: int = 0
    dropped_records: int = 0
    time_mode: TimeMode = TimeMode.ABSOLUTE

    @property
    def is_empty(self) -> bool:
        return self.status == RunStatus.NO_DATA

    def time_axis(self) -> list[float]:
        """X values of the display series for the configured time mode."""
        return [r.time_value(self.time_mode) for r in self.display_records]


# ═══════════════════════════════════════════════════════════════════════════
#  Derivation
# ═══════════════════════════════════════════════════════════════════════════


def derive(
    records: list[MeasurementRecord],
    unit_price: float = 0.0,
) -> tuple[EnergySummary, RuntimeCostSummary]:
    """Order *records*, then assign relative time and cumulative energy.

    Mutates the list and its records **in place**.  Clone first if the
    pre-derivation snapshot is still needed.
    """
    order_series(records)
    energy = integrate_energy(records)
    runtime = compute_runtime_cost(records, unit_price)
    return energy, runtime


# ═══════════════════════════════════════════════════════════════════════════
#  Pipeline core
# ═══════════════════════════════════════════════════════════════════════════


def run_pipeline(
    raw_text: str,
    settings: AnalysisSettings | None = None,
    unit_price: float | None = None,
) -> PipelineResult:
    """Execute the full analysis over one log text.

    Parameters
    ──────────
    raw_text
        Complete log document.
    settings
        Thresholds, ranges, smoothing, tariff.  None means defaults.
    unit_price
        Overrides ``settings.unit_price`` when given.

    Raises
    ──────
    ParseError
        If *raw_text* is not a string.
    """
    settings = settings or AnalysisSettings()
    price = settings.unit_price if unit_price is None else unit_price

    parsed = parse_document(
        raw_text,
        invert_current=settings.invert_current,
        ranges=settings.ranges,
    )
    records = validate(parsed.records, settings.ranges)
    dropped = len(parsed.records) - len(records)

    if not records:
        log.warning(
            "No usable records (%d parsed, %d blocks skipped) — nothing to analyse.",
            len(parsed.records),
            parsed.skipped,
        )
        return PipelineResult(
            status=RunStatus.NO_DATA,
            skipped_blocks=parsed.skipped,
            dropped_records=dropped,
            time_mode=settings.time_mode,
        )

    energy, runtime = derive(records, price)
    display = smooth(
        records,
        window=settings.smoothing_window,
        enabled=settings.smoothing_enabled,
    )

    result = PipelineResult(
        status=RunStatus.OK,
        records=records,
        display_records=display,
        energy=energy,
        runtime=runtime,
        stats=series_stats(records),
        cells=cell_stats(records),
        alerts=evaluate(records, settings.thresholds),
        skipped_blocks=parsed.skipped,
        dropped_records=dropped,
        time_mode=settings.time_mode,
    )
    log.info(
        "Pipeline complete: %d records, %d alerts, %d blocks skipped, %d records dropped",
        len(records),
        len(result.alerts),
        result.skipped_blocks,
        result.dropped_records,
    )
    return result


# ═══════════════════════════════════════════════════════════════════════════
#  File input
# ═══════════════════════════════════════════════════════════════════════════


def load_text(path: str | Path, settings: AnalysisSettings | None = None) -> str:
    """Read a log file as text after checking its type and size.

    Raises:
        InputFileError: missing file, disallowed extension, file too large,
            or an OS-level read failure.
    """
    settings = settings or AnalysisSettings()
    p = Path(path)

    if not p.is_file():
        raise InputFileError(f"Log file not found: {p}", file_path=str(p))

    ext = p.suffix.lower()
    if ext not in settings.allowed_extensions:
        raise InputFileError(
            f"Invalid file type '{ext or p.name}' "
            f"(expected {', '.join(settings.allowed_extensions)})",
            file_path=str(p),
        )

    size = p.stat().st_size
    if size > settings.max_file_bytes:
        raise InputFileError(
            f"File too large: {size / 1024 / 1024:.2f}MB (max {settings.max_file_mb:g}MB)",
            file_path=str(p),
            details={"size_bytes": size},
        )

    try:
        text = p.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        raise InputFileError(f"File read error: {exc}", file_path=str(p)) from exc

    log.info("Loaded %s (%d bytes)", p, size)
    return text


def analyze_file(
    path: str | Path,
    settings: AnalysisSettings | None = None,
    unit_price: float | None = None,
) -> PipelineResult:
    """``load_text`` followed by ``run_pipeline``."""
    settings = settings or AnalysisSettings()
    return run_pipeline(load_text(path, settings), settings, unit_price=unit_price)
