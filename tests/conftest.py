"""Shared fixtures for BMS Telemetry Analyzer tests."""

from __future__ import annotations

import pytest

from src.contracts.record import MeasurementRecord

BASE_SEC = 1_700_000_000

# ── Helper: create MeasurementRecord with sensible defaults ─────────────


def make_record(
    *,
    t: float = 0.0,
    voltage: float | None = 52.0,
    current: float | None = 10.0,
    soc: float | None = 80.0,
    power: float | None = None,
    remaining_ah: float | None = None,
    cell_voltages: list[float | None] | None = None,
    cell_temperatures: list[float | None] | None = None,
    charge_fet: int = 0,
    discharge_fet: int = 0,
) -> MeasurementRecord:
    """Record captured *t* seconds after BASE_SEC (relative_time set to *t*)."""
    sec = BASE_SEC + int(t)
    nanos = int(round((t - int(t)) * 1e9))
    return MeasurementRecord(
        seconds_epoch=sec,
        nanoseconds=nanos,
        timestamp=sec + nanos * 1e-9,
        relative_time=t,
        voltage=voltage,
        current=current,
        soc=soc,
        power=power,
        remaining_ah=remaining_ah,
        charge_fet=charge_fet,
        discharge_fet=discharge_fet,
        cell_voltages=list(cell_voltages or []),
        cell_temperatures=list(cell_temperatures or []),
    )


def make_series(n: int, step: float = 10.0, **kwargs) -> list[MeasurementRecord]:
    """*n* identical records spaced *step* seconds apart."""
    return [make_record(t=i * step, **kwargs) for i in range(n)]


# ── Helper: render BMS log text ─────────────────────────────────────────


def make_block(
    *,
    sec: int | None = BASE_SEC,
    nanosec: int | None = 0,
    voltage: float | None = 52.0,
    current: float | None = 10.0,
    soc: float | None = 80.0,
    power: float | None = None,
    cells: list | None = None,
    temps: list | None = None,
    extra: str = "",
) -> str:
    """One ``---``-prefixed document in the BMS log dialect."""
    lines = ["---"]
    if sec is not None:
        lines += ["header:", "  stamp:", f"    sec: {sec}"]
        if nanosec is not None:
            lines.append(f"    nanosec: {nanosec}")
    for key, value in (
        ("voltage", voltage),
        ("current", current),
        ("soc", soc),
        ("power", power),
    ):
        if value is not None:
            lines.append(f"{key}: {value}")
    if cells is not None:
        lines.append("cell_voltages:")
        lines += [f"- {c}" for c in cells]
    if temps is not None:
        lines.append("cell_temperatures:")
        lines += [f"- {c}" for c in temps]
    if extra:
        lines.append(extra)
    return "\n".join(lines) + "\n"


# ── Log fixtures ────────────────────────────────────────────────────────


@pytest.fixture
def sample_log() -> str:
    """Five valid samples (one out of order), one block without a timestamp."""
    return (
        make_block(sec=BASE_SEC, voltage=52.0, current=10.0, soc=60.0,
                   cells=[3.30, 3.31, 3.29, 3.30], temps=[25.0, 26.0])
        + make_block(sec=BASE_SEC + 20, voltage=52.4, current=10.0, soc=61.0,
                     cells=[3.31, 3.32, 3.30, 3.31], temps=[25.5, 26.5])
        + make_block(sec=BASE_SEC + 10, voltage=52.2, current=10.0, soc=60.5,
                     cells=[3.30, 3.32, 3.30, 3.31], temps=[25.2, 26.2])
        + make_block(sec=None, voltage=51.0)
        + make_block(sec=BASE_SEC + 30, voltage=51.8, current=-20.0, soc=60.0,
                     cells=[3.28, 3.30, 3.27, 3.29], temps=[27.0, 28.0])
        + make_block(sec=BASE_SEC + 40, voltage=51.5, current=-20.0, soc=59.0,
                     cells=[3.27, 3.29, 3.26, 3.28], temps=[27.5, 28.5])
    )


@pytest.fixture
def sample_log_file(tmp_path, sample_log):
    path = tmp_path / "bms_run.yaml"
    path.write_text(sample_log, encoding="utf-8")
    return path
