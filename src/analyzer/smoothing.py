"""Centered moving-average smoothing for display series."""

from __future__ import annotations

import logging
import math

from src.contracts.record import MeasurementRecord

log = logging.getLogger(__name__)

SMOOTH_FIELDS: tuple[str, ...] = ("voltage", "current", "power", "soc")
DEFAULT_WINDOW = 5


def smooth(
    records: list[MeasurementRecord],
    window: int = DEFAULT_WINDOW,
    enabled: bool = True,
    fields: tuple[str, ...] = SMOOTH_FIELDS,
) -> list[MeasurementRecord]:
    """Return a smoothed copy of *records*.

    Each field is averaged independently over
    ``[max(0, i - window // 2), min(n - 1, i + window // 2)]`` using only
    the finite values in that range; a record whose range holds no finite
    value keeps its original value.

    The input list is returned unchanged (same object, no copy) when
    smoothing is disabled, ``window < 2`` or the series is shorter than
    the window.  Otherwise the input is never modified.
    """
    n = len(records)
    if not enabled or window < 2 or n < window:
        return records

    half = window // 2
    smoothed = [r.clone() for r in records]

    for name in fields:
        values = [getattr(r, name) for r in records]
        for i in range(n):
            lo = max(0, i - half)
            hi = min(n - 1, i + half)
            window_vals = [
                v for v in values[lo : hi + 1] if v is not None and math.isfinite(v)
            ]
            if window_vals:
                setattr(smoothed[i], name, sum(window_vals) / len(window_vals))

    log.info("Applied smoothing (window: %d) to %d records", window, n)
    return smoothed
