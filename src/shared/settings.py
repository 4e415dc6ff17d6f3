"""Analysis settings loaded from ``config/bms.yaml``.

Settings are read once by the caller (CLI or UI) and passed into the
pipeline explicitly; no stage reads configuration from module state.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from src.contracts.enums import TimeMode
from src.contracts.thresholds import Thresholds, ValidRanges
from src.shared.config_loader import load_yaml
from src.shared.errors import ConfigError

log = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config") / "bms.yaml"

DEFAULT_EXTENSIONS: tuple[str, ...] = (".yaml", ".yml", ".txt")
DEFAULT_MAX_FILE_MB = 50.0


@dataclass
class AnalysisSettings:
    """Everything the pipeline needs besides the log text itself."""

    thresholds: Thresholds = field(default_factory=Thresholds)
    ranges: ValidRanges = field(default_factory=ValidRanges)
    invert_current: bool = False
    smoothing_enabled: bool = False
    smoothing_window: int = 5
    unit_price: float = 0.0
    tariff_presets: dict[str, float] = field(default_factory=dict)
    time_mode: TimeMode = TimeMode.ABSOLUTE
    max_file_mb: float = DEFAULT_MAX_FILE_MB
    allowed_extensions: tuple[str, ...] = DEFAULT_EXTENSIONS

    @property
    def max_file_bytes(self) -> int:
        return int(self.max_file_mb * 1024 * 1024)

    # ── construction ─────────────────────────────────────────────────────

    @classmethod
    def from_dict(cls, cfg: dict[str, Any]) -> AnalysisSettings:
        """Build settings from a parsed config dict; unknown keys are ignored."""
        parser_cfg = cfg.get("parser") or {}
        smoothing_cfg = cfg.get("smoothing") or {}
        tariff_cfg = cfg.get("tariff") or {}
        input_cfg = cfg.get("input") or {}

        settings = cls(
            thresholds=Thresholds.from_dict(cfg.get("thresholds")),
            ranges=ValidRanges.from_dict(cfg.get("ranges")),
            invert_current=bool(parser_cfg.get("invert_current", False)),
            smoothing_enabled=bool(smoothing_cfg.get("enabled", False)),
            smoothing_window=_as_int(smoothing_cfg.get("window", 5), "smoothing.window"),
            unit_price=_as_price(tariff_cfg.get("unit_price", 0.0), "tariff.unit_price"),
            tariff_presets={
                str(name): _as_price(price, f"tariff.presets.{name}")
                for name, price in (tariff_cfg.get("presets") or {}).items()
            },
            time_mode=_as_time_mode(cfg.get("time_mode", TimeMode.ABSOLUTE.value)),
            max_file_mb=_as_float(
                input_cfg.get("max_file_size_mb", DEFAULT_MAX_FILE_MB), "input.max_file_size_mb"
            ),
            allowed_extensions=tuple(
                str(e).lower() for e in input_cfg.get("extensions", DEFAULT_EXTENSIONS)
            ),
        )
        if settings.smoothing_window < 2:
            raise ConfigError(
                f"smoothing.window must be >= 2, got {settings.smoothing_window}"
            )
        return settings

    def price_for(self, tariff: str | None = None) -> float:
        """Unit price of the named tariff preset, or the default unit price."""
        if tariff is None:
            return self.unit_price
        if tariff not in self.tariff_presets:
            known = ", ".join(sorted(self.tariff_presets)) or "none"
            raise ConfigError(
                f"Unknown tariff '{tariff}' (known: {known})",
                details={"tariff": tariff},
            )
        return self.tariff_presets[tariff]


# ── value coercion ───────────────────────────────────────────────────────────


def _as_float(value: Any, key: str) -> float:
    try:
        result = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{key} must be a number, got {value!r}") from exc
    if not math.isfinite(result):
        raise ConfigError(f"{key} must be finite, got {value!r}")
    return result


def _as_price(value: Any, key: str) -> float:
    price = _as_float(value, key)
    if price < 0:
        raise ConfigError(f"{key} must be >= 0, got {value!r}")
    return price


def _as_int(value: Any, key: str) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"{key} must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{key} must be an integer, got {value!r}") from exc


def _as_time_mode(value: Any) -> TimeMode:
    try:
        return TimeMode(str(value).lower())
    except ValueError as exc:
        raise ConfigError(
            f"time_mode must be 'absolute' or 'relative', got {value!r}"
        ) from exc


# ── loading ──────────────────────────────────────────────────────────────────


def load_settings(path: str | Path | None = None) -> AnalysisSettings:
    """Load settings from *path*.

    With ``path=None`` the default ``config/bms.yaml`` is used if it exists
    and built-in defaults otherwise.  An explicitly given path must exist.

    Raises:
        ConfigError: missing explicit file, invalid YAML or invalid values.
    """
    if path is None:
        if not DEFAULT_CONFIG_PATH.exists():
            log.info("No %s found — using built-in defaults", DEFAULT_CONFIG_PATH)
            return AnalysisSettings()
        path = DEFAULT_CONFIG_PATH

    try:
        cfg = load_yaml(path)
    except FileNotFoundError as exc:
        raise ConfigError(str(exc), details={"path": str(path)}) from exc

    settings = AnalysisSettings.from_dict(cfg)
    log.info(
        "Loaded settings from %s (smoothing=%s, unit_price=%.4f, %d tariff presets)",
        path,
        settings.smoothing_enabled,
        settings.unit_price,
        len(settings.tariff_presets),
    )
    return settings
