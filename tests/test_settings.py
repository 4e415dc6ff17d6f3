"""Tests for src.shared — YAML loading, settings, errors, logging."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from src.contracts.enums import TimeMode
from src.shared.config_loader import load_yaml
from src.shared.errors import ConfigError, InputFileError, StructuralInputError
from src.shared.logger import setup_logging
from src.shared.settings import AnalysisSettings, load_settings

REPO_CONFIG = Path(__file__).resolve().parent.parent / "config" / "bms.yaml"


class TestLoadYaml:
    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_yaml(tmp_path / "nope.yaml")

    def test_empty_file_is_empty_dict(self, tmp_path):
        p = tmp_path / "empty.yaml"
        p.write_text("", encoding="utf-8")
        assert load_yaml(p) == {}

    def test_invalid_yaml(self, tmp_path):
        p = tmp_path / "bad.yaml"
        p.write_text("thresholds: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_yaml(p)

    def test_top_level_must_be_mapping(self, tmp_path):
        p = tmp_path / "list.yaml"
        p.write_text("- 1\n- 2\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="mapping"):
            load_yaml(p)


class TestAnalysisSettings:
    def test_repo_config_matches_defaults(self):
        settings = load_settings(REPO_CONFIG)
        defaults = AnalysisSettings()
        assert settings.thresholds == defaults.thresholds
        assert settings.ranges == defaults.ranges
        assert settings.tariff_presets["peak"] == 0.25
        assert settings.allowed_extensions == (".yaml", ".yml", ".txt")
        assert settings.max_file_bytes == 50 * 1024 * 1024

    def test_from_dict_sections(self):
        settings = AnalysisSettings.from_dict(
            {
                "thresholds": {"voltage_low": 44},
                "parser": {"invert_current": True},
                "smoothing": {"enabled": True, "window": 9},
                "tariff": {"unit_price": 0.3, "presets": {"night": 0.05}},
                "time_mode": "RELATIVE",
            }
        )
        assert settings.thresholds.voltage_low == 44.0
        assert settings.invert_current is True
        assert (settings.smoothing_enabled, settings.smoothing_window) == (True, 9)
        assert settings.unit_price == 0.3
        assert settings.time_mode == TimeMode.RELATIVE
        assert settings.price_for("night") == 0.05
        assert settings.price_for() == 0.3

    def test_empty_dict_gives_defaults(self):
        assert AnalysisSettings.from_dict({}) == AnalysisSettings()

    @pytest.mark.parametrize(
        "cfg",
        [
            {"smoothing": {"window": 1}},
            {"smoothing": {"window": "wide"}},
            {"tariff": {"unit_price": -1}},
            {"tariff": {"presets": {"x": "free"}}},
            {"time_mode": "sideways"},
            {"input": {"max_file_size_mb": "big"}},
        ],
    )
    def test_invalid_values(self, cfg):
        with pytest.raises(ConfigError):
            AnalysisSettings.from_dict(cfg)

    def test_unknown_tariff(self):
        settings = AnalysisSettings(tariff_presets={"peak": 0.25})
        with pytest.raises(ConfigError, match="peak"):
            settings.price_for("weekend")


class TestLoadSettings:
    def test_default_path_absent_gives_defaults(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert load_settings() == AnalysisSettings()

    def test_default_path_used_when_present(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "config").mkdir()
        (tmp_path / "config" / "bms.yaml").write_text(
            "thresholds:\n  soc_low: 10\n", encoding="utf-8"
        )
        assert load_settings().thresholds.soc_low == 10.0

    def test_explicit_missing_path(self, tmp_path):
        with pytest.raises(ConfigError):
            load_settings(tmp_path / "missing.yaml")


class TestErrors:
    def test_to_dict(self):
        exc = InputFileError("too big", file_path="/tmp/x.yaml", details={"size_bytes": 5})
        d = exc.to_dict()
        assert d["error_type"] == "InputFileError"
        assert d["details"] == {"size_bytes": 5, "file_path": "/tmp/x.yaml"}
        assert isinstance(exc, StructuralInputError)

    def test_config_error_is_not_structural(self):
        assert not issubclass(ConfigError, StructuralInputError)


class TestLogger:
    def test_setup_logging_level_and_file(self, tmp_path):
        log_file = tmp_path / "run.log"
        setup_logging("DEBUG", log_file=str(log_file))
        logging.getLogger("src.test").debug("hello %s", "world")
        assert "hello world" in log_file.read_text(encoding="utf-8")
        assert logging.getLogger().level == logging.DEBUG
        setup_logging("INFO")
