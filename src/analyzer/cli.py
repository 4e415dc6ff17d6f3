"""CLI entry-point for the BMS Telemetry Analyzer.

Usage examples
--------------
# Analyse one log with config/bms.yaml (or built-in defaults):
python -m src.analyzer --input logs/bms_run.yaml

# Smoothed display series, peak tariff, relative time axis:
python -m src.analyzer --input logs/bms_run.yaml --smooth --window 7 \
    --tariff peak --time-mode relative

Exit codes
----------
0  analysis completed
1  the file was read but holds no usable samples
2  the input or config could not be used, or the outputs could not be written
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

from src.analyzer.pipeline import analyze_file
from src.analyzer.reporter import render_report, write_records_csv, write_report_txt
from src.analyzer.runtime import check_unit_price
from src.contracts.enums import TimeMode
from src.shared.errors import ConfigError, StructuralInputError
from src.shared.logger import setup_logging
from src.shared.settings import AnalysisSettings, load_settings

log = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_NO_DATA = 1
EXIT_INPUT_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="analyzer",
        description="BMS Telemetry Analyzer — parse, validate, derive energy, raise alerts",
    )
    p.add_argument(
        "--input",
        required=True,
        help="BMS log file (.yaml, .yml or .txt).",
    )
    p.add_argument(
        "--config",
        default=None,
        help="Settings YAML. Default: config/bms.yaml if present, else built-in defaults.",
    )
    p.add_argument(
        "--out-dir",
        default="out",
        help="Output directory for records.csv and report.txt. Default: out/",
    )
    price = p.add_mutually_exclusive_group()
    price.add_argument(
        "--unit-price",
        type=float,
        default=None,
        help="Energy price per kWh (overrides tariff.unit_price).",
    )
    price.add_argument(
        "--tariff",
        default=None,
        help="Name of a tariff preset from the config (e.g. residential, peak).",
    )
    p.add_argument(
        "--smooth",
        action="store_true",
        default=None,
        help="Apply moving-average smoothing to the exported series.",
    )
    p.add_argument(
        "--window",
        type=int,
        default=None,
        help="Smoothing window size (>= 2).",
    )
    p.add_argument(
        "--invert-current",
        action="store_true",
        default=None,
        help="Treat positive current in the log as discharge.",
    )
    p.add_argument(
        "--time-mode",
        choices=[m.value for m in TimeMode],
        default=None,
        help="Time axis of the exported series.",
    )
    p.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level. Default: INFO",
    )
    return p


def _apply_overrides(settings: AnalysisSettings, args: argparse.Namespace) -> AnalysisSettings:
    """Command-line flags take precedence over the config file."""
    overrides: dict = {}
    if args.smooth is not None:
        overrides["smoothing_enabled"] = True
    if args.window is not None:
        if args.window < 2:
            raise ConfigError(f"--window must be >= 2, got {args.window}")
        overrides["smoothing_window"] = args.window
    if args.invert_current is not None:
        overrides["invert_current"] = True
    if args.time_mode is not None:
        overrides["time_mode"] = TimeMode(args.time_mode)

    if args.unit_price is not None:
        overrides["unit_price"] = check_unit_price(args.unit_price)
    elif args.tariff is not None:
        overrides["unit_price"] = settings.price_for(args.tariff)

    return replace(settings, **overrides) if overrides else settings


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    try:
        settings = _apply_overrides(load_settings(args.config), args)
        result = analyze_file(args.input, settings)
    except ConfigError as exc:
        log.error("Configuration error: %s", exc.message)
        print(f"Configuration error: {exc.message}", file=sys.stderr)
        return EXIT_INPUT_ERROR
    except StructuralInputError as exc:
        log.error("Input error: %s", exc.message)
        print(f"Cannot read input: {exc.message}", file=sys.stderr)
        return EXIT_INPUT_ERROR

    out_dir = Path(args.out_dir)
    try:
        write_report_txt(result, out_dir / "report.txt")
        if not result.is_empty:
            write_records_csv(result.display_records, out_dir / "records.csv")
    except OSError as exc:
        log.error("Cannot write output to %s: %s", out_dir, exc)
        print(f"Cannot write output: {exc}", file=sys.stderr)
        return EXIT_INPUT_ERROR

    if result.is_empty:
        print(
            "No valid data found. Please check the log file format.",
            file=sys.stderr,
        )
        return EXIT_NO_DATA

    print(render_report(result), end="")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
