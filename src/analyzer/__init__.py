"""BMS Telemetry Analyzer — derivation, alerts and reporting.

Modules
───────
  energy      — trapezoidal cumulative energy, charge/discharge split
  runtime     — runtime, energy cost, hourly breakdown
  smoothing   — centered moving average for display series
  statistics  — pack and per-cell summary figures
  detector    — threshold rules: record series → Alert
  reporter    — write CSV and TXT outputs
  pipeline    — orchestrate the full flow
  cli         — argparse entry-point
"""
