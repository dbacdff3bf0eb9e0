"""Tabular exports of ledger state and simulation results."""

from .export import accounts_frame, export_csv, export_json, multiplier_curve_frame

__all__ = ["accounts_frame", "export_csv", "export_json", "multiplier_curve_frame"]
