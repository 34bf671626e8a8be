"""Deterministic mortgage math and report assembly."""
from homewise.finance.report import compute_report, analyze_listing

__all__ = ["compute_report", "analyze_listing"]
