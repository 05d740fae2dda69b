"""Reporting utilities for digitscope."""

from .metrics import CsvSink, JsonlSink, read_jsonl
from .plots import PlotAdapter, plot_history, plot_race
from .summary import build_summary, compute_auc, write_summary

__all__ = [
    "CsvSink",
    "JsonlSink",
    "PlotAdapter",
    "build_summary",
    "compute_auc",
    "plot_history",
    "plot_race",
    "read_jsonl",
    "write_summary",
]
