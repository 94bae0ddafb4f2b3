"""Reporting utilities for neunet."""

from .artifacts import write_manifest
from .metrics import CsvSink, JsonlSink, read_jsonl
from .plots import PlotAdapter
from .progress import SinkReporter

__all__ = ["CsvSink", "JsonlSink", "PlotAdapter", "SinkReporter", "read_jsonl", "write_manifest"]
