"""Public interface for the run file adapter."""

from __future__ import annotations

from .loader import load_run_file, load_runs, parse_run_document
from .schema import RunBundlePayload, RunPayload
from .translator import parse_run

__all__ = [
    "RunBundlePayload",
    "RunPayload",
    "load_run_file",
    "load_runs",
    "parse_run",
    "parse_run_document",
]
