"""Serialization helpers for emitted records."""

from __future__ import annotations

from .serialization import (
    canonical_json,
    map_to_dict,
    pretty_json,
    record_fingerprint,
    record_from_dict,
    record_to_dict,
)

__all__ = [
    "canonical_json",
    "map_to_dict",
    "pretty_json",
    "record_fingerprint",
    "record_from_dict",
    "record_to_dict",
]
