"""Canonical JSON form of records and maps.

Keys are sorted and separators fixed, so equal records always serialize to
the same bytes and share a fingerprint.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import asdict
from typing import TYPE_CHECKING

from dialectics.domain.model import InvariantViolation, OverallRelationship, Record, ValidationError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from dialectics.domain.model import ReconciliationMap


def record_to_dict(record: Record) -> dict[str, object]:
    return asdict(record)


def map_to_dict(reconciliation_map: ReconciliationMap) -> dict[str, object]:
    return asdict(reconciliation_map)


def record_from_dict(data: Mapping[str, object]) -> Record:
    try:
        return Record(
            input_runs=tuple(str(run_id) for run_id in _as_list(data["input_runs"])),
            overall_relationship=OverallRelationship(str(data["overall_relationship"])),
            total_conflicts=_as_int(data["total_conflicts"]),
            resolved_conflicts=_as_int(data["resolved_conflicts"]),
            unresolved_conflicts=_as_int(data["unresolved_conflicts"]),
            jointly_supported_claims=_as_int(data["jointly_supported_claims"]),
            summary=str(data["summary"]),
            safe_to_build=str(data["safe_to_build"]),
            blocked_until=str(data["blocked_until"]),
        )
    except (KeyError, TypeError, ValueError, InvariantViolation) as exc:
        raise ValidationError(f"Malformed stored record: {exc}") from exc


def canonical_json(payload: object) -> str:
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def pretty_json(payload: object) -> str:
    return json.dumps(payload, sort_keys=True, indent=2, ensure_ascii=False)


def record_fingerprint(record: Record) -> str:
    """SHA-256 of the canonical JSON form of ``record``."""

    return hashlib.sha256(canonical_json(record_to_dict(record)).encode("utf-8")).hexdigest()


def _as_list(value: object) -> list[object]:
    if not isinstance(value, list | tuple):
        raise TypeError(f"expected a list, got {type(value).__name__}")
    return list(value)


def _as_int(value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"expected an integer, got {value!r}")
    return value
