from __future__ import annotations

import json

import pytest

from dialectics.adapters.records import (
    canonical_json,
    map_to_dict,
    pretty_json,
    record_fingerprint,
    record_from_dict,
    record_to_dict,
)
from dialectics.domain.model import (
    CompatiblePair,
    OverallRelationship,
    ReconciliationMap,
    ValidationError,
)
from tests.helpers.records import make_record


def test_record_survives_json_storage() -> None:
    record = make_record("a", "b", "c", overall=OverallRelationship.MIXED, unresolved=2)

    restored = record_from_dict(json.loads(canonical_json(record_to_dict(record))))

    assert restored == record


def test_canonical_json_is_key_sorted_and_compact() -> None:
    assert canonical_json({"b": 1, "a": [1, 2]}) == '{"a":[1,2],"b":1}'
    assert pretty_json({"b": 1, "a": "ü"}) == '{\n  "a": "ü",\n  "b": 1\n}'


def test_fingerprint_depends_only_on_content() -> None:
    first = make_record("a", "b")
    same = make_record("a", "b")
    other = make_record("a", "c")

    assert record_fingerprint(first) == record_fingerprint(same)
    assert record_fingerprint(first) != record_fingerprint(other)
    assert len(record_fingerprint(first)) == 64


def test_map_serializes_relationship_values() -> None:
    reconciliation_map = ReconciliationMap(
        pairs=(CompatiblePair(run_a="a", run_b="b", scope_a="x", scope_b="y"),),
        jointly_supported_claims=(),
        upstream_actions_required=(),
        overall_relationship=OverallRelationship.COMPATIBLE,
    )

    payload = json.loads(canonical_json(map_to_dict(reconciliation_map)))

    assert payload["overall_relationship"] == "compatible"
    assert payload["pairs"][0]["relationship"] == "compatible"
    assert payload["most_dangerous_conflict"] is None


@pytest.mark.parametrize(
    "mutation",
    [
        {"total_conflicts": "1"},
        {"overall_relationship": "friendly"},
        {"input_runs": "a,b"},
        {"resolved_conflicts": 5},
    ],
)
def test_malformed_payloads_are_rejected(mutation: dict[str, object]) -> None:
    payload = record_to_dict(make_record())
    payload.update(mutation)

    with pytest.raises(ValidationError, match="Malformed stored record"):
        record_from_dict(payload)


def test_missing_fields_are_rejected() -> None:
    payload = record_to_dict(make_record())
    del payload["summary"]

    with pytest.raises(ValidationError):
        record_from_dict(payload)
