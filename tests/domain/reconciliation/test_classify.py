from __future__ import annotations

import pytest

from dialectics.domain.model import (
    CompatiblePair,
    IncommensurablePair,
    InvariantViolation,
    OverallRelationship,
)
from dialectics.domain.reconciliation.classify import classify_outcome


def _compatible(run_a: str, run_b: str) -> CompatiblePair:
    return CompatiblePair(run_a=run_a, run_b=run_b, scope_a="x", scope_b="y")


def test_uniform_pairs_share_their_relationship() -> None:
    pairs = [_compatible("a", "b"), _compatible("a", "c"), _compatible("b", "c")]

    assert classify_outcome(pairs) is OverallRelationship.COMPATIBLE


def test_differing_pairs_are_mixed() -> None:
    pairs = [
        _compatible("a", "b"),
        IncommensurablePair(run_a="a", run_b="c", argument="no overlap"),
    ]

    assert classify_outcome(pairs) is OverallRelationship.MIXED


def test_empty_matrix_is_rejected() -> None:
    with pytest.raises(InvariantViolation):
        classify_outcome([])
