from __future__ import annotations

import asyncio

import pytest

from dialectics.domain.model import (
    ORACLE_UNAVAILABLE,
    CompatiblePair,
    Conflict,
    ConflictClass,
    ConflictedPair,
    DangerRanking,
    IncommensurablePair,
    InvariantViolation,
    ProtocolKind,
    ReconciledPair,
    Relationship,
    ResolutionAttempt,
    ResolutionMechanism,
    ResolutionStatus,
    UpstreamAction,
)
from dialectics.domain.ports import CommensurabilityJudgment, IndependenceJudgment
from dialectics.domain.reconciliation.mapping import (
    classify_pair,
    ensure_complete,
    jointly_supported_claims,
    select_most_dangerous,
    upstream_actions_required,
)
from dialectics.domain.reconciliation.oracle import Indeterminate, OracleSession
from dialectics.domain.reconciliation.registry import register_runs
from dialectics.domain.reconciliation.resolve import ConflictOutcome
from dialectics.domain.reconciliation.vocabulary import AlignmentTable
from tests.helpers.oracle import FakeOracle
from tests.helpers.runs import make_run

COMMENSURABLE = CommensurabilityJudgment(commensurable=True)


def _action(text: str) -> UpstreamAction:
    return UpstreamAction(protocol=ProtocolKind.REVISION, input=text)


def _structural(conflict_id: str, run_a: str = "a", run_b: str = "b", **extra: str) -> Conflict:
    return Conflict(
        id=conflict_id,
        conflict_class=ConflictClass.STRUCTURAL_CONFLICT,
        run_a=run_a,
        run_b=run_b,
        claim_a=extra.get("claim_a", f"claim a of {conflict_id}"),
        claim_b=extra.get("claim_b", f"claim b of {conflict_id}"),
        argument=f"argument of {conflict_id}",
        resolvable_within_rcp=False,
        upstream_action=_action(extra.get("action", f"fix {conflict_id}")),
    )


def _unresolved(conflict: Conflict) -> ConflictOutcome:
    return ConflictOutcome(
        conflict=conflict,
        status=ResolutionStatus.NOT_ATTEMPTED,
        effective_class=conflict.conflict_class,
        upstream_action=conflict.upstream_action,
    )


def _resolved(conflict_id: str) -> ConflictOutcome:
    conflict = Conflict(
        id=conflict_id,
        conflict_class=ConflictClass.SCOPE_MISMATCH,
        run_a="a",
        run_b="b",
        claim_a="Reads dominate",
        claim_b="Writes dominate",
        argument="different windows",
        resolvable_within_rcp=True,
    )
    attempt = ResolutionAttempt(
        conflict_id=conflict_id,
        mechanism=ResolutionMechanism.SCOPE_CLARIFICATION,
        succeeded=True,
        explanation="windows differ",
    )
    return ConflictOutcome(
        conflict=conflict,
        status=ResolutionStatus.RESOLVED,
        effective_class=conflict.conflict_class,
        attempt=attempt,
    )


def test_pair_without_conflicts_is_compatible() -> None:
    pair = classify_pair(
        make_run("a"), make_run("b"), outcomes=(), commensurability=COMMENSURABLE
    )

    assert pair == CompatiblePair(run_a="a", run_b="b", scope_a="scope of a", scope_b="scope of b")


def test_pair_with_only_resolved_conflicts_is_reconciled() -> None:
    outcome = _resolved("C-0001")

    pair = classify_pair(
        make_run("a"), make_run("b"), outcomes=(outcome,), commensurability=COMMENSURABLE
    )

    assert isinstance(pair, ReconciledPair)
    assert pair.resolved_conflict_ids == ("C-0001",)
    assert pair.resolutions == (outcome.attempt,)


def test_one_unresolved_conflict_makes_the_pair_conflicted() -> None:
    other = _unresolved(_structural("C-0002", "a", "c"))
    unresolved = _unresolved(_structural("C-0003"))

    pair = classify_pair(
        make_run("a"),
        make_run("b"),
        outcomes=(_resolved("C-0001"), other, unresolved),
        commensurability=COMMENSURABLE,
    )

    assert isinstance(pair, ConflictedPair)
    assert pair.unresolved_conflict_ids == ("C-0003",)
    assert pair.upstream_actions == (_action("fix C-0003"),)


def test_incommensurable_answer_overrides_conflicts() -> None:
    pair = classify_pair(
        make_run("a"),
        make_run("b"),
        outcomes=(_unresolved(_structural("C-0001")),),
        commensurability=CommensurabilityJudgment(commensurable=False, argument="no overlap"),
    )

    assert pair == IncommensurablePair(run_a="a", run_b="b", argument="no overlap")


def test_unavailable_commensurability_never_yields_compatible() -> None:
    unknown = Indeterminate(detail="timeout")

    safe = classify_pair(make_run("a"), make_run("b"), outcomes=(), commensurability=unknown)
    conflicted = classify_pair(
        make_run("a"),
        make_run("b"),
        outcomes=(_unresolved(_structural("C-0001")),),
        commensurability=unknown,
    )

    assert isinstance(safe, IncommensurablePair)
    assert safe.justification == ORACLE_UNAVAILABLE
    assert conflicted.relationship is Relationship.CONFLICTED


def test_ensure_complete_rejects_missing_and_duplicate_pairs() -> None:
    registry = register_runs([make_run("a"), make_run("b"), make_run("c")])
    pairs = tuple(
        CompatiblePair(run_a=run_a.id, run_b=run_b.id, scope_a="x", scope_b="y")
        for run_a, run_b in registry.pairs()
    )

    ensure_complete(pairs, registry=registry)
    with pytest.raises(InvariantViolation, match="Missing relationship"):
        ensure_complete(pairs[:2], registry=registry)
    with pytest.raises(InvariantViolation, match="Duplicate relationship"):
        ensure_complete((*pairs, pairs[0]), registry=registry)


def test_jointly_supported_claims_group_normalized_claims() -> None:
    registry = register_runs(
        [
            make_run("a", "Caching lowers latency.", source="bench-1"),
            make_run("b", "caching lowers latency", "Disks are fast", source="bench-1"),
            make_run("c", "Disks are fast!"),
            make_run("d", "Budgets are tight"),
        ]
    )
    oracle = FakeOracle(
        independence={
            "caching lowers latency": IndependenceJudgment(
                independent=False, shared_source="bench-1"
            )
        }
    )

    async def run() -> tuple[object, ...]:
        return await jointly_supported_claims(
            registry, alignment=AlignmentTable(), oracle=OracleSession(oracle)
        )

    caching, disks = asyncio.run(run())

    assert caching.claim == "caching lowers latency"
    assert caching.supporting_runs == ("a", "b")
    assert not caching.independent
    assert caching.shared_source == "bench-1"
    assert disks.claim == "disks are fast"
    assert disks.supporting_runs == ("b", "c")
    assert disks.independent


def test_unavailable_independence_is_not_reported_as_independent() -> None:
    registry = register_runs(
        [make_run("a", "Disks are fast"), make_run("b", "Disks are fast.")]
    )
    oracle = FakeOracle(failing={"assess_independence"})

    async def run() -> tuple[object, ...]:
        return await jointly_supported_claims(
            registry, alignment=AlignmentTable(), oracle=OracleSession(oracle)
        )

    (disks,) = asyncio.run(run())

    assert disks.claim == "disks are fast"
    assert disks.supporting_runs == ("a", "b")
    assert not disks.independent
    assert disks.shared_source is None
    assert disks.justification == ORACLE_UNAVAILABLE


def test_upstream_actions_are_listed_once_in_conflict_order() -> None:
    unresolved = (
        _unresolved(_structural("C-0003", action="measure cache hits")),
        _unresolved(_structural("C-0001", action="measure cache hits")),
        _unresolved(_structural("C-0002", action="audit the benchmark")),
    )

    assert upstream_actions_required(unresolved) == (
        _action("measure cache hits"),
        _action("audit the benchmark"),
    )


def test_most_dangerous_conflict_by_pair_count_breaks_ties_by_id() -> None:
    first = _unresolved(_structural("C-0001"))
    second = _unresolved(_structural("C-0002"))
    pairs = (
        ConflictedPair(
            run_a="a",
            run_b="b",
            unresolved_conflict_ids=("C-0001", "C-0002"),
            upstream_actions=(_action("fix C-0001"), _action("fix C-0002")),
        ),
    )

    dangerous = select_most_dangerous((second, first), pairs=pairs)

    assert dangerous is not None
    assert dangerous.conflict_id == "C-0001"
    assert dangerous.argument == "argument of C-0001"
    assert select_most_dangerous((), pairs=pairs) is None


def test_most_dangerous_conflict_by_claim_reach() -> None:
    shared_claim = "Writes are rare"
    narrow = _unresolved(_structural("C-0001", "a", "b"))
    wide = _unresolved(_structural("C-0002", "a", "c", claim_a=shared_claim))
    echo = _unresolved(_structural("C-0003", "a", "d", claim_a=shared_claim))
    pairs = (
        ConflictedPair(
            run_a="a",
            run_b="b",
            unresolved_conflict_ids=("C-0001",),
            upstream_actions=(_action("fix C-0001"),),
        ),
        ConflictedPair(
            run_a="a",
            run_b="c",
            unresolved_conflict_ids=("C-0002",),
            upstream_actions=(_action("fix C-0002"),),
        ),
        ConflictedPair(
            run_a="a",
            run_b="d",
            unresolved_conflict_ids=("C-0003",),
            upstream_actions=(_action("fix C-0003"),),
        ),
    )

    by_pairs = select_most_dangerous(
        (narrow, wide, echo), pairs=pairs, ranking=DangerRanking.PAIR_COUNT
    )
    by_reach = select_most_dangerous(
        (narrow, wide, echo), pairs=pairs, ranking=DangerRanking.CLAIM_REACH
    )

    assert by_pairs is not None
    assert by_pairs.conflict_id == "C-0001"
    assert by_reach is not None
    assert by_reach.conflict_id == "C-0002"
