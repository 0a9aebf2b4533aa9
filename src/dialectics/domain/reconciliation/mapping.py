"""Map building stage.

Responsibilities of this stage:
- classify every run pair as compatible, reconciled, conflicted or
  incommensurable
- collect jointly supported claims and their independence
- pick the most dangerous unresolved conflict
- list the upstream actions that remain outstanding

The pair matrix is checked for completeness before it leaves this stage;
a partial map is never returned.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from logging import getLogger
from math import comb
from typing import TYPE_CHECKING, Protocol, assert_never

from dialectics.domain.model import (
    ORACLE_UNAVAILABLE,
    CompatiblePair,
    ConflictedPair,
    DangerousConflict,
    DangerRanking,
    IncommensurablePair,
    InvariantViolation,
    JointlySupportedClaim,
    ReconciledPair,
    ReconciliationMap,
    Relationship,
)
from dialectics.domain.ports import (
    CommensurabilityJudgment,
    CommensurabilityQuestion,
    IndependenceJudgment,
    IndependenceQuestion,
    Supporter,
)

from .oracle import Indeterminate

if TYPE_CHECKING:
    from dialectics.domain.model import (
        OverallRelationship,
        Run,
        RunPairRelationship,
        UpstreamAction,
    )

    from .oracle import OracleSession
    from .registry import RunRegistry
    from .resolve import ConflictOutcome, ResolutionResult
    from .vocabulary import AlignmentTable

log = getLogger(__name__)


@dataclass(frozen=True, slots=True, kw_only=True)
class PairMatrix:
    """Everything the map needs except the overall verdict."""

    pairs: tuple[RunPairRelationship, ...]
    jointly_supported_claims: tuple[JointlySupportedClaim, ...]
    upstream_actions_required: tuple[UpstreamAction, ...]
    most_dangerous_conflict: DangerousConflict | None = None

    def finalize(self, overall_relationship: OverallRelationship) -> ReconciliationMap:
        return ReconciliationMap(
            pairs=self.pairs,
            jointly_supported_claims=self.jointly_supported_claims,
            upstream_actions_required=self.upstream_actions_required,
            overall_relationship=overall_relationship,
            most_dangerous_conflict=self.most_dangerous_conflict,
        )


class BuildMap(Protocol):
    async def __call__(
        self,
        registry: RunRegistry,
        *,
        alignment: AlignmentTable,
        resolution: ResolutionResult,
        oracle: OracleSession,
    ) -> PairMatrix: ...


@dataclass(slots=True, kw_only=True)
class MapBuilder:
    """Default map building stage."""

    danger_ranking: DangerRanking = DangerRanking.PAIR_COUNT

    async def __call__(
        self,
        registry: RunRegistry,
        *,
        alignment: AlignmentTable,
        resolution: ResolutionResult,
        oracle: OracleSession,
    ) -> PairMatrix:
        run_pairs = registry.pairs()
        commensurability, joint_claims = await asyncio.gather(
            asyncio.gather(
                *(
                    oracle.assess_commensurability(_commensurability_question(run_a, run_b))
                    for run_a, run_b in run_pairs
                )
            ),
            jointly_supported_claims(registry, alignment=alignment, oracle=oracle),
        )

        pairs = tuple(
            classify_pair(run_a, run_b, outcomes=resolution.outcomes, commensurability=answer)
            for (run_a, run_b), answer in zip(run_pairs, commensurability, strict=True)
        )
        ensure_complete(pairs, registry=registry)

        unresolved = resolution.unresolved()
        matrix = PairMatrix(
            pairs=pairs,
            jointly_supported_claims=joint_claims,
            upstream_actions_required=upstream_actions_required(unresolved),
            most_dangerous_conflict=select_most_dangerous(
                unresolved, pairs=pairs, ranking=self.danger_ranking
            ),
        )
        for pair in pairs:
            log.debug("%s/%s: %s", pair.run_a, pair.run_b, pair.relationship)
        log.info(
            "Mapped %d pairs, %d jointly supported claims, %d upstream actions",
            len(matrix.pairs),
            len(matrix.jointly_supported_claims),
            len(matrix.upstream_actions_required),
        )
        return matrix


def _commensurability_question(run_a: Run, run_b: Run) -> CommensurabilityQuestion:
    return CommensurabilityQuestion(
        run_a=run_a.id,
        run_b=run_b.id,
        scope_a=run_a.scope,
        scope_b=run_b.scope,
        outcome_a=run_a.outcome,
        outcome_b=run_b.outcome,
    )


def classify_pair(
    run_a: Run,
    run_b: Run,
    *,
    outcomes: tuple[ConflictOutcome, ...],
    commensurability: CommensurabilityJudgment | Indeterminate,
) -> RunPairRelationship:
    """Relationship of one pair given its conflict outcomes.

    An incommensurable answer overrides everything else. When the answer is
    unavailable a pair that would otherwise look safe is reported as
    incommensurable, never as compatible.
    """

    key = (run_a.id, run_b.id)
    touching = tuple(outcome for outcome in outcomes if outcome.conflict.pair == key)
    base = _classify_by_conflicts(run_a, run_b, touching)

    match commensurability:
        case CommensurabilityJudgment(commensurable=False):
            return IncommensurablePair(
                run_a=run_a.id,
                run_b=run_b.id,
                argument=commensurability.argument,
            )
        case CommensurabilityJudgment():
            return base
        case Indeterminate():
            if base.relationship in {Relationship.COMPATIBLE, Relationship.RECONCILED}:
                return IncommensurablePair(
                    run_a=run_a.id,
                    run_b=run_b.id,
                    argument=ORACLE_UNAVAILABLE,
                    justification=commensurability.justification,
                )
            return base
        case _:
            assert_never(commensurability)


def _classify_by_conflicts(
    run_a: Run,
    run_b: Run,
    touching: tuple[ConflictOutcome, ...],
) -> RunPairRelationship:
    if not touching:
        return CompatiblePair(
            run_a=run_a.id,
            run_b=run_b.id,
            scope_a=run_a.scope,
            scope_b=run_b.scope,
        )

    unresolved = tuple(outcome for outcome in touching if not outcome.resolved)
    if not unresolved:
        return ReconciledPair(
            run_a=run_a.id,
            run_b=run_b.id,
            scope_a=run_a.scope,
            scope_b=run_b.scope,
            resolved_conflict_ids=tuple(outcome.conflict.id for outcome in touching),
            resolutions=tuple(outcome.attempt for outcome in touching if outcome.attempt),
        )

    actions: list[UpstreamAction] = []
    for outcome in unresolved:
        if outcome.upstream_action is None:
            raise InvariantViolation(
                f"Unresolved conflict {outcome.conflict.id} has no upstream action"
            )
        actions.append(outcome.upstream_action)
    return ConflictedPair(
        run_a=run_a.id,
        run_b=run_b.id,
        unresolved_conflict_ids=tuple(outcome.conflict.id for outcome in unresolved),
        upstream_actions=tuple(actions),
    )


def ensure_complete(pairs: tuple[RunPairRelationship, ...], *, registry: RunRegistry) -> None:
    """Raise ``InvariantViolation`` unless every declared pair has exactly one entry."""

    expected = {(run_a.id, run_b.id) for run_a, run_b in registry.pairs()}
    seen: set[tuple[str, str]] = set()
    for pair in pairs:
        key = (pair.run_a, pair.run_b)
        if key not in expected:
            raise InvariantViolation(f"Relationship for undeclared pair {key[0]}/{key[1]}")
        if key in seen:
            raise InvariantViolation(f"Duplicate relationship for pair {key[0]}/{key[1]}")
        seen.add(key)

    missing = sorted(expected - seen)
    if missing or len(pairs) != comb(len(registry.runs), 2):
        first = "/".join(missing[0]) if missing else "?"
        raise InvariantViolation(
            f"Missing relationship for {len(missing)} declared pairs (first: {first})"
        )


async def jointly_supported_claims(
    registry: RunRegistry,
    *,
    alignment: AlignmentTable,
    oracle: OracleSession,
) -> tuple[JointlySupportedClaim, ...]:
    """Normalized primary claims stated by two or more runs, sorted by claim."""

    runs_by_claim: dict[str, list[Run]] = {}
    for run in registry.runs:
        for text in run.primary_claims:
            if alignment.blocked_terms_in(text):
                continue
            supporters = runs_by_claim.setdefault(alignment.rewrite(run.id, text), [])
            if run not in supporters:
                supporters.append(run)

    questions = [
        IndependenceQuestion(
            claim=claim,
            supporters=tuple(
                Supporter(run_id=run.id, scope=run.scope, source=run.source) for run in runs
            ),
        )
        for claim, runs in sorted(runs_by_claim.items())
        if claim and len(runs) >= 2  # noqa: PLR2004
    ]
    judgments = await asyncio.gather(
        *(oracle.assess_independence(question) for question in questions)
    )
    return tuple(
        _joint_claim(question, judgment)
        for question, judgment in zip(questions, judgments, strict=True)
    )


def _joint_claim(
    question: IndependenceQuestion,
    judgment: IndependenceJudgment | Indeterminate,
) -> JointlySupportedClaim:
    supporting_runs = tuple(supporter.run_id for supporter in question.supporters)
    match judgment:
        case IndependenceJudgment():
            return JointlySupportedClaim(
                claim=question.claim,
                supporting_runs=supporting_runs,
                independent=judgment.independent,
                shared_source=None if judgment.independent else judgment.shared_source,
            )
        case Indeterminate():
            return JointlySupportedClaim(
                claim=question.claim,
                supporting_runs=supporting_runs,
                independent=False,
                justification=judgment.justification,
            )
        case _:
            assert_never(judgment)


def upstream_actions_required(
    unresolved: tuple[ConflictOutcome, ...],
) -> tuple[UpstreamAction, ...]:
    """Upstream actions of unresolved conflicts in conflict id order, without repeats."""

    actions: dict[UpstreamAction, None] = {}
    for outcome in sorted(unresolved, key=lambda outcome: outcome.conflict.id):
        if outcome.upstream_action is not None:
            actions.setdefault(outcome.upstream_action, None)
    return tuple(actions)


def select_most_dangerous(
    unresolved: tuple[ConflictOutcome, ...],
    *,
    pairs: tuple[RunPairRelationship, ...],
    ranking: DangerRanking = DangerRanking.PAIR_COUNT,
) -> DangerousConflict | None:
    """Highest ranked unresolved conflict; ties go to the smallest id."""

    if not unresolved:
        return None

    conflicted = tuple(pair for pair in pairs if isinstance(pair, ConflictedPair))
    match ranking:
        case DangerRanking.PAIR_COUNT:

            def score(outcome: ConflictOutcome) -> int:
                return sum(
                    outcome.conflict.id in pair.unresolved_conflict_ids for pair in conflicted
                )

        case DangerRanking.CLAIM_REACH:
            by_id = {outcome.conflict.id: outcome.conflict for outcome in unresolved}
            claims_by_pair = [
                {
                    text
                    for conflict_id in pair.unresolved_conflict_ids
                    if conflict_id in by_id
                    for text in (by_id[conflict_id].claim_a, by_id[conflict_id].claim_b)
                }
                for pair in conflicted
            ]

            def score(outcome: ConflictOutcome) -> int:
                texts = {outcome.conflict.claim_a, outcome.conflict.claim_b}
                return sum(bool(texts & claims) for claims in claims_by_pair)

        case _:
            assert_never(ranking)

    chosen = min(unresolved, key=lambda outcome: (-score(outcome), outcome.conflict.id))
    return DangerousConflict(conflict_id=chosen.conflict.id, argument=chosen.conflict.argument)
