"""Pairwise relationships and the aggregate reconciliation map."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from .enums import Relationship
from .errors import InvariantViolation

if TYPE_CHECKING:
    from .conflict import ResolutionAttempt, UpstreamAction
    from .enums import OverallRelationship


@dataclass(frozen=True, slots=True, kw_only=True)
class CompatiblePair:
    """No conflict touched the pair."""

    run_a: str
    run_b: str
    scope_a: str
    scope_b: str
    relationship: Literal[Relationship.COMPATIBLE] = Relationship.COMPATIBLE


@dataclass(frozen=True, slots=True, kw_only=True)
class ReconciledPair:
    """Every conflict touching the pair was resolved as apparent."""

    run_a: str
    run_b: str
    scope_a: str
    scope_b: str
    resolved_conflict_ids: tuple[str, ...]
    resolutions: tuple[ResolutionAttempt, ...]
    relationship: Literal[Relationship.RECONCILED] = Relationship.RECONCILED

    def __post_init__(self) -> None:
        if not self.resolved_conflict_ids:
            raise InvariantViolation(
                f"Reconciled pair {self.run_a}/{self.run_b} lists no resolved conflicts"
            )


@dataclass(frozen=True, slots=True, kw_only=True)
class ConflictedPair:
    """At least one unresolved conflict touches the pair.

    ``upstream_actions`` is aligned with ``unresolved_conflict_ids``.
    """

    run_a: str
    run_b: str
    unresolved_conflict_ids: tuple[str, ...]
    upstream_actions: tuple[UpstreamAction, ...]
    relationship: Literal[Relationship.CONFLICTED] = Relationship.CONFLICTED

    def __post_init__(self) -> None:
        if not self.unresolved_conflict_ids:
            raise InvariantViolation(
                f"Conflicted pair {self.run_a}/{self.run_b} lists no unresolved conflicts"
            )
        if len(self.unresolved_conflict_ids) != len(self.upstream_actions):
            raise InvariantViolation(
                f"Conflicted pair {self.run_a}/{self.run_b} needs one upstream action per conflict"
            )


@dataclass(frozen=True, slots=True, kw_only=True)
class IncommensurablePair:
    """The runs share no common frame of comparison."""

    run_a: str
    run_b: str
    argument: str
    justification: str | None = None
    relationship: Literal[Relationship.INCOMMENSURABLE] = Relationship.INCOMMENSURABLE


type RunPairRelationship = CompatiblePair | ReconciledPair | ConflictedPair | IncommensurablePair


@dataclass(frozen=True, slots=True, kw_only=True)
class JointlySupportedClaim:
    """A normalized primary claim stated by at least two runs."""

    claim: str
    supporting_runs: tuple[str, ...]
    independent: bool
    shared_source: str | None = None
    justification: str | None = None

    def __post_init__(self) -> None:
        if len(set(self.supporting_runs)) < 2:  # noqa: PLR2004
            raise InvariantViolation(f"Joint claim {self.claim!r} needs at least two runs")


@dataclass(frozen=True, slots=True, kw_only=True)
class DangerousConflict:
    conflict_id: str
    argument: str


@dataclass(frozen=True, slots=True, kw_only=True)
class ReconciliationMap:
    """Complete pairwise relationship matrix plus aggregate findings."""

    pairs: tuple[RunPairRelationship, ...]
    jointly_supported_claims: tuple[JointlySupportedClaim, ...]
    upstream_actions_required: tuple[UpstreamAction, ...]
    overall_relationship: OverallRelationship
    most_dangerous_conflict: DangerousConflict | None = None

    def relationship_for(self, run_a: str, run_b: str) -> RunPairRelationship | None:
        wanted = {run_a, run_b}
        for pair in self.pairs:
            if {pair.run_a, pair.run_b} == wanted:
                return pair
        return None
