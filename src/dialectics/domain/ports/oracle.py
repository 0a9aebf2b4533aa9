"""Judgment oracle port.

The oracle is the only source of semantic content in the engine. Every call
is a narrow, stateless question about a few text fragments and their
declared scopes; answers are enumerated classifications. Implementations
raise ``OracleError`` when they cannot answer. Timeouts and cancellation are
applied by the caller.

Question objects are frozen and hashable so that one engine invocation can
guarantee it never asks the same question twice.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal, Protocol, runtime_checkable

from dialectics.domain.model import ClaimKind, TermKind

if TYPE_CHECKING:
    from dialectics.domain.model import (
        Conflict,
        ContradictionVerdict,
        HomonymMeaning,
        ResolutionMechanism,
        TermUsage,
        UpstreamAction,
    )


# Questions


@dataclass(frozen=True, slots=True, kw_only=True)
class TermQuestion:
    term: str
    usages: tuple[TermUsage, ...]


@dataclass(frozen=True, slots=True, kw_only=True)
class ContradictionQuestion:
    """Does ``claim_a`` (a primary claim) contradict ``claim_b``?

    Both texts are already rewritten through the alignment table.
    """

    run_a: str
    run_b: str
    claim_a: str
    claim_b: str
    scope_a: str
    scope_b: str
    target_kind: ClaimKind = ClaimKind.CLAIM


@dataclass(frozen=True, slots=True, kw_only=True)
class ResolutionQuestion:
    conflict: Conflict
    scope_a: str
    scope_b: str
    mechanisms: tuple[ResolutionMechanism, ...]


@dataclass(frozen=True, slots=True, kw_only=True)
class Supporter:
    run_id: str
    scope: str
    source: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class IndependenceQuestion:
    claim: str
    supporters: tuple[Supporter, ...]


@dataclass(frozen=True, slots=True, kw_only=True)
class CommensurabilityQuestion:
    run_a: str
    run_b: str
    scope_a: str
    scope_b: str
    outcome_a: str
    outcome_b: str


type OracleQuestion = (
    TermQuestion
    | ContradictionQuestion
    | ResolutionQuestion
    | IndependenceQuestion
    | CommensurabilityQuestion
)


# Answers


@dataclass(frozen=True, slots=True, kw_only=True)
class SynonymJudgment:
    canonical: str
    variants: tuple[str, ...] = ()
    kind: Literal[TermKind.SYNONYM] = TermKind.SYNONYM


@dataclass(frozen=True, slots=True, kw_only=True)
class HomonymJudgment:
    meanings: tuple[HomonymMeaning, ...]
    scope_resolvable: bool
    kind: Literal[TermKind.HOMONYM] = TermKind.HOMONYM


@dataclass(frozen=True, slots=True, kw_only=True)
class NeologismJudgment:
    introduced_by: str
    definition: str
    kind: Literal[TermKind.NEOLOGISM] = TermKind.NEOLOGISM


type TermJudgment = SynonymJudgment | HomonymJudgment | NeologismJudgment


@dataclass(frozen=True, slots=True, kw_only=True)
class ContradictionJudgment:
    verdict: ContradictionVerdict
    argument: str = ""
    upstream_action: UpstreamAction | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class ResolutionJudgment:
    """Result of trying the offered mechanisms in order.

    ``mechanism`` names the mechanism that applied (or the last one tried
    when ``succeeded`` is false).
    """

    mechanism: ResolutionMechanism
    succeeded: bool
    explanation: str = ""
    surfaced_assumption: str | None = None
    assumption_held: bool | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class IndependenceJudgment:
    independent: bool
    shared_source: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class CommensurabilityJudgment:
    commensurable: bool
    argument: str = ""


@runtime_checkable
class JudgmentOracle(Protocol):
    """Stateless semantic classifier consulted by the reconciliation phases."""

    async def classify_term(self, question: TermQuestion) -> TermJudgment: ...

    async def check_contradiction(
        self, question: ContradictionQuestion
    ) -> ContradictionJudgment: ...

    async def attempt_resolution(self, question: ResolutionQuestion) -> ResolutionJudgment: ...

    async def assess_independence(
        self, question: IndependenceQuestion
    ) -> IndependenceJudgment: ...

    async def assess_commensurability(
        self, question: CommensurabilityQuestion
    ) -> CommensurabilityJudgment: ...
