"""Resolution stage.

Responsibilities of this stage:
- make exactly one resolution attempt per resolvable conflict
- record attempts in a ledger that refuses a second attempt
- derive each conflict's effective class and upstream action

Out of scope for this stage:
- retrying failed attempts (anti-laundering: a failed attempt is final for
  the invocation)
- mutating detected conflicts
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Protocol, assert_never

from dialectics.domain.model import (
    RESOLUTION_ORDER,
    ConflictClass,
    InvariantViolation,
    ResolutionAttempt,
    ResolutionMechanism,
    ResolutionStatus,
)
from dialectics.domain.ports import ResolutionJudgment, ResolutionQuestion

from .detect import default_upstream_action
from .oracle import Indeterminate

if TYPE_CHECKING:
    from collections.abc import Iterable

    from dialectics.domain.model import Conflict, UpstreamAction

    from .oracle import OracleSession
    from .registry import RunRegistry

log = getLogger(__name__)


class ResolutionLedger:
    """Exactly-once record of resolution attempts for one invocation."""

    def __init__(self, conflicts: Iterable[Conflict]) -> None:
        self._conflicts = {conflict.id: conflict for conflict in conflicts}
        self._attempts: dict[str, ResolutionAttempt] = {}

    @property
    def attempts(self) -> tuple[ResolutionAttempt, ...]:
        return tuple(self._attempts[key] for key in sorted(self._attempts))

    def attempt_for(self, conflict_id: str) -> ResolutionAttempt | None:
        return self._attempts.get(conflict_id)

    def record(self, attempt: ResolutionAttempt) -> None:
        conflict = self._conflicts.get(attempt.conflict_id)
        if conflict is None:
            raise InvariantViolation(f"Attempt recorded for unknown conflict {attempt.conflict_id}")
        if not conflict.resolvable_within_rcp:
            raise InvariantViolation(
                f"Conflict {conflict.id} is not resolvable and cannot receive an attempt"
            )
        if attempt.conflict_id in self._attempts:
            raise InvariantViolation(
                f"Conflict {attempt.conflict_id} already received its resolution attempt"
            )
        self._attempts[attempt.conflict_id] = attempt


@dataclass(frozen=True, slots=True, kw_only=True)
class ConflictOutcome:
    """Where one conflict stands once the resolution stage is done."""

    conflict: Conflict
    status: ResolutionStatus
    effective_class: ConflictClass
    attempt: ResolutionAttempt | None = None
    upstream_action: UpstreamAction | None = None

    @property
    def resolved(self) -> bool:
        return self.status is ResolutionStatus.RESOLVED


@dataclass(frozen=True, slots=True, kw_only=True)
class ResolutionResult:
    ledger: ResolutionLedger
    outcomes: tuple[ConflictOutcome, ...]

    def outcome_for(self, conflict_id: str) -> ConflictOutcome:
        for outcome in self.outcomes:
            if outcome.conflict.id == conflict_id:
                return outcome
        raise KeyError(conflict_id)

    def resolved(self) -> tuple[ConflictOutcome, ...]:
        return tuple(outcome for outcome in self.outcomes if outcome.resolved)

    def unresolved(self) -> tuple[ConflictOutcome, ...]:
        return tuple(outcome for outcome in self.outcomes if not outcome.resolved)


class ResolveConflicts(Protocol):
    async def __call__(
        self,
        conflicts: tuple[Conflict, ...],
        *,
        registry: RunRegistry,
        oracle: OracleSession,
    ) -> ResolutionResult: ...


@dataclass(slots=True, kw_only=True)
class ResolutionEngine:
    """Default resolution stage trying ``mechanisms`` in order."""

    mechanisms: tuple[ResolutionMechanism, ...] = RESOLUTION_ORDER

    async def __call__(
        self,
        conflicts: tuple[Conflict, ...],
        *,
        registry: RunRegistry,
        oracle: OracleSession,
    ) -> ResolutionResult:
        ledger = ResolutionLedger(conflicts)
        resolvable = tuple(conflict for conflict in conflicts if conflict.resolvable_within_rcp)
        judgments = await asyncio.gather(
            *(
                oracle.attempt_resolution(self._question(conflict, registry=registry))
                for conflict in resolvable
            )
        )
        for conflict, judgment in zip(resolvable, judgments, strict=True):
            ledger.record(self._attempt(conflict, judgment))

        outcomes = tuple(_outcome(conflict, ledger, registry=registry) for conflict in conflicts)
        result = ResolutionResult(ledger=ledger, outcomes=outcomes)
        log.info(
            "Attempted %d of %d conflicts, %d resolved",
            len(resolvable),
            len(conflicts),
            len(result.resolved()),
        )
        return result

    def _question(self, conflict: Conflict, *, registry: RunRegistry) -> ResolutionQuestion:
        return ResolutionQuestion(
            conflict=conflict,
            scope_a=registry.run_for(conflict.run_a).scope,
            scope_b=registry.run_for(conflict.run_b).scope,
            mechanisms=self.mechanisms,
        )

    def _attempt(
        self,
        conflict: Conflict,
        judgment: ResolutionJudgment | Indeterminate,
    ) -> ResolutionAttempt:
        match judgment:
            case Indeterminate():
                return ResolutionAttempt(
                    conflict_id=conflict.id,
                    mechanism=None,
                    succeeded=False,
                    explanation=judgment.detail,
                    justification=judgment.justification,
                )
            case ResolutionJudgment():
                problem = self._inconsistency(judgment)
                if problem is not None:
                    log.warning("Discarding resolution of %s: %s", conflict.id, problem)
                    return ResolutionAttempt(
                        conflict_id=conflict.id,
                        mechanism=None,
                        succeeded=False,
                        explanation=problem,
                    )
                surfacing = judgment.mechanism is ResolutionMechanism.ASSUMPTION_SURFACING
                return ResolutionAttempt(
                    conflict_id=conflict.id,
                    mechanism=judgment.mechanism,
                    succeeded=judgment.succeeded,
                    explanation=judgment.explanation,
                    surfaced_assumption=judgment.surfaced_assumption if surfacing else None,
                    assumption_held=judgment.assumption_held if surfacing else None,
                )
            case _:
                assert_never(judgment)

    def _inconsistency(self, judgment: ResolutionJudgment) -> str | None:
        if judgment.mechanism not in self.mechanisms:
            return f"mechanism {judgment.mechanism} was not offered"
        surfacing = judgment.mechanism is ResolutionMechanism.ASSUMPTION_SURFACING
        if surfacing and judgment.succeeded and judgment.assumption_held is None:
            return "surfaced assumption carries no verdict"
        return None


def _outcome(
    conflict: Conflict,
    ledger: ResolutionLedger,
    *,
    registry: RunRegistry,
) -> ConflictOutcome:
    attempt = ledger.attempt_for(conflict.id)
    if attempt is None:
        return ConflictOutcome(
            conflict=conflict,
            status=ResolutionStatus.NOT_ATTEMPTED,
            effective_class=conflict.conflict_class,
            upstream_action=conflict.upstream_action,
        )

    status = attempt.status
    match status:
        case ResolutionStatus.RESOLVED:
            return ConflictOutcome(
                conflict=conflict,
                status=status,
                effective_class=conflict.conflict_class,
                attempt=attempt,
            )
        case ResolutionStatus.RECLASSIFIED | ResolutionStatus.FAILED:
            upstream_action = conflict.upstream_action or default_upstream_action(
                registry.run_for(conflict.run_a),
                registry.run_for(conflict.run_b),
                claim_b=conflict.claim_b,
                argument=attempt.explanation or conflict.argument,
            )
            return ConflictOutcome(
                conflict=conflict,
                status=status,
                effective_class=ConflictClass.STRUCTURAL_CONFLICT,
                attempt=attempt,
                upstream_action=upstream_action,
            )
        case ResolutionStatus.NOT_ATTEMPTED:
            raise InvariantViolation(f"Attempt for {conflict.id} reports not_attempted")
        case _:
            assert_never(status)
