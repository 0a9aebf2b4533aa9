"""Conflict detection stage.

Responsibilities of this stage:
- compare every primary claim of ``run_a`` against every primary claim and
  external assumption of ``run_b``, for each pair in registry order
- exclude statements that use a blocked term, with that justification
- raise one vocabulary conflict per pair and blocked term both runs use
- log every examination and validate that nothing was skipped silently

Examinations run concurrently but are merged back in
``(run_i, run_j, claim index, target kind, target index)`` order before
conflict ids are assigned or anything is logged.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Protocol, assert_never

from dialectics.domain.model import (
    ClaimKind,
    Conflict,
    ConflictClass,
    ContradictionVerdict,
    ExaminationStatus,
    IndeterminateTerm,
    ProtocolKind,
    UpstreamAction,
    ValidationError,
)
from dialectics.domain.ports import ContradictionJudgment, ContradictionQuestion

from .oracle import Indeterminate
from .vocabulary import normalize_text, uses_phrase

if TYPE_CHECKING:
    from collections.abc import Iterator

    from dialectics.domain.model import Run

    from .oracle import OracleSession
    from .registry import RunRegistry
    from .vocabulary import AlignmentTable

log = getLogger(__name__)

_CONFLICT_CLASS_BY_VERDICT: dict[ContradictionVerdict, ConflictClass] = {
    ContradictionVerdict.SCOPE_MISMATCH: ConflictClass.SCOPE_MISMATCH,
    ContradictionVerdict.ASSUMPTION_CONFLICT: ConflictClass.ASSUMPTION_CONFLICT,
    ContradictionVerdict.STRUCTURAL_CONFLICT: ConflictClass.STRUCTURAL_CONFLICT,
}


@dataclass(frozen=True, slots=True, kw_only=True)
class ExaminationUnit:
    """One claim of ``run_a`` against one statement of ``run_b``."""

    run_a: str
    run_b: str
    claim_index: int
    target_kind: ClaimKind
    target_index: int

    def describe(self) -> str:
        return (
            f"{self.run_a}/{self.run_b} claim[{self.claim_index}] vs "
            f"{self.target_kind}[{self.target_index}]"
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class Examination:
    """Log entry for one examination unit."""

    unit: ExaminationUnit
    status: ExaminationStatus
    verdict: ContradictionVerdict | None = None
    blocked_terms_a: tuple[str, ...] = ()
    blocked_terms_b: tuple[str, ...] = ()
    justification: str | None = None
    conflict_id: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class DetectionResult:
    log: tuple[Examination, ...]
    conflicts: tuple[Conflict, ...]

    def examined(self) -> tuple[Examination, ...]:
        return tuple(entry for entry in self.log if entry.status is ExaminationStatus.EXAMINED)


class DetectConflicts(Protocol):
    async def __call__(
        self,
        registry: RunRegistry,
        *,
        alignment: AlignmentTable,
        oracle: OracleSession,
    ) -> DetectionResult: ...


def expected_units(registry: RunRegistry) -> tuple[ExaminationUnit, ...]:
    """Every examination unit the registry demands, in merge order."""

    return tuple(_iter_units(registry))


def _iter_units(registry: RunRegistry) -> Iterator[ExaminationUnit]:
    for run_a, run_b in registry.pairs():
        for claim_index in range(len(run_a.primary_claims)):
            for target_kind, target_index, _text in run_b.statements():
                yield ExaminationUnit(
                    run_a=run_a.id,
                    run_b=run_b.id,
                    claim_index=claim_index,
                    target_kind=target_kind,
                    target_index=target_index,
                )


@dataclass(frozen=True, slots=True, kw_only=True)
class _Excluded:
    blocked_terms_a: tuple[str, ...]
    blocked_terms_b: tuple[str, ...]


type _RawOutcome = ContradictionJudgment | Indeterminate | _Excluded


@dataclass(slots=True, kw_only=True)
class ConflictDetector:
    """Default exhaustive pairwise conflict detector."""

    async def __call__(
        self,
        registry: RunRegistry,
        *,
        alignment: AlignmentTable,
        oracle: OracleSession,
    ) -> DetectionResult:
        units = expected_units(registry)
        outcomes = await asyncio.gather(
            *(self._examine(unit, registry=registry, alignment=alignment, oracle=oracle)
              for unit in units)
        )  # fmt: skip

        entries: list[Examination] = []
        conflicts: list[Conflict] = []
        pairs = registry.pairs()
        ids = conflict_ids(len(units) + len(pairs) * len(alignment.blockers))
        by_pair: dict[tuple[str, str], list[tuple[ExaminationUnit, _RawOutcome]]] = {}
        for unit, outcome in zip(units, outcomes, strict=True):
            by_pair.setdefault((unit.run_a, unit.run_b), []).append((unit, outcome))

        for run_a, run_b in pairs:
            for unit, outcome in by_pair.get((run_a.id, run_b.id), ()):
                entry, conflict = _record(unit, outcome, run_a=run_a, run_b=run_b, ids=ids)
                entries.append(entry)
                if conflict is not None:
                    conflicts.append(conflict)
                _log_entry(entry)
            conflicts.extend(
                _vocabulary_conflicts(run_a, run_b, alignment=alignment, ids=ids)
            )

        result = DetectionResult(log=tuple(entries), conflicts=tuple(conflicts))
        validate_examination_log(result.log, registry=registry, alignment=alignment)
        log.info(
            "Examined %d of %d claim pairs, %d conflicts detected",
            len(result.examined()),
            len(result.log),
            len(result.conflicts),
        )
        return result

    async def _examine(
        self,
        unit: ExaminationUnit,
        *,
        registry: RunRegistry,
        alignment: AlignmentTable,
        oracle: OracleSession,
    ) -> _RawOutcome:
        run_a = registry.run_for(unit.run_a)
        run_b = registry.run_for(unit.run_b)
        claim_a = run_a.primary_claims[unit.claim_index]
        claim_b = run_b.statement(unit.target_kind, unit.target_index)

        blocked_a = alignment.blocked_terms_in(claim_a)
        blocked_b = alignment.blocked_terms_in(claim_b)
        if blocked_a or blocked_b:
            return _Excluded(blocked_terms_a=blocked_a, blocked_terms_b=blocked_b)

        question = ContradictionQuestion(
            run_a=run_a.id,
            run_b=run_b.id,
            claim_a=alignment.rewrite(run_a.id, claim_a),
            claim_b=alignment.rewrite(run_b.id, claim_b),
            scope_a=run_a.scope,
            scope_b=run_b.scope,
            target_kind=unit.target_kind,
        )
        return await oracle.check_contradiction(question)


def conflict_ids(capacity: int) -> Iterator[str]:
    """Yield ``C-0001``, ``C-0002``, ... padded so ``capacity`` ids sort in order."""

    width = max(4, len(str(capacity)))
    number = 0
    while True:
        number += 1
        yield f"C-{number:0{width}d}"


def _record(
    unit: ExaminationUnit,
    outcome: _RawOutcome,
    *,
    run_a: Run,
    run_b: Run,
    ids: Iterator[str],
) -> tuple[Examination, Conflict | None]:
    claim_a = run_a.primary_claims[unit.claim_index]
    claim_b = run_b.statement(unit.target_kind, unit.target_index)
    match outcome:
        case _Excluded():
            blocked = ", ".join(sorted({*outcome.blocked_terms_a, *outcome.blocked_terms_b}))
            return Examination(
                unit=unit,
                status=ExaminationStatus.EXCLUDED,
                blocked_terms_a=outcome.blocked_terms_a,
                blocked_terms_b=outcome.blocked_terms_b,
                justification=f"blocked term: {blocked}",
            ), None
        case Indeterminate():
            conflict = Conflict(
                id=next(ids),
                conflict_class=ConflictClass.STRUCTURAL_CONFLICT,
                run_a=run_a.id,
                run_b=run_b.id,
                claim_a=claim_a,
                claim_b=claim_b,
                argument=f"contradiction check could not be completed ({outcome.detail})",
                resolvable_within_rcp=False,
                upstream_action=UpstreamAction(
                    protocol=ProtocolKind.RECONCILIATION,
                    input=(
                        f"re-run reconciliation of {run_a.id} and {run_b.id} once the "
                        "judgment oracle is available"
                    ),
                ),
                target_kind=unit.target_kind,
                justification=outcome.justification,
            )
            return Examination(
                unit=unit,
                status=ExaminationStatus.INDETERMINATE,
                justification=outcome.justification,
                conflict_id=conflict.id,
            ), conflict
        case ContradictionJudgment(verdict=ContradictionVerdict.NO_CONFLICT):
            return Examination(
                unit=unit,
                status=ExaminationStatus.EXAMINED,
                verdict=outcome.verdict,
            ), None
        case ContradictionJudgment():
            conflict_class = _CONFLICT_CLASS_BY_VERDICT[outcome.verdict]
            resolvable = conflict_class is not ConflictClass.STRUCTURAL_CONFLICT
            upstream_action = outcome.upstream_action
            if upstream_action is None and not resolvable:
                upstream_action = default_upstream_action(
                    run_a, run_b, claim_b=claim_b, argument=outcome.argument
                )
            conflict = Conflict(
                id=next(ids),
                conflict_class=conflict_class,
                run_a=run_a.id,
                run_b=run_b.id,
                claim_a=claim_a,
                claim_b=claim_b,
                argument=outcome.argument,
                resolvable_within_rcp=resolvable,
                upstream_action=upstream_action,
                target_kind=unit.target_kind,
            )
            return Examination(
                unit=unit,
                status=ExaminationStatus.EXAMINED,
                verdict=outcome.verdict,
                conflict_id=conflict.id,
            ), conflict
        case _:
            assert_never(outcome)


def default_upstream_action(
    run_a: Run,
    run_b: Run,
    *,
    claim_b: str,
    argument: str,
) -> UpstreamAction:
    """Re-run the protocol whose statement was challenged."""

    detail = f": {argument}" if argument else ""
    return UpstreamAction(
        protocol=run_b.protocol_kind,
        input=f"settle '{claim_b}' ({run_b.id}) against {run_a.id}{detail}",
    )


def _vocabulary_conflicts(
    run_a: Run,
    run_b: Run,
    *,
    alignment: AlignmentTable,
    ids: Iterator[str],
) -> list[Conflict]:
    conflicts: list[Conflict] = []
    for blocker in alignment.blockers:
        statement_a = _first_statement_using(run_a, blocker.term)
        statement_b = _first_statement_using(run_b, blocker.term)
        if statement_a is None or statement_b is None:
            continue
        term = alignment.term_for(blocker.term)
        justification = term.justification if isinstance(term, IndeterminateTerm) else None
        argument = (
            f"'{blocker.term}' could not be classified ({justification})"
            if justification is not None
            else f"'{blocker.term}' carries different meanings that scope does not disambiguate"
        )
        conflicts.append(
            Conflict(
                id=next(ids),
                conflict_class=ConflictClass.VOCABULARY_CONFLICT,
                run_a=run_a.id,
                run_b=run_b.id,
                claim_a=statement_a[1],
                claim_b=statement_b[1],
                argument=argument,
                resolvable_within_rcp=False,
                upstream_action=blocker.upstream_action,
                target_kind=statement_b[0],
                justification=justification,
            )
        )
    return conflicts


def _first_statement_using(run: Run, term: str) -> tuple[ClaimKind, str] | None:
    for kind, _index, text in run.statements():
        if uses_phrase(normalize_text(text), term):
            return kind, text
    return None


def _log_entry(entry: Examination) -> None:
    unit = entry.unit.describe()
    match entry.status:
        case ExaminationStatus.EXAMINED:
            log.debug("examined %s: %s", unit, entry.verdict)
        case ExaminationStatus.EXCLUDED:
            log.debug("excluded %s: %s", unit, entry.justification)
        case ExaminationStatus.INDETERMINATE:
            log.debug("indeterminate %s: %s", unit, entry.justification)
        case _:
            assert_never(entry.status)


def validate_examination_log(
    entries: tuple[Examination, ...],
    *,
    registry: RunRegistry,
    alignment: AlignmentTable,
) -> None:
    """Raise ``ValidationError`` unless every expected unit is accounted for.

    An exclusion is justified only by blocked terms that the excluded
    statement actually uses.
    """

    expected = expected_units(registry)
    logged = tuple(entry.unit for entry in entries)
    if logged != expected:
        logged_set = set(logged)
        missing = [unit.describe() for unit in expected if unit not in logged_set]
        if missing:
            raise ValidationError(
                f"Unjustified skip: {len(missing)} claim pairs missing from the "
                f"examination log (first: {missing[0]})"
            )
        raise ValidationError("Examination log is out of order or contains duplicate units")

    blocked = alignment.blocked_terms
    for entry in entries:
        if entry.status is ExaminationStatus.EXAMINED and entry.verdict is None:
            raise ValidationError(f"Examined {entry.unit.describe()} has no verdict")
        if entry.status is not ExaminationStatus.EXCLUDED:
            continue
        if not (entry.blocked_terms_a or entry.blocked_terms_b):
            raise ValidationError(f"Unjustified skip of {entry.unit.describe()}")
        run_a = registry.run_for(entry.unit.run_a)
        run_b = registry.run_for(entry.unit.run_b)
        unit = entry.unit
        members = (
            (entry.blocked_terms_a, run_a.primary_claims[unit.claim_index]),
            (entry.blocked_terms_b, run_b.statement(unit.target_kind, unit.target_index)),
        )
        for terms, text in members:
            normalized = normalize_text(text)
            for term in terms:
                if term not in blocked or not uses_phrase(normalized, term):
                    raise ValidationError(
                        f"Unjustified skip of {entry.unit.describe()}: "
                        f"{term!r} does not block {text!r}"
                    )
