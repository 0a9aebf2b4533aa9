"""Record emission: the immutable summary handed to downstream processes.

The record never mentions oracle internals and carries no timestamps, so
identical invocations emit identical records.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Protocol

from dialectics.domain.model import NOTHING, CompatiblePair, ReconciledPair, Record

if TYPE_CHECKING:
    from dialectics.domain.model import ReconciliationMap

    from .registry import RunRegistry
    from .resolve import ResolutionResult

log = getLogger(__name__)


class EmitRecord(Protocol):
    def __call__(
        self,
        registry: RunRegistry,
        *,
        reconciliation_map: ReconciliationMap,
        resolution: ResolutionResult,
    ) -> Record: ...


def emit_record(
    registry: RunRegistry,
    *,
    reconciliation_map: ReconciliationMap,
    resolution: ResolutionResult,
) -> Record:
    total = len(resolution.outcomes)
    resolved = len(resolution.resolved())
    record = Record(
        input_runs=registry.ids,
        overall_relationship=reconciliation_map.overall_relationship,
        total_conflicts=total,
        resolved_conflicts=resolved,
        unresolved_conflicts=total - resolved,
        jointly_supported_claims=len(reconciliation_map.jointly_supported_claims),
        summary=_summary(
            registry,
            reconciliation_map=reconciliation_map,
            total=total,
            resolved=resolved,
        ),
        safe_to_build=_safe_to_build(reconciliation_map),
        blocked_until=_blocked_until(reconciliation_map),
    )
    log.info(
        "Emitted record for %s: %s, %d/%d conflicts resolved",
        ", ".join(record.input_runs),
        record.overall_relationship,
        record.resolved_conflicts,
        record.total_conflicts,
    )
    return record


def _safe_to_build(reconciliation_map: ReconciliationMap) -> str:
    lines = [
        f"- {pair.run_a} / {pair.run_b} [{pair.relationship}]: {pair.scope_a} | {pair.scope_b}"
        for pair in reconciliation_map.pairs
        if isinstance(pair, CompatiblePair | ReconciledPair)
    ]
    return "\n".join(lines) or NOTHING


def _blocked_until(reconciliation_map: ReconciliationMap) -> str:
    lines = [f"- {action.describe()}" for action in reconciliation_map.upstream_actions_required]
    return "\n".join(lines) or NOTHING


def _summary(
    registry: RunRegistry,
    *,
    reconciliation_map: ReconciliationMap,
    total: int,
    resolved: int,
) -> str:
    counts: dict[str, int] = {}
    for pair in reconciliation_map.pairs:
        counts[pair.relationship] = counts.get(pair.relationship, 0) + 1
    breakdown = ", ".join(f"{count} {name}" for name, count in sorted(counts.items()))

    sentences = [
        f"Reconciled {len(registry.runs)} runs ({', '.join(registry.ids)}): "
        f"{reconciliation_map.overall_relationship}.",
        f"Pairs: {breakdown}.",
        f"Conflicts: {total} detected, {resolved} resolved, {total - resolved} unresolved.",
        f"Jointly supported claims: {len(reconciliation_map.jointly_supported_claims)}.",
    ]
    dangerous = reconciliation_map.most_dangerous_conflict
    if dangerous is not None:
        sentences.append(
            f"Most dangerous conflict: {dangerous.conflict_id} ({dangerous.argument})."
        )
    return " ".join(sentences)
