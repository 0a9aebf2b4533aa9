"""Orchestrator for the reconciliation subsystem.

The engine composes stage interfaces in a fixed, single-pass order:
register -> align -> detect -> resolve -> map -> classify -> emit. No stage
revisits an earlier one, so every invocation terminates after the last stage
or aborts with the first fatal error; nothing partial is ever emitted.
"""

from __future__ import annotations

import asyncio
from contextlib import AbstractAsyncContextManager, AsyncExitStack
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from .classify import classify_outcome
from .detect import ConflictDetector
from .emit import emit_record
from .mapping import MapBuilder
from .oracle import OracleSession
from .registry import register_runs
from .resolve import ResolutionEngine
from .vocabulary import VocabularyAligner

if TYPE_CHECKING:
    from collections.abc import Iterable

    from dialectics.config import EngineConfig
    from dialectics.domain.model import Conflict, ReconciliationMap, Record, Run
    from dialectics.domain.ports import JudgmentOracle

    from .classify import ClassifyOutcome
    from .detect import DetectConflicts, Examination
    from .emit import EmitRecord
    from .mapping import BuildMap
    from .registry import RegisterRuns, RunRegistry
    from .resolve import ResolutionResult, ResolveConflicts
    from .vocabulary import AlignmentTable, AlignVocabulary

log = getLogger(__name__)


@dataclass(frozen=True, slots=True, kw_only=True)
class ReconciliationResult:
    """Every artifact derived during one invocation, in phase order."""

    registry: RunRegistry
    alignment: AlignmentTable
    examinations: tuple[Examination, ...]
    conflicts: tuple[Conflict, ...]
    resolution: ResolutionResult
    reconciliation_map: ReconciliationMap
    record: Record


@dataclass(slots=True, kw_only=True)
class ReconciliationEngine:
    """Run full reconciliation from input runs to the emitted record."""

    oracle: JudgmentOracle
    register: RegisterRuns = register_runs
    align: AlignVocabulary = field(default_factory=VocabularyAligner)
    detect: DetectConflicts = field(default_factory=ConflictDetector)
    resolve: ResolveConflicts = field(default_factory=ResolutionEngine)
    build_map: BuildMap = field(default_factory=MapBuilder)
    classify: ClassifyOutcome = classify_outcome
    emit: EmitRecord = emit_record
    oracle_timeout_seconds: float | None = None
    max_concurrency: int = 8

    @classmethod
    def from_config(cls, oracle: JudgmentOracle, config: EngineConfig) -> ReconciliationEngine:
        return cls(
            oracle=oracle,
            align=VocabularyAligner(min_term_length=config.min_term_length),
            build_map=MapBuilder(danger_ranking=config.danger_ranking),
            oracle_timeout_seconds=config.oracle_timeout_seconds,
            max_concurrency=config.max_concurrency,
        )

    def reconcile(self, runs: Iterable[Run]) -> ReconciliationResult:
        """Run all reconciliation stages for ``runs`` on a fresh event loop."""

        return asyncio.run(self.areconcile(runs))

    async def areconcile(self, runs: Iterable[Run]) -> ReconciliationResult:
        registry = self.register(runs)

        async with AsyncExitStack() as stack:
            if isinstance(self.oracle, AbstractAsyncContextManager):
                await stack.enter_async_context(self.oracle)
            session = OracleSession(
                self.oracle,
                timeout_seconds=self.oracle_timeout_seconds,
                max_concurrency=self.max_concurrency,
            )

            alignment = await self.align(registry, oracle=session)
            detection = await self.detect(registry, alignment=alignment, oracle=session)
            resolution = await self.resolve(detection.conflicts, registry=registry, oracle=session)
            matrix = await self.build_map(
                registry,
                alignment=alignment,
                resolution=resolution,
                oracle=session,
            )

        reconciliation_map = matrix.finalize(self.classify(matrix.pairs))
        record = self.emit(
            registry,
            reconciliation_map=reconciliation_map,
            resolution=resolution,
        )
        log.info(
            "Reconciliation finished: %d oracle questions, %d indeterminate",
            session.questions_asked,
            session.indeterminate_answers,
        )
        return ReconciliationResult(
            registry=registry,
            alignment=alignment,
            examinations=detection.log,
            conflicts=detection.conflicts,
            resolution=resolution,
            reconciliation_map=reconciliation_map,
            record=record,
        )
