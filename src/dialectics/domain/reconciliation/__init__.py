"""Reconciliation engine for independently produced analysis runs.

Layered flow, one module per stage:
1) register and order the input runs
2) align vocabulary shared across runs, blocking ambiguous terms
3) detect conflicts between every claim pair
4) attempt exactly one resolution per resolvable conflict
5) build the pairwise relationship map
6) classify the overall relationship
7) emit the immutable record

Semantic judgment is delegated to a ``JudgmentOracle``; everything around it
is deterministic.
"""

from __future__ import annotations

from .classify import classify_outcome
from .detect import ConflictDetector, DetectionResult, Examination, ExaminationUnit
from .emit import emit_record
from .engine import ReconciliationEngine, ReconciliationResult
from .mapping import MapBuilder, PairMatrix
from .oracle import Indeterminate, OracleSession
from .registry import RunRegistry, register_runs
from .resolve import ConflictOutcome, ResolutionEngine, ResolutionLedger, ResolutionResult
from .vocabulary import AlignmentTable, VocabularyAligner

__all__ = [
    "AlignmentTable",
    "ConflictDetector",
    "ConflictOutcome",
    "DetectionResult",
    "Examination",
    "ExaminationUnit",
    "Indeterminate",
    "MapBuilder",
    "OracleSession",
    "PairMatrix",
    "ReconciliationEngine",
    "ReconciliationResult",
    "ResolutionEngine",
    "ResolutionLedger",
    "ResolutionResult",
    "RunRegistry",
    "VocabularyAligner",
    "classify_outcome",
    "emit_record",
    "register_runs",
]
