"""Public domain model surface."""

from __future__ import annotations

from dialectics.domain.model.conflict import Conflict, ResolutionAttempt, UpstreamAction
from dialectics.domain.model.enums import (
    RESOLUTION_ORDER,
    RESOLVABLE_CONFLICT_CLASSES,
    ClaimKind,
    ConflictClass,
    ContradictionVerdict,
    DangerRanking,
    ExaminationStatus,
    OverallRelationship,
    ProtocolKind,
    Relationship,
    ResolutionMechanism,
    ResolutionStatus,
    TermKind,
)
from dialectics.domain.model.errors import (
    ORACLE_UNAVAILABLE,
    DialecticsError,
    InvariantViolation,
    OracleError,
    ValidationError,
)
from dialectics.domain.model.reconciliation_map import (
    CompatiblePair,
    ConflictedPair,
    DangerousConflict,
    IncommensurablePair,
    JointlySupportedClaim,
    ReconciledPair,
    ReconciliationMap,
    RunPairRelationship,
)
from dialectics.domain.model.record import NOTHING, Record
from dialectics.domain.model.run import Run
from dialectics.domain.model.vocabulary import (
    CbpBlocker,
    HomonymMeaning,
    HomonymTerm,
    IndeterminateTerm,
    NeologismTerm,
    SynonymTerm,
    TermUsage,
    VocabularyTerm,
    blocker_for,
)

__all__ = [  # noqa: RUF022
    # runs
    "Run",
    "ProtocolKind",
    "ClaimKind",
    # vocabulary
    "TermKind",
    "TermUsage",
    "HomonymMeaning",
    "CbpBlocker",
    "SynonymTerm",
    "HomonymTerm",
    "NeologismTerm",
    "IndeterminateTerm",
    "VocabularyTerm",
    "blocker_for",
    # conflicts
    "ConflictClass",
    "ContradictionVerdict",
    "RESOLVABLE_CONFLICT_CLASSES",
    "Conflict",
    "UpstreamAction",
    "ExaminationStatus",
    "ResolutionMechanism",
    "RESOLUTION_ORDER",
    "ResolutionStatus",
    "ResolutionAttempt",
    # map
    "Relationship",
    "OverallRelationship",
    "DangerRanking",
    "CompatiblePair",
    "ReconciledPair",
    "ConflictedPair",
    "IncommensurablePair",
    "RunPairRelationship",
    "JointlySupportedClaim",
    "DangerousConflict",
    "ReconciliationMap",
    # record
    "NOTHING",
    "Record",
    # errors
    "ORACLE_UNAVAILABLE",
    "DialecticsError",
    "ValidationError",
    "OracleError",
    "InvariantViolation",
]
