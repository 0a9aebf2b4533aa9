"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class ProtocolKind(StrEnum):
    """Upstream protocol that produced a run (or must be re-run)."""

    REVISION = "revision"
    DEPRECATION = "deprecation"
    FIDELITY_AUDIT = "fidelity_audit"
    OBSERVATION_VALIDATION = "observation_validation"
    PRIORITIZATION = "prioritization"
    ADVERSARIAL_DESIGN = "adversarial_design"

    # Protocols named by upstream actions:
    CONCEPT_BOUNDARY = "concept_boundary"
    RECONCILIATION = "reconciliation"


class TermKind(StrEnum):
    SYNONYM = "synonym"
    HOMONYM = "homonym"
    NEOLOGISM = "neologism"
    INDETERMINATE = "indeterminate"


class ClaimKind(StrEnum):
    """Which list of a run a compared text fragment comes from."""

    CLAIM = "claim"
    ASSUMPTION = "assumption"


class ContradictionVerdict(StrEnum):
    """Oracle answer for one claim-pair comparison."""

    NO_CONFLICT = "no_conflict"
    SCOPE_MISMATCH = "scope_mismatch"
    ASSUMPTION_CONFLICT = "assumption_conflict"
    STRUCTURAL_CONFLICT = "structural_conflict"


class ConflictClass(StrEnum):
    VOCABULARY_CONFLICT = "vocabulary_conflict"
    SCOPE_MISMATCH = "scope_mismatch"
    ASSUMPTION_CONFLICT = "assumption_conflict"
    STRUCTURAL_CONFLICT = "structural_conflict"


RESOLVABLE_CONFLICT_CLASSES: frozenset[ConflictClass] = frozenset(
    {ConflictClass.SCOPE_MISMATCH, ConflictClass.ASSUMPTION_CONFLICT}
)


class ResolutionMechanism(StrEnum):
    SCOPE_CLARIFICATION = "scope_clarification"
    ASSUMPTION_SURFACING = "assumption_surfacing"
    VOCABULARY_RESOLUTION = "vocabulary_resolution"


RESOLUTION_ORDER: tuple[ResolutionMechanism, ...] = (
    ResolutionMechanism.SCOPE_CLARIFICATION,
    ResolutionMechanism.ASSUMPTION_SURFACING,
    ResolutionMechanism.VOCABULARY_RESOLUTION,
)


class ResolutionStatus(StrEnum):
    """Where a conflict stands after the resolution phase."""

    RESOLVED = "resolved"
    RECLASSIFIED = "reclassified"
    FAILED = "failed"
    NOT_ATTEMPTED = "not_attempted"


class ExaminationStatus(StrEnum):
    EXAMINED = "examined"
    EXCLUDED = "excluded"
    INDETERMINATE = "indeterminate"


class Relationship(StrEnum):
    COMPATIBLE = "compatible"
    RECONCILED = "reconciled"
    CONFLICTED = "conflicted"
    INCOMMENSURABLE = "incommensurable"


class OverallRelationship(StrEnum):
    COMPATIBLE = "compatible"
    RECONCILED = "reconciled"
    CONFLICTED = "conflicted"
    INCOMMENSURABLE = "incommensurable"
    MIXED = "mixed"


class DangerRanking(StrEnum):
    """Policy used to pick the most dangerous unresolved conflict."""

    PAIR_COUNT = "pair_count"
    CLAIM_REACH = "claim_reach"
