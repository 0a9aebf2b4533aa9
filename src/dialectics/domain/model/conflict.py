"""Conflicts between runs and the single resolution attempt each may receive."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .enums import (
    RESOLVABLE_CONFLICT_CLASSES,
    ClaimKind,
    ConflictClass,
    ResolutionMechanism,
    ResolutionStatus,
)
from .errors import InvariantViolation

if TYPE_CHECKING:
    from .enums import ProtocolKind


@dataclass(frozen=True, slots=True, kw_only=True)
class UpstreamAction:
    """Which upstream protocol to re-run, and with what input."""

    protocol: ProtocolKind
    input: str

    def describe(self) -> str:
        return f"re-run {self.protocol}: {self.input}"


@dataclass(frozen=True, slots=True, kw_only=True)
class Conflict:
    """A detected contradiction between a claim of ``run_a`` and a statement of ``run_b``.

    ``claim_b`` is a primary claim or an external assumption of ``run_b``;
    ``target_kind`` records which.
    """

    id: str
    conflict_class: ConflictClass
    run_a: str
    run_b: str
    claim_a: str
    claim_b: str
    argument: str
    resolvable_within_rcp: bool
    upstream_action: UpstreamAction | None = None
    target_kind: ClaimKind = ClaimKind.CLAIM
    justification: str | None = None

    def __post_init__(self) -> None:
        if self.resolvable_within_rcp and self.conflict_class not in RESOLVABLE_CONFLICT_CLASSES:
            raise InvariantViolation(
                f"Conflict {self.id} of class {self.conflict_class} cannot be resolvable"
            )
        if not self.resolvable_within_rcp and self.upstream_action is None:
            raise InvariantViolation(
                f"Conflict {self.id} is not resolvable but has no upstream action"
            )

    @property
    def pair(self) -> tuple[str, str]:
        return self.run_a, self.run_b


@dataclass(frozen=True, slots=True, kw_only=True)
class ResolutionAttempt:
    """Outcome of the one resolution attempt made for a resolvable conflict.

    ``mechanism`` is ``None`` only when the oracle could not be consulted.
    ``assumption_held`` is set for ``assumption_surfacing``: when the surfaced
    assumption does not hold the attempt still counts as succeeded, but the
    conflict is reclassified as structural.
    """

    conflict_id: str
    mechanism: ResolutionMechanism | None
    succeeded: bool
    explanation: str
    surfaced_assumption: str | None = None
    assumption_held: bool | None = None
    justification: str | None = None

    def __post_init__(self) -> None:
        if self.succeeded and self.mechanism is None:
            raise InvariantViolation(
                f"Successful attempt for {self.conflict_id} must name a mechanism"
            )
        surfacing = self.mechanism is ResolutionMechanism.ASSUMPTION_SURFACING
        if self.assumption_held is not None and not surfacing:
            raise InvariantViolation(
                f"Attempt for {self.conflict_id} reports an assumption without surfacing one"
            )

    @property
    def status(self) -> ResolutionStatus:
        if not self.succeeded:
            return ResolutionStatus.FAILED
        if self.assumption_held is False:
            return ResolutionStatus.RECLASSIFIED
        return ResolutionStatus.RESOLVED
