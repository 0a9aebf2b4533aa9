"""Final summary artifact consumed by downstream processes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from .errors import InvariantViolation

if TYPE_CHECKING:
    from .enums import OverallRelationship

NOTHING: Final[str] = "nothing"


@dataclass(frozen=True, slots=True, kw_only=True)
class Record:
    """Immutable outcome of one engine invocation.

    A record is never revised; reconciling updated runs means a fresh
    invocation and a fresh record.
    """

    input_runs: tuple[str, ...]
    overall_relationship: OverallRelationship
    total_conflicts: int
    resolved_conflicts: int
    unresolved_conflicts: int
    jointly_supported_claims: int
    summary: str
    safe_to_build: str
    blocked_until: str

    def __post_init__(self) -> None:
        if self.total_conflicts != self.resolved_conflicts + self.unresolved_conflicts:
            raise InvariantViolation(
                "Record conflict counts do not add up: "
                f"{self.total_conflicts} != {self.resolved_conflicts} + "
                f"{self.unresolved_conflicts}"
            )
