"""Run records handed to the reconciliation engine by upstream protocols."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .enums import ClaimKind

if TYPE_CHECKING:
    from .enums import ProtocolKind


@dataclass(frozen=True, slots=True, kw_only=True)
class Run:
    """One externally produced analysis output.

    Runs are never mutated by the engine. Field presence is checked by the
    run registry rather than here so that a malformed run surfaces as a
    ``ValidationError`` before any phase starts.
    """

    id: str
    protocol_kind: ProtocolKind
    version: str
    outcome: str
    scope: str
    primary_claims: tuple[str, ...]
    external_assumptions: tuple[str, ...] = ()
    acknowledged_limitations: tuple[str, ...] = ()
    source: str | None = None

    def statements(self) -> tuple[tuple[ClaimKind, int, str], ...]:
        """Return primary claims and external assumptions with their position."""

        claims = tuple(
            (ClaimKind.CLAIM, index, text) for index, text in enumerate(self.primary_claims)
        )
        assumptions = tuple(
            (ClaimKind.ASSUMPTION, index, text)
            for index, text in enumerate(self.external_assumptions)
        )
        return claims + assumptions

    def statement(self, kind: ClaimKind, index: int) -> str:
        if kind is ClaimKind.CLAIM:
            return self.primary_claims[index]
        return self.external_assumptions[index]
