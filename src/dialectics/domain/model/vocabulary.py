"""Vocabulary alignment results, one tagged variant per term kind."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal, assert_never

from .enums import TermKind
from .errors import InvariantViolation

if TYPE_CHECKING:
    from .conflict import UpstreamAction


@dataclass(frozen=True, slots=True, kw_only=True)
class TermUsage:
    """How one run uses a shared term: the statements containing it, under its scope."""

    run_id: str
    scope: str
    statements: tuple[str, ...]


@dataclass(frozen=True, slots=True, kw_only=True)
class HomonymMeaning:
    run_id: str
    meaning: str
    scope: str


@dataclass(frozen=True, slots=True, kw_only=True)
class CbpBlocker:
    """A term whose meaning cannot be settled inside this engine.

    Every statement using the term is excluded from conflict detection; the
    upstream action names the disambiguation step that would unblock it.
    """

    term: str
    run_ids: tuple[str, ...]
    upstream_action: UpstreamAction


@dataclass(frozen=True, slots=True, kw_only=True)
class SynonymTerm:
    """Different surface forms that mean the same thing across runs."""

    term: str
    canonical: str
    variants: tuple[str, ...] = ()
    kind: Literal[TermKind.SYNONYM] = TermKind.SYNONYM


@dataclass(frozen=True, slots=True, kw_only=True)
class HomonymTerm:
    """One surface form carrying different meanings in different runs."""

    term: str
    meanings: tuple[HomonymMeaning, ...]
    scope_resolvable: bool
    blocker: CbpBlocker | None = None
    kind: Literal[TermKind.HOMONYM] = TermKind.HOMONYM

    def __post_init__(self) -> None:
        if not self.scope_resolvable and self.blocker is None:
            raise InvariantViolation(
                f"Homonym {self.term!r} is not scope-resolvable but carries no blocker"
            )

    def meaning_for(self, run_id: str) -> str | None:
        for meaning in self.meanings:
            if meaning.run_id == run_id:
                return meaning.meaning
        return None


@dataclass(frozen=True, slots=True, kw_only=True)
class NeologismTerm:
    """A term coined by one run and reused by others."""

    term: str
    introduced_by: str
    definition: str
    kind: Literal[TermKind.NEOLOGISM] = TermKind.NEOLOGISM


@dataclass(frozen=True, slots=True, kw_only=True)
class IndeterminateTerm:
    """The oracle could not classify the term; handled like a blocked term."""

    term: str
    justification: str
    blocker: CbpBlocker
    kind: Literal[TermKind.INDETERMINATE] = TermKind.INDETERMINATE


type VocabularyTerm = SynonymTerm | HomonymTerm | NeologismTerm | IndeterminateTerm


def blocker_for(term: VocabularyTerm) -> CbpBlocker | None:
    """Return the blocker a term imposes on conflict detection, if any."""

    match term:
        case HomonymTerm():
            return term.blocker
        case IndeterminateTerm():
            return term.blocker
        case SynonymTerm() | NeologismTerm():
            return None
        case _:
            assert_never(term)
