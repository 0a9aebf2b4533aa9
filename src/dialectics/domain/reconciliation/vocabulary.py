"""Vocabulary alignment stage.

Responsibilities of this stage:
- find terms used by statements of more than one run
- ask the oracle to classify each as synonym, homonym or neologism
- record homonyms that scope cannot disambiguate as blockers
- expose an alignment table used to rewrite statements for comparison

A blocker never halts the invocation: statements using a blocked term are
excluded from conflict detection, everything else proceeds normally. The
whole table is finalized before conflict detection starts.
"""

from __future__ import annotations

import asyncio
import re
import unicodedata
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Protocol, assert_never

from dialectics.domain.model import (
    CbpBlocker,
    HomonymTerm,
    IndeterminateTerm,
    NeologismTerm,
    ProtocolKind,
    SynonymTerm,
    TermUsage,
    UpstreamAction,
    blocker_for,
)
from dialectics.domain.ports import (
    HomonymJudgment,
    NeologismJudgment,
    SynonymJudgment,
    TermQuestion,
)

from .oracle import Indeterminate

if TYPE_CHECKING:
    from dialectics.domain.model import VocabularyTerm
    from dialectics.domain.ports import TermJudgment

    from .oracle import OracleSession
    from .registry import RunRegistry

log = getLogger(__name__)

DEFAULT_MIN_TERM_LENGTH = 4

STOPWORDS: frozenset[str] = frozenset(
    {
        "about", "above", "after", "again", "against", "also", "been", "before",
        "being", "below", "between", "both", "cannot", "could", "does", "doing",
        "down", "during", "each", "either", "every", "from", "further", "have",
        "having", "here", "into", "itself", "just", "more", "most", "must", "neither",
        "only", "other", "ought", "over", "same", "shall", "should", "some", "such",
        "than", "that", "their", "them", "themselves", "then", "there", "these",
        "they", "this", "those", "through", "under", "until", "upon", "very", "were",
        "what", "when", "where", "which", "while", "whom", "whose", "will", "with",
        "within", "without", "would", "your",
    }
)  # fmt: skip


def normalize_text(value: str) -> str:
    """Casefold, strip punctuation and collapse whitespace."""

    text = unicodedata.normalize("NFKC", value)
    text = text.casefold()
    text = "".join(ch for ch in text if not unicodedata.category(ch).startswith("P"))
    return " ".join(text.split())


def extract_terms(
    text: str,
    *,
    min_length: int = DEFAULT_MIN_TERM_LENGTH,
    stopwords: frozenset[str] = STOPWORDS,
) -> tuple[str, ...]:
    """Return the distinct candidate terms of ``text`` in first-seen order."""

    seen: dict[str, None] = {}
    for token in normalize_text(text).split():
        if len(token) < min_length or token in stopwords or token.isdigit():
            continue
        seen.setdefault(token, None)
    return tuple(seen)


def phrase_pattern(phrases: tuple[str, ...]) -> re.Pattern[str]:
    """Match any of ``phrases`` as whole words, longest first."""

    alternatives = sorted(set(phrases), key=lambda phrase: (-len(phrase), phrase))
    joined = "|".join(re.escape(phrase) for phrase in alternatives)
    return re.compile(rf"(?<!\S)(?:{joined})(?!\S)")


def uses_phrase(normalized_text: str, phrase: str) -> bool:
    return phrase_pattern((phrase,)).search(normalized_text) is not None


@dataclass(frozen=True, slots=True)
class _Rewriter:
    pattern: re.Pattern[str]
    replacements: dict[str, str]

    def __call__(self, normalized: str) -> str:
        return self.pattern.sub(lambda match: self.replacements[match.group(0)], normalized)


@dataclass(frozen=True, slots=True)
class AlignmentTable:
    """Finalized vocabulary alignment for one invocation, ordered by term.

    Compiled patterns belong to the table and are discarded with it.
    """

    terms: tuple[VocabularyTerm, ...] = ()
    _blockers: dict[str, CbpBlocker] = field(init=False, repr=False, compare=False)
    _blocker_patterns: dict[str, re.Pattern[str]] = field(
        init=False, repr=False, compare=False
    )
    _rewriters: dict[str, _Rewriter | None] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        blockers: dict[str, CbpBlocker] = {}
        for term in self.terms:
            blocker = blocker_for(term)
            if blocker is not None:
                blockers[term.term] = blocker
        object.__setattr__(self, "_blockers", blockers)
        object.__setattr__(
            self,
            "_blocker_patterns",
            {term: phrase_pattern((term,)) for term in sorted(blockers)},
        )
        object.__setattr__(self, "_rewriters", {})

    @property
    def blockers(self) -> tuple[CbpBlocker, ...]:
        return tuple(self._blockers.values())

    @property
    def blocked_terms(self) -> frozenset[str]:
        return frozenset(self._blockers)

    def term_for(self, term: str) -> VocabularyTerm | None:
        for candidate in self.terms:
            if candidate.term == term:
                return candidate
        return None

    def blocker_for(self, term: str) -> CbpBlocker | None:
        return self._blockers.get(term)

    def blocked_terms_in(self, text: str) -> tuple[str, ...]:
        """Blocked terms used by ``text`` (original or normalized), sorted."""

        normalized = normalize_text(text)
        return tuple(
            term
            for term, pattern in self._blocker_patterns.items()
            if pattern.search(normalized) is not None
        )

    def rewrite(self, run_id: str, text: str) -> str:
        """Normalize ``text`` as written by ``run_id`` for comparison purposes.

        Synonym variants become their canonical term; a scope-resolvable
        homonym is qualified with the meaning ``run_id`` gives it. All
        replacements happen in one pass, so they never chain.
        """

        normalized = normalize_text(text)
        rewriter = self._rewriter_for(run_id)
        if rewriter is None or not normalized:
            return normalized
        return rewriter(normalized)

    def _rewriter_for(self, run_id: str) -> _Rewriter | None:
        if run_id not in self._rewriters:
            replacements = self._replacements_for(run_id)
            self._rewriters[run_id] = (
                _Rewriter(phrase_pattern(tuple(replacements)), replacements)
                if replacements
                else None
            )
        return self._rewriters[run_id]

    def _replacements_for(self, run_id: str) -> dict[str, str]:
        replacements: dict[str, str] = {}
        for term in self.terms:
            match term:
                case SynonymTerm():
                    for variant in (term.term, *term.variants):
                        if variant and variant != term.canonical:
                            replacements.setdefault(variant, term.canonical)
                case HomonymTerm(scope_resolvable=True):
                    meaning = term.meaning_for(run_id)
                    if meaning:
                        replacements.setdefault(term.term, f"{term.term} ({meaning})")
                case HomonymTerm() | NeologismTerm() | IndeterminateTerm():
                    pass
                case _:
                    assert_never(term)
        return replacements


class AlignVocabulary(Protocol):
    async def __call__(self, registry: RunRegistry, *, oracle: OracleSession) -> AlignmentTable: ...


@dataclass(slots=True, kw_only=True)
class VocabularyAligner:
    """Default vocabulary alignment stage."""

    min_term_length: int = DEFAULT_MIN_TERM_LENGTH
    stopwords: frozenset[str] = STOPWORDS

    async def __call__(self, registry: RunRegistry, *, oracle: OracleSession) -> AlignmentTable:
        usages_by_term = self.shared_terms(registry)
        questions = [
            TermQuestion(term=term, usages=usages) for term, usages in usages_by_term.items()
        ]
        judgments = await asyncio.gather(
            *(oracle.classify_term(question) for question in questions)
        )
        terms = tuple(
            _term_from_judgment(question, judgment)
            for question, judgment in zip(questions, judgments, strict=True)
        )
        table = AlignmentTable(terms=terms)
        log.info(
            "Aligned %d shared terms, %d blocked: %s",
            len(terms),
            len(table.blockers),
            ", ".join(sorted(table.blocked_terms)) or "none",
        )
        return table

    def shared_terms(self, registry: RunRegistry) -> dict[str, tuple[TermUsage, ...]]:
        """Terms appearing in statements of at least two runs, sorted by term."""

        statements_by_term: dict[str, dict[str, list[str]]] = {}
        for run in registry.runs:
            for _kind, _index, text in run.statements():
                terms = extract_terms(
                    text, min_length=self.min_term_length, stopwords=self.stopwords
                )
                for term in terms:
                    by_run = statements_by_term.setdefault(term, {})
                    by_run.setdefault(run.id, []).append(text)

        shared: dict[str, tuple[TermUsage, ...]] = {}
        for term in sorted(statements_by_term):
            by_run = statements_by_term[term]
            if len(by_run) < 2:  # noqa: PLR2004
                continue
            shared[term] = tuple(
                TermUsage(
                    run_id=run.id,
                    scope=run.scope,
                    statements=tuple(by_run[run.id]),
                )
                for run in registry.runs
                if run.id in by_run
            )
        return shared


def _term_from_judgment(
    question: TermQuestion,
    judgment: TermJudgment | Indeterminate,
) -> VocabularyTerm:
    term = question.term
    run_ids = tuple(usage.run_id for usage in question.usages)
    match judgment:
        case Indeterminate():
            return IndeterminateTerm(
                term=term,
                justification=judgment.justification,
                blocker=CbpBlocker(
                    term=term,
                    run_ids=run_ids,
                    upstream_action=UpstreamAction(
                        protocol=ProtocolKind.RECONCILIATION,
                        input=(
                            f"re-run reconciliation once the judgment oracle can "
                            f"classify '{term}'"
                        ),
                    ),
                ),
            )
        case SynonymJudgment():
            canonical = normalize_text(judgment.canonical) or term
            variants = tuple(
                dict.fromkeys(
                    variant
                    for variant in (normalize_text(value) for value in judgment.variants)
                    if variant and variant != canonical
                )
            )
            return SynonymTerm(term=term, canonical=canonical, variants=variants)
        case HomonymJudgment(scope_resolvable=True):
            return HomonymTerm(term=term, meanings=judgment.meanings, scope_resolvable=True)
        case HomonymJudgment():
            log.warning("Term %r is a homonym scope cannot resolve; blocking it", term)
            return HomonymTerm(
                term=term,
                meanings=judgment.meanings,
                scope_resolvable=False,
                blocker=CbpBlocker(
                    term=term,
                    run_ids=run_ids,
                    upstream_action=UpstreamAction(
                        protocol=ProtocolKind.CONCEPT_BOUNDARY,
                        input=f"disambiguate '{term}' across runs {', '.join(run_ids)}",
                    ),
                ),
            )
        case NeologismJudgment():
            return NeologismTerm(
                term=term,
                introduced_by=judgment.introduced_by,
                definition=judgment.definition,
            )
        case _:
            assert_never(judgment)
