"""Judgment oracle answering from a fixed answers file.

Useful for replaying a reviewed set of judgments and for offline runs. Claim
texts in rules are compared after text normalization, in either order;
contradiction rules see claims as rewritten by vocabulary alignment.
Questions without a matching rule get the conservative default:

- terms: a synonym of itself
- contradictions: ``no_conflict``
- resolutions: failed
- independence: independent unless every supporter declares the same source
- commensurability: commensurable

A rule with ``"unavailable": true`` makes the oracle raise ``OracleError``
for the questions it matches.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

import pydantic
from pydantic import Field

from dialectics.domain.model import (
    ContradictionVerdict,
    OracleError,
    ResolutionMechanism,
    ValidationError,
)
from dialectics.domain.ports import (
    CommensurabilityJudgment,
    ContradictionJudgment,
    IndependenceJudgment,
    ResolutionJudgment,
    SynonymJudgment,
)
from dialectics.domain.reconciliation.vocabulary import normalize_text

from .schema import (
    CommensurabilityAnswer,
    ContradictionAnswer,
    IndependenceAnswer,
    OracleBaseModel,
    ResolutionAnswer,
    TermAnswer,
)
from .translator import (
    parse_commensurability_answer,
    parse_contradiction_answer,
    parse_independence_answer,
    parse_resolution_answer,
    parse_term_answer,
)

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

    from dialectics.domain.ports import (
        CommensurabilityQuestion,
        ContradictionQuestion,
        IndependenceQuestion,
        OracleQuestion,
        ResolutionQuestion,
        TermJudgment,
        TermQuestion,
    )

log = getLogger(__name__)


class ContradictionRule(ContradictionAnswer):
    claim_a: str
    claim_b: str
    runs: list[str] | None = None
    verdict: ContradictionVerdict = ContradictionVerdict.NO_CONFLICT
    unavailable: bool = False


class ResolutionRule(ResolutionAnswer):
    claim_a: str
    claim_b: str
    mechanism: ResolutionMechanism = ResolutionMechanism.SCOPE_CLARIFICATION
    succeeded: bool = True
    unavailable: bool = False


class IndependenceRule(IndependenceAnswer):
    claim: str
    independent: bool = True
    unavailable: bool = False


class CommensurabilityRule(CommensurabilityAnswer):
    runs: list[str] = Field(min_length=2, max_length=2)
    commensurable: bool = False
    unavailable: bool = False


class AnswerBook(OracleBaseModel):
    terms: dict[str, TermAnswer] = Field(default_factory=dict)
    unavailable_terms: list[str] = Field(default_factory=list)
    contradictions: list[ContradictionRule] = Field(default_factory=list)
    resolutions: list[ResolutionRule] = Field(default_factory=list)
    independence: list[IndependenceRule] = Field(default_factory=list)
    commensurability: list[CommensurabilityRule] = Field(default_factory=list)


@dataclass(slots=True)
class ScriptedJudgmentOracle:
    book: AnswerBook = field(default_factory=AnswerBook)
    asked: list[OracleQuestion] = field(default_factory=list)

    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> ScriptedJudgmentOracle:
        try:
            return cls(book=AnswerBook.model_validate(data))
        except pydantic.ValidationError as exc:
            raise ValidationError(f"Invalid oracle answers: {exc}") from exc

    @classmethod
    def from_file(cls, path: Path) -> ScriptedJudgmentOracle:
        try:
            book = AnswerBook.model_validate_json(path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise ValidationError(f"Cannot read oracle answers {path}: {exc}") from exc
        except pydantic.ValidationError as exc:
            raise ValidationError(f"Invalid oracle answers in {path}: {exc}") from exc
        log.info("Loaded scripted oracle answers from %s", path)
        return cls(book=book)

    async def classify_term(self, question: TermQuestion) -> TermJudgment:
        self.asked.append(question)
        term = normalize_text(question.term)
        if term in {normalize_text(value) for value in self.book.unavailable_terms}:
            raise OracleError(f"No judgment available for term {question.term!r}")
        for key, answer in self.book.terms.items():
            if normalize_text(key) == term:
                return parse_term_answer(answer)
        return SynonymJudgment(canonical=question.term)

    async def check_contradiction(self, question: ContradictionQuestion) -> ContradictionJudgment:
        self.asked.append(question)
        for rule in self.book.contradictions:
            if not _claims_match(rule.claim_a, rule.claim_b, question.claim_a, question.claim_b):
                continue
            if rule.runs is not None and set(rule.runs) != {question.run_a, question.run_b}:
                continue
            if rule.unavailable:
                raise OracleError("No contradiction judgment available")
            return parse_contradiction_answer(rule)
        return ContradictionJudgment(verdict=ContradictionVerdict.NO_CONFLICT)

    async def attempt_resolution(self, question: ResolutionQuestion) -> ResolutionJudgment:
        self.asked.append(question)
        conflict = question.conflict
        for rule in self.book.resolutions:
            if not _claims_match(rule.claim_a, rule.claim_b, conflict.claim_a, conflict.claim_b):
                continue
            if rule.unavailable:
                raise OracleError(f"No resolution judgment available for {conflict.id}")
            return parse_resolution_answer(rule)
        return ResolutionJudgment(
            mechanism=question.mechanisms[-1],
            succeeded=False,
            explanation="no scripted resolution",
        )

    async def assess_independence(self, question: IndependenceQuestion) -> IndependenceJudgment:
        self.asked.append(question)
        claim = normalize_text(question.claim)
        for rule in self.book.independence:
            if normalize_text(rule.claim) != claim:
                continue
            if rule.unavailable:
                raise OracleError("No independence judgment available")
            return parse_independence_answer(rule)
        sources = {supporter.source for supporter in question.supporters}
        if len(sources) == 1 and None not in sources:
            return IndependenceJudgment(independent=False, shared_source=sources.pop())
        return IndependenceJudgment(independent=True)

    async def assess_commensurability(
        self, question: CommensurabilityQuestion
    ) -> CommensurabilityJudgment:
        self.asked.append(question)
        for rule in self.book.commensurability:
            if set(rule.runs) != {question.run_a, question.run_b}:
                continue
            if rule.unavailable:
                raise OracleError("No commensurability judgment available")
            return parse_commensurability_answer(rule)
        return CommensurabilityJudgment(commensurable=True)


def _claims_match(rule_a: str, rule_b: str, claim_a: str, claim_b: str) -> bool:
    wanted = {normalize_text(rule_a), normalize_text(rule_b)}
    return wanted == {normalize_text(claim_a), normalize_text(claim_b)}
