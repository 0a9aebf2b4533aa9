"""Translate between oracle port objects and oracle payloads."""

from __future__ import annotations

from typing import TYPE_CHECKING, assert_never

from dialectics.domain.model import HomonymMeaning, UpstreamAction
from dialectics.domain.ports import (
    CommensurabilityJudgment,
    ContradictionJudgment,
    HomonymJudgment,
    IndependenceJudgment,
    NeologismJudgment,
    ResolutionJudgment,
    SynonymJudgment,
)

from .schema import (
    CommensurabilityRequest,
    ConflictModel,
    ContradictionRequest,
    HomonymAnswer,
    IndependenceRequest,
    NeologismAnswer,
    ResolutionRequest,
    SupporterModel,
    SynonymAnswer,
    TermRequest,
    TermUsageModel,
)

if TYPE_CHECKING:
    from dialectics.domain.ports import (
        CommensurabilityQuestion,
        ContradictionQuestion,
        IndependenceQuestion,
        ResolutionQuestion,
        TermJudgment,
        TermQuestion,
    )

    from .schema import (
        CommensurabilityAnswer,
        ContradictionAnswer,
        IndependenceAnswer,
        ResolutionAnswer,
    )


def term_request(question: TermQuestion) -> TermRequest:
    return TermRequest(
        term=question.term,
        usages=[
            TermUsageModel(
                run_id=usage.run_id, scope=usage.scope, statements=list(usage.statements)
            )
            for usage in question.usages
        ],
    )


def contradiction_request(question: ContradictionQuestion) -> ContradictionRequest:
    return ContradictionRequest(
        run_a=question.run_a,
        run_b=question.run_b,
        claim_a=question.claim_a,
        claim_b=question.claim_b,
        scope_a=question.scope_a,
        scope_b=question.scope_b,
        target_kind=question.target_kind,
    )


def resolution_request(question: ResolutionQuestion) -> ResolutionRequest:
    conflict = question.conflict
    return ResolutionRequest(
        conflict=ConflictModel(
            id=conflict.id,
            conflict_class=conflict.conflict_class,
            run_a=conflict.run_a,
            run_b=conflict.run_b,
            claim_a=conflict.claim_a,
            claim_b=conflict.claim_b,
            argument=conflict.argument,
            target_kind=conflict.target_kind,
        ),
        scope_a=question.scope_a,
        scope_b=question.scope_b,
        mechanisms=list(question.mechanisms),
    )


def independence_request(question: IndependenceQuestion) -> IndependenceRequest:
    return IndependenceRequest(
        claim=question.claim,
        supporters=[
            SupporterModel(run_id=supporter.run_id, scope=supporter.scope, source=supporter.source)
            for supporter in question.supporters
        ],
    )


def commensurability_request(question: CommensurabilityQuestion) -> CommensurabilityRequest:
    return CommensurabilityRequest(
        run_a=question.run_a,
        run_b=question.run_b,
        scope_a=question.scope_a,
        scope_b=question.scope_b,
        outcome_a=question.outcome_a,
        outcome_b=question.outcome_b,
    )


def parse_term_answer(answer: SynonymAnswer | HomonymAnswer | NeologismAnswer) -> TermJudgment:
    match answer:
        case SynonymAnswer():
            return SynonymJudgment(canonical=answer.canonical, variants=tuple(answer.variants))
        case HomonymAnswer():
            return HomonymJudgment(
                meanings=tuple(
                    HomonymMeaning(
                        run_id=meaning.run_id, meaning=meaning.meaning, scope=meaning.scope
                    )
                    for meaning in answer.meanings
                ),
                scope_resolvable=answer.scope_resolvable,
            )
        case NeologismAnswer():
            return NeologismJudgment(
                introduced_by=answer.introduced_by, definition=answer.definition
            )
        case _:
            assert_never(answer)


def parse_contradiction_answer(answer: ContradictionAnswer) -> ContradictionJudgment:
    action = answer.upstream_action
    return ContradictionJudgment(
        verdict=answer.verdict,
        argument=answer.argument,
        upstream_action=UpstreamAction(protocol=action.protocol, input=action.input)
        if action is not None
        else None,
    )


def parse_resolution_answer(answer: ResolutionAnswer) -> ResolutionJudgment:
    return ResolutionJudgment(
        mechanism=answer.mechanism,
        succeeded=answer.succeeded,
        explanation=answer.explanation,
        surfaced_assumption=answer.surfaced_assumption,
        assumption_held=answer.assumption_held,
    )


def parse_independence_answer(answer: IndependenceAnswer) -> IndependenceJudgment:
    return IndependenceJudgment(independent=answer.independent, shared_source=answer.shared_source)


def parse_commensurability_answer(answer: CommensurabilityAnswer) -> CommensurabilityJudgment:
    return CommensurabilityJudgment(commensurable=answer.commensurable, argument=answer.argument)
