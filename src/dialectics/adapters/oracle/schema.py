"""Pydantic models describing judgment oracle payloads.

The same answer models are used for HTTP oracle responses and for the rules
of a scripted answers file.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from dialectics.domain.model import (
    ClaimKind,
    ConflictClass,
    ContradictionVerdict,
    ProtocolKind,
    ResolutionMechanism,
)


class OracleBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


# Requests


class TermUsageModel(OracleBaseModel):
    run_id: str
    scope: str
    statements: list[str]


class TermRequest(OracleBaseModel):
    term: str
    usages: list[TermUsageModel]


class ContradictionRequest(OracleBaseModel):
    run_a: str
    run_b: str
    claim_a: str
    claim_b: str
    scope_a: str
    scope_b: str
    target_kind: ClaimKind


class UpstreamActionModel(OracleBaseModel):
    protocol: ProtocolKind
    input: str


class ConflictModel(OracleBaseModel):
    id: str
    conflict_class: ConflictClass
    run_a: str
    run_b: str
    claim_a: str
    claim_b: str
    argument: str
    target_kind: ClaimKind


class ResolutionRequest(OracleBaseModel):
    conflict: ConflictModel
    scope_a: str
    scope_b: str
    mechanisms: list[ResolutionMechanism]


class SupporterModel(OracleBaseModel):
    run_id: str
    scope: str
    source: str | None = None


class IndependenceRequest(OracleBaseModel):
    claim: str
    supporters: list[SupporterModel]


class CommensurabilityRequest(OracleBaseModel):
    run_a: str
    run_b: str
    scope_a: str
    scope_b: str
    outcome_a: str
    outcome_b: str


# Answers


class SynonymAnswer(OracleBaseModel):
    kind: Literal["synonym"]
    canonical: str
    variants: list[str] = Field(default_factory=list)


class MeaningModel(OracleBaseModel):
    run_id: str
    meaning: str
    scope: str = ""


class HomonymAnswer(OracleBaseModel):
    kind: Literal["homonym"]
    meanings: list[MeaningModel] = Field(default_factory=list)
    scope_resolvable: bool


class NeologismAnswer(OracleBaseModel):
    kind: Literal["neologism"]
    introduced_by: str
    definition: str = ""


TermAnswer = Annotated[
    SynonymAnswer | HomonymAnswer | NeologismAnswer,
    Field(discriminator="kind"),
]

TERM_ANSWER: TypeAdapter[SynonymAnswer | HomonymAnswer | NeologismAnswer] = TypeAdapter(TermAnswer)


class ContradictionAnswer(OracleBaseModel):
    verdict: ContradictionVerdict
    argument: str = ""
    upstream_action: UpstreamActionModel | None = None


class ResolutionAnswer(OracleBaseModel):
    mechanism: ResolutionMechanism
    succeeded: bool
    explanation: str = ""
    surfaced_assumption: str | None = None
    assumption_held: bool | None = None


class IndependenceAnswer(OracleBaseModel):
    independent: bool
    shared_source: str | None = None


class CommensurabilityAnswer(OracleBaseModel):
    commensurable: bool
    argument: str = ""
