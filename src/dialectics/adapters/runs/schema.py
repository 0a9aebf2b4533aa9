"""Pydantic models describing run files handed over by upstream protocols."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class RunsBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class RunPayload(RunsBaseModel):
    id: str
    protocol_kind: str = Field(alias="protocolKind")
    version: str
    outcome: str
    scope: str
    primary_claims: list[str] = Field(alias="primaryClaims")
    external_assumptions: list[str] = Field(default_factory=list, alias="externalAssumptions")
    acknowledged_limitations: list[str] = Field(
        default_factory=list, alias="acknowledgedLimitations"
    )
    source: str | None = None

    _normalize_source = field_validator("source", mode="before")(_blank_to_none)


class RunBundlePayload(RunsBaseModel):
    runs: list[RunPayload]
