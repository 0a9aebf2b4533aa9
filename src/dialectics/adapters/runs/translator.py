"""Translate run payloads into domain runs."""

from __future__ import annotations

from typing import TYPE_CHECKING

from dialectics.domain.model import ProtocolKind, Run, ValidationError

if TYPE_CHECKING:
    from .schema import RunPayload


def parse_run(payload: RunPayload) -> Run:
    try:
        protocol_kind = ProtocolKind(payload.protocol_kind.strip().lower())
    except ValueError as exc:
        choices = ", ".join(ProtocolKind)
        raise ValidationError(
            f"Run {payload.id!r} has unknown protocol_kind {payload.protocol_kind!r} "
            f"(expected one of {choices})"
        ) from exc

    return Run(
        id=payload.id.strip(),
        protocol_kind=protocol_kind,
        version=payload.version,
        outcome=payload.outcome,
        scope=payload.scope,
        primary_claims=tuple(payload.primary_claims),
        external_assumptions=tuple(payload.external_assumptions),
        acknowledged_limitations=tuple(payload.acknowledged_limitations),
        source=payload.source,
    )
