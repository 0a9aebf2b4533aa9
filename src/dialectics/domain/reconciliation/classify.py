"""Outcome classification: one overall verdict from the pair matrix."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Protocol

from dialectics.domain.model import InvariantViolation, OverallRelationship

if TYPE_CHECKING:
    from collections.abc import Sequence

    from dialectics.domain.model import RunPairRelationship

log = getLogger(__name__)


class ClassifyOutcome(Protocol):
    def __call__(self, pairs: Sequence[RunPairRelationship]) -> OverallRelationship: ...


def classify_outcome(pairs: Sequence[RunPairRelationship]) -> OverallRelationship:
    """The single relationship shared by every pair, otherwise ``mixed``."""

    relationships = {pair.relationship for pair in pairs}
    if not relationships:
        raise InvariantViolation("Cannot classify an empty pair matrix")
    if len(relationships) == 1:
        overall = OverallRelationship(relationships.pop())
    else:
        overall = OverallRelationship.MIXED
    log.info(
        "Overall relationship: %s (%s)",
        overall,
        ", ".join(sorted(pair.relationship for pair in pairs)),
    )
    return overall
