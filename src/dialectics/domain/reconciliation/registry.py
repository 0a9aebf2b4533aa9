"""Run registry: validate the input run set and fix its order.

The registry order (runs sorted by ``id``) is load-bearing: every later
phase enumerates pairs ``(run_i, run_j)`` with ``i < j`` in this order, so
identical input always yields identical ids, logs and records.
"""

from __future__ import annotations

from dataclasses import dataclass
from itertools import combinations
from logging import getLogger
from typing import TYPE_CHECKING, Protocol

from dialectics.domain.model import ProtocolKind, Run, ValidationError

if TYPE_CHECKING:
    from collections.abc import Iterable

log = getLogger(__name__)

MIN_RUNS = 2


@dataclass(frozen=True, slots=True)
class RunRegistry:
    """Validated runs in registry order."""

    runs: tuple[Run, ...]

    @property
    def ids(self) -> tuple[str, ...]:
        return tuple(run.id for run in self.runs)

    def pairs(self) -> tuple[tuple[Run, Run], ...]:
        """Every unordered pair of distinct runs, ``i < j`` in registry order."""

        return tuple(combinations(self.runs, 2))

    def run_for(self, run_id: str) -> Run:
        for run in self.runs:
            if run.id == run_id:
                return run
        raise KeyError(run_id)


class RegisterRuns(Protocol):
    def __call__(self, runs: Iterable[Run]) -> RunRegistry: ...


def register_runs(runs: Iterable[Run]) -> RunRegistry:
    """Validate ``runs`` and return them in deterministic order.

    Raises ``ValidationError`` listing every problem found.
    """

    candidates = tuple(runs)
    if len(candidates) < MIN_RUNS:
        raise ValidationError(
            f"Reconciliation needs at least {MIN_RUNS} runs, got {len(candidates)}"
        )

    problems: list[str] = []
    seen: set[str] = set()
    for position, run in enumerate(candidates):
        problems.extend(_run_problems(run, position=position))
        if run.id in seen:
            problems.append(f"duplicate run id {run.id!r}")
        seen.add(run.id)

    if problems:
        raise ValidationError("Invalid run set: " + "; ".join(problems))

    registry = RunRegistry(runs=tuple(sorted(candidates, key=lambda run: run.id)))
    log.info(
        "Registered %d runs (%d pairs): %s",
        len(registry.runs),
        len(registry.pairs()),
        ", ".join(registry.ids),
    )
    return registry


def _run_problems(run: Run, *, position: int) -> list[str]:
    label = f"run #{position}" if not _present(run.id) else f"run {run.id!r}"
    problems: list[str] = []
    if not _present(run.id):
        problems.append(f"{label} has no id")
    if not isinstance(run.protocol_kind, ProtocolKind):
        problems.append(f"{label} has unknown protocol_kind {run.protocol_kind!r}")
    for field_name in ("version", "outcome"):
        if not isinstance(getattr(run, field_name), str):
            problems.append(f"{label} is missing {field_name}")
    if not _present(run.scope):
        problems.append(f"{label} has an empty scope")
    if not run.primary_claims:
        problems.append(f"{label} has no primary claims")
    for field_name in ("primary_claims", "external_assumptions", "acknowledged_limitations"):
        for index, text in enumerate(getattr(run, field_name) or ()):
            if not _present(text):
                problems.append(f"{label} has a blank entry in {field_name}[{index}]")
    return problems


def _present(value: object) -> bool:
    return isinstance(value, str) and bool(value.strip())
