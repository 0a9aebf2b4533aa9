"""Per-invocation gateway to the judgment oracle.

Responsibilities:
- bound the number of concurrent oracle calls
- apply the per-call timeout (the call is cancelled when it expires)
- ask every distinct question at most once; repeated questions share the
  first answer
- turn timeouts and ``OracleError`` into ``Indeterminate`` markers so a
  single failed call never aborts the invocation

There is no retry: a failed question stays indeterminate for the rest of
the invocation.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from dialectics.domain.model import ORACLE_UNAVAILABLE, OracleError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from dialectics.domain.ports import (
        CommensurabilityJudgment,
        CommensurabilityQuestion,
        ContradictionJudgment,
        ContradictionQuestion,
        IndependenceJudgment,
        IndependenceQuestion,
        JudgmentOracle,
        OracleQuestion,
        ResolutionJudgment,
        ResolutionQuestion,
        TermJudgment,
        TermQuestion,
    )

log = getLogger(__name__)


@dataclass(frozen=True, slots=True, kw_only=True)
class Indeterminate:
    """Marker returned in place of an answer the oracle could not give."""

    justification: str = ORACLE_UNAVAILABLE
    detail: str = ""


class OracleSession:
    def __init__(
        self,
        oracle: JudgmentOracle,
        *,
        timeout_seconds: float | None = None,
        max_concurrency: int = 8,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self._oracle = oracle
        self._timeout_seconds = timeout_seconds
        self._semaphore = asyncio.Semaphore(max_concurrency)
        self._answers: dict[OracleQuestion, asyncio.Task[object]] = {}
        self._indeterminate = 0

    @property
    def questions_asked(self) -> int:
        return len(self._answers)

    @property
    def indeterminate_answers(self) -> int:
        return self._indeterminate

    async def classify_term(self, question: TermQuestion) -> TermJudgment | Indeterminate:
        return await self._ask(question, self._oracle.classify_term)

    async def check_contradiction(
        self, question: ContradictionQuestion
    ) -> ContradictionJudgment | Indeterminate:
        return await self._ask(question, self._oracle.check_contradiction)

    async def attempt_resolution(
        self, question: ResolutionQuestion
    ) -> ResolutionJudgment | Indeterminate:
        return await self._ask(question, self._oracle.attempt_resolution)

    async def assess_independence(
        self, question: IndependenceQuestion
    ) -> IndependenceJudgment | Indeterminate:
        return await self._ask(question, self._oracle.assess_independence)

    async def assess_commensurability(
        self, question: CommensurabilityQuestion
    ) -> CommensurabilityJudgment | Indeterminate:
        return await self._ask(question, self._oracle.assess_commensurability)

    async def _ask[Q: OracleQuestion, T](
        self,
        question: Q,
        call: Callable[[Q], Awaitable[T]],
    ) -> T | Indeterminate:
        task = self._answers.get(question)
        if task is None:
            task = asyncio.ensure_future(self._consult(question, call))
            self._answers[question] = task
        return await task  # pyright: ignore[reportReturnType]

    async def _consult[Q: OracleQuestion, T](
        self,
        question: Q,
        call: Callable[[Q], Awaitable[T]],
    ) -> T | Indeterminate:
        async with self._semaphore:
            try:
                return await asyncio.wait_for(call(question), timeout=self._timeout_seconds)
            except TimeoutError:
                detail = f"no answer within {self._timeout_seconds}s"
            except OracleError as exc:
                detail = str(exc) or type(exc).__name__
        self._indeterminate += 1
        log.warning(
            "Oracle unavailable for %s: %s",
            type(question).__name__,
            detail,
        )
        return Indeterminate(detail=detail)
