"""HTTP client for a remote judgment oracle.

Each port method is one ``POST`` with a JSON question; the response body is
the JSON answer. Transport failures, error statuses and malformed answers
all surface as ``OracleError``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
import pydantic

from dialectics.adapters.http_resilience import ResilientClient
from dialectics.config import get_oracle_config
from dialectics.domain.model import OracleError

from .schema import (
    TERM_ANSWER,
    CommensurabilityAnswer,
    ContradictionAnswer,
    IndependenceAnswer,
    OracleBaseModel,
    ResolutionAnswer,
)
from .translator import (
    commensurability_request,
    contradiction_request,
    independence_request,
    parse_commensurability_answer,
    parse_contradiction_answer,
    parse_independence_answer,
    parse_resolution_answer,
    parse_term_answer,
    resolution_request,
    term_request,
)

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from dialectics.config import OracleConfig, ResilienceConfig
    from dialectics.domain.ports import (
        CommensurabilityJudgment,
        CommensurabilityQuestion,
        ContradictionJudgment,
        ContradictionQuestion,
        IndependenceJudgment,
        IndependenceQuestion,
        ResolutionJudgment,
        ResolutionQuestion,
        TermJudgment,
        TermQuestion,
    )

log = getLogger(__name__)

TERMS_PATH = "terms/classify"
CONTRADICTIONS_PATH = "contradictions/check"
RESOLUTIONS_PATH = "resolutions/attempt"
INDEPENDENCE_PATH = "claims/independence"
COMMENSURABILITY_PATH = "pairs/commensurability"


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


@dataclass(slots=True)
class HttpJudgmentOracle:
    config: OracleConfig = field(default_factory=get_oracle_config)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )
    _client: ResilientClient | None = field(default=None, init=False, repr=False)

    async def __aenter__(self) -> HttpJudgmentOracle:
        if self._client is None:
            self._client = self.client_factory(self.config.resilience)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def classify_term(self, question: TermQuestion) -> TermJudgment:
        payload = await self._post(TERMS_PATH, term_request(question))
        try:
            answer = TERM_ANSWER.validate_python(payload)
        except pydantic.ValidationError as exc:
            raise OracleError(f"Malformed term answer for {question.term!r}: {exc}") from exc
        return parse_term_answer(answer)

    async def check_contradiction(self, question: ContradictionQuestion) -> ContradictionJudgment:
        payload = await self._post(CONTRADICTIONS_PATH, contradiction_request(question))
        return parse_contradiction_answer(_validate(ContradictionAnswer, payload))

    async def attempt_resolution(self, question: ResolutionQuestion) -> ResolutionJudgment:
        payload = await self._post(RESOLUTIONS_PATH, resolution_request(question))
        return parse_resolution_answer(_validate(ResolutionAnswer, payload))

    async def assess_independence(self, question: IndependenceQuestion) -> IndependenceJudgment:
        payload = await self._post(INDEPENDENCE_PATH, independence_request(question))
        return parse_independence_answer(_validate(IndependenceAnswer, payload))

    async def assess_commensurability(
        self, question: CommensurabilityQuestion
    ) -> CommensurabilityJudgment:
        payload = await self._post(COMMENSURABILITY_PATH, commensurability_request(question))
        return parse_commensurability_answer(_validate(CommensurabilityAnswer, payload))

    async def _post(self, path: str, request: OracleBaseModel) -> object:
        client = self._client
        if client is None:
            raise OracleError("HTTP judgment oracle used outside its async context")
        try:
            response = await client.post(path, json=request.model_dump(mode="json"))
            response.raise_for_status()
            payload: object = response.json()
        except httpx.HTTPStatusError as exc:
            log.debug("Oracle %s answered %s", path, exc.response.status_code)
            raise OracleError(f"Oracle {path} returned HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise OracleError(f"Oracle {path} request failed: {exc}") from exc
        except ValueError as exc:
            raise OracleError(f"Oracle {path} returned a non-JSON body") from exc
        return payload


def _validate[M: OracleBaseModel](model: type[M], payload: object) -> M:
    try:
        return model.model_validate(payload)
    except pydantic.ValidationError as exc:
        raise OracleError(f"Malformed {model.__name__}: {exc}") from exc
