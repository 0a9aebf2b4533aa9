from __future__ import annotations

import asyncio
import json
from typing import TYPE_CHECKING

import httpx
import pytest

from dialectics.adapters.http_resilience import ResilientClient
from dialectics.adapters.oracle import HttpJudgmentOracle
from dialectics.config import OracleConfig, RateLimit, ResilienceConfig
from dialectics.domain.model import (
    ClaimKind,
    ContradictionVerdict,
    OracleError,
    ProtocolKind,
    TermUsage,
)
from dialectics.domain.ports import (
    ContradictionJudgment,
    ContradictionQuestion,
    HomonymJudgment,
    SynonymJudgment,
    TermQuestion,
)

if TYPE_CHECKING:
    from collections.abc import Callable

CONTRADICTION = ContradictionQuestion(
    run_a="a",
    run_b="b",
    claim_a="reads dominate",
    claim_b="traffic is steady",
    scope_a="read path",
    scope_b="write path",
    target_kind=ClaimKind.ASSUMPTION,
)


def _oracle(handler: Callable[[httpx.Request], httpx.Response]) -> HttpJudgmentOracle:
    resilience = ResilienceConfig(name="oracle", base_url="https://oracle.test/api/")
    return HttpJudgmentOracle(
        config=OracleConfig(timeout_seconds=5.0, resilience=resilience),
        client_factory=lambda config: ResilientClient(
            config, transport=httpx.MockTransport(handler)
        ),
    )


def test_contradiction_question_round_trip() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={
                "verdict": "assumption_conflict",
                "argument": "steady traffic is assumed",
                "upstream_action": {"protocol": "observation_validation", "input": "measure it"},
            },
        )

    async def run() -> object:
        async with _oracle(handler) as oracle:
            return await oracle.check_contradiction(CONTRADICTION)

    judgment = asyncio.run(run())

    assert isinstance(judgment, ContradictionJudgment)

    (request,) = seen
    assert request.method == "POST"
    assert request.url.path == "/api/contradictions/check"
    body = json.loads(request.content)
    assert body["claim_b"] == "traffic is steady"
    assert body["target_kind"] == "assumption"
    assert judgment.verdict is ContradictionVerdict.ASSUMPTION_CONFLICT
    assert judgment.upstream_action is not None
    assert judgment.upstream_action.protocol is ProtocolKind.OBSERVATION_VALIDATION


def test_term_answers_are_discriminated_by_kind() -> None:
    answers = iter(
        [
            {"kind": "synonym", "canonical": "latency", "variants": ["lag"]},
            {
                "kind": "homonym",
                "scope_resolvable": False,
                "meanings": [{"run_id": "a", "meaning": "ml model", "scope": "training"}],
            },
        ]
    )

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/terms/classify"
        return httpx.Response(200, json=next(answers))

    question = TermQuestion(
        term="model",
        usages=(TermUsage(run_id="a", scope="training", statements=("The model drifts",)),),
    )

    async def run() -> tuple[object, object]:
        async with _oracle(handler) as oracle:
            return (
                await oracle.classify_term(question),
                await oracle.classify_term(question),
            )

    synonym, homonym = asyncio.run(run())

    assert synonym == SynonymJudgment(canonical="latency", variants=("lag",))
    assert isinstance(homonym, HomonymJudgment)
    assert not homonym.scope_resolvable
    assert homonym.meanings[0].meaning == "ml model"


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(503, text="busy"),
        httpx.Response(200, text="not json"),
        httpx.Response(200, json={"verdict": "maybe"}),
    ],
)
def test_failures_surface_as_oracle_error(response: httpx.Response) -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return response

    async def run() -> None:
        async with _oracle(handler) as oracle:
            await oracle.check_contradiction(CONTRADICTION)

    with pytest.raises(OracleError):
        asyncio.run(run())


def test_transport_errors_surface_as_oracle_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async def run() -> None:
        async with _oracle(handler) as oracle:
            await oracle.check_contradiction(CONTRADICTION)

    with pytest.raises(OracleError, match="request failed"):
        asyncio.run(run())


def test_oracle_must_be_entered_before_use() -> None:
    oracle = _oracle(lambda _request: httpx.Response(200, json={}))

    with pytest.raises(OracleError, match="outside its async context"):
        asyncio.run(oracle.check_contradiction(CONTRADICTION))


def test_resilient_client_posts_json_with_default_headers() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"ok": True})

    config = ResilienceConfig(
        name="oracle",
        base_url="https://oracle.test/api/",
        ratelimit=RateLimit(max_calls=2.5, per_seconds=1.0),
        default_headers={"Authorization": "Bearer secret"},
    )

    async def run() -> httpx.Response:
        async with ResilientClient(config, transport=httpx.MockTransport(handler)) as client:
            return await client.post("judge", json={"question": "q"})

    response = asyncio.run(run())

    assert response.json() == {"ok": True}
    assert [str(request.url) for request in seen] == ["https://oracle.test/api/judge"]
    assert seen[0].method == "POST"
    assert seen[0].headers["Authorization"] == "Bearer secret"
    assert json.loads(seen[0].content) == {"question": "q"}
