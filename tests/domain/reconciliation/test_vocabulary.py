from __future__ import annotations

import asyncio

from dialectics.domain.model import (
    HomonymMeaning,
    HomonymTerm,
    IndeterminateTerm,
    NeologismTerm,
    ProtocolKind,
    SynonymTerm,
)
from dialectics.domain.ports import HomonymJudgment, NeologismJudgment, SynonymJudgment
from dialectics.domain.reconciliation.oracle import OracleSession
from dialectics.domain.reconciliation.registry import register_runs
from dialectics.domain.reconciliation.vocabulary import (
    AlignmentTable,
    VocabularyAligner,
    extract_terms,
    normalize_text,
)
from tests.helpers.oracle import FakeOracle
from tests.helpers.runs import make_run


def test_normalize_text_strips_punctuation_and_case() -> None:
    assert normalize_text("  The CACHE, (mostly)   warm! ") == "the cache mostly warm"


def test_extract_terms_skips_stopwords_short_tokens_and_numbers() -> None:
    terms = extract_terms("Their cache hit rate stays above 2024 within the budget; cache!")

    assert terms == ("cache", "rate", "stays", "budget")


def test_shared_terms_only_include_terms_of_two_runs() -> None:
    registry = register_runs(
        [
            make_run("a", "Caching lowers latency"),
            make_run("b", "Latency budgets matter", assumptions=("Caching is cheap",)),
            make_run("c", "Throughput rises"),
        ]
    )

    shared = VocabularyAligner().shared_terms(registry)

    assert list(shared) == ["caching", "latency"]
    assert [usage.run_id for usage in shared["latency"]] == ["a", "b"]
    assert shared["caching"][1].statements == ("Caching is cheap",)


def test_rewrite_replaces_synonym_variants_in_one_pass() -> None:
    table = AlignmentTable(
        terms=(
            SynonymTerm(term="latency", canonical="delay", variants=("lag",)),
            SynonymTerm(term="delay", canonical="wait"),
        )
    )

    assert table.rewrite("a", "Latency and lag grow") == "delay and delay grow"


def test_rewrite_qualifies_scope_resolvable_homonyms_per_run() -> None:
    table = AlignmentTable(
        terms=(
            HomonymTerm(
                term="model",
                meanings=(
                    HomonymMeaning(run_id="a", meaning="statistical model", scope="ml"),
                    HomonymMeaning(run_id="b", meaning="data model", scope="db"),
                ),
                scope_resolvable=True,
            ),
        )
    )

    assert table.rewrite("a", "The model is sound") == "the model (statistical model) is sound"
    assert table.rewrite("b", "The model is sound") == "the model (data model) is sound"
    assert table.blockers == ()


def test_compiled_rewrites_live_with_their_table() -> None:
    first = AlignmentTable(terms=(SynonymTerm(term="latency", canonical="delay"),))
    second = AlignmentTable(terms=(SynonymTerm(term="latency", canonical="lag"),))

    assert first.rewrite("a", "latency grows") == "delay grows"
    assert first.rewrite("b", "latency grows") == "delay grows"
    assert second.rewrite("a", "latency grows") == "lag grows"
    assert set(first._rewriters) == {"a", "b"}
    assert set(second._rewriters) == {"a"}
    assert set(AlignmentTable()._rewriters) == set()


def test_aligner_classifies_shared_terms() -> None:
    registry = register_runs(
        [
            make_run("a", "The model drifts", "Users churn weekly"),
            make_run("b", "The model is stable", "Users churn monthly", "Sharding helps"),
            make_run("c", "Sharding was coined here"),
        ]
    )
    oracle = FakeOracle(
        terms={
            "model": HomonymJudgment(
                meanings=(
                    HomonymMeaning(run_id="a", meaning="ml model", scope="scope of a"),
                    HomonymMeaning(run_id="b", meaning="ml model", scope="scope of b"),
                ),
                scope_resolvable=False,
            ),
            "sharding": NeologismJudgment(introduced_by="c", definition="splitting data"),
            "users": SynonymJudgment(canonical="customers", variants=("Clients",)),
        }
    )

    async def align() -> AlignmentTable:
        return await VocabularyAligner()(registry, oracle=OracleSession(oracle))

    table = asyncio.run(align())

    assert [term.term for term in table.terms] == ["churn", "model", "sharding", "users"]
    model = table.term_for("model")
    assert isinstance(model, HomonymTerm)
    assert model.blocker is not None
    assert model.blocker.upstream_action.protocol is ProtocolKind.CONCEPT_BOUNDARY
    assert model.blocker.run_ids == ("a", "b")
    assert isinstance(table.term_for("sharding"), NeologismTerm)
    users = table.term_for("users")
    assert isinstance(users, SynonymTerm)
    assert users.variants == ("clients",)
    assert table.blocked_terms == frozenset({"model"})
    assert table.blocked_terms_in("A MODEL, again") == ("model",)
    assert table.blocked_terms_in("modelling is fine") == ()


def test_aligner_blocks_terms_the_oracle_cannot_classify() -> None:
    registry = register_runs([make_run("a", "Quorum lost"), make_run("b", "Quorum kept")])
    oracle = FakeOracle(failing={"classify_term"})

    async def align() -> AlignmentTable:
        return await VocabularyAligner()(registry, oracle=OracleSession(oracle))

    table = asyncio.run(align())

    (term,) = table.terms
    assert isinstance(term, IndeterminateTerm)
    assert term.justification == "oracle_unavailable"
    assert term.blocker.upstream_action.protocol is ProtocolKind.RECONCILIATION
    assert table.blocked_terms == frozenset({"quorum"})
