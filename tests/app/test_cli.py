from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from dialectics.adapters.sqlalchemy.unit_of_work import shutdown
from dialectics.ui import cli
from tests.helpers.runs import run_payload

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

ANSWERS = {
    "contradictions": [
        {
            "claim_a": "Writes dominate",
            "claim_b": "Writes are rare",
            "verdict": "structural_conflict",
            "argument": "opposite traffic findings",
        }
    ]
}


@pytest.fixture(autouse=True)
def isolated_database(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    monkeypatch.setenv("DATABASE_URI", f"sqlite+pysqlite:///{tmp_path / 'records.db'}")
    shutdown()
    yield
    shutdown()


@pytest.fixture
def run_files(tmp_path: Path) -> tuple[Path, Path]:
    first = tmp_path / "first.json"
    second = tmp_path / "second.jsonl"
    first.write_text(json.dumps(run_payload("a", "Writes dominate")), encoding="utf-8")
    second.write_text(json.dumps(run_payload("b", "Writes are rare")), encoding="utf-8")
    return first, second


@pytest.fixture
def answers_file(tmp_path: Path) -> Path:
    path = tmp_path / "answers.json"
    path.write_text(json.dumps(ANSWERS), encoding="utf-8")
    return path


def test_reconcile_prints_the_record(
    run_files: tuple[Path, Path],
    answers_file: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    cli.main(["reconcile", *map(str, run_files), "--answers", str(answers_file)])

    record = json.loads(capsys.readouterr().out)
    assert record["input_runs"] == ["a", "b"]
    assert record["overall_relationship"] == "conflicted"
    assert record["unresolved_conflicts"] == 1
    assert record["safe_to_build"] == "nothing"
    assert record["blocked_until"].startswith("- re-run revision: settle 'Writes are rare'")


def test_reconcile_with_map_and_store(
    run_files: tuple[Path, Path],
    answers_file: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    args = ["reconcile", *map(str, run_files), "--answers", str(answers_file), "--store", "--map"]

    cli.main(args)
    payload = json.loads(capsys.readouterr().out)
    cli.main(["records", "list"])
    listing = capsys.readouterr().out.splitlines()

    assert payload["map"]["pairs"][0]["relationship"] == "conflicted"
    assert payload["map"]["most_dangerous_conflict"]["conflict_id"] == "C-0001"
    assert len(listing) == 1
    fingerprint = listing[0].split()[0]
    assert listing[0].endswith("conflicted  a, b")

    cli.main(["records", "show", fingerprint[:12]])
    shown = json.loads(capsys.readouterr().out)
    assert shown["fingerprint"] == fingerprint
    assert shown["record"] == payload["record"]


def test_storing_the_same_record_twice_keeps_one_copy(
    run_files: tuple[Path, Path],
    answers_file: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    for _ in range(2):
        cli.main(["reconcile", *map(str, run_files), "--answers", str(answers_file), "--store"])
    capsys.readouterr()

    cli.main(["records", "list"])

    assert len(capsys.readouterr().out.splitlines()) == 1


def test_invalid_input_exits_with_code_2(tmp_path: Path, answers_file: Path) -> None:
    lonely = tmp_path / "lonely.json"
    lonely.write_text(json.dumps(run_payload("a")), encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["reconcile", str(lonely), "--answers", str(answers_file)])

    assert excinfo.value.code == 2


def test_missing_oracle_configuration_exits_with_code_2(
    run_files: tuple[Path, Path],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.delenv("DIALECTICS_ORACLE_URL", raising=False)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["reconcile", *map(str, run_files)])

    assert excinfo.value.code == 2


def test_unknown_record_exits_with_code_1() -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["records", "show", "deadbeef"])

    assert excinfo.value.code == 1


def test_missing_subcommand_is_a_usage_error() -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main([])

    assert excinfo.value.code == 2
