from __future__ import annotations

import json
from typing import TYPE_CHECKING

from dialectics.app import get_stored_record, list_stored_records, reconcile_run_files, store_record
from dialectics.config import EngineConfig
from dialectics.domain.model import DangerRanking, OverallRelationship
from tests.helpers.oracle import FakeOracle
from tests.helpers.records import make_record
from tests.helpers.runs import run_payload

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from dialectics.adapters.sqlalchemy import SqlAlchemyRecordUnitOfWork


def test_reconcile_run_files_with_explicit_oracle(tmp_path: Path) -> None:
    path = tmp_path / "runs.json"
    path.write_text(
        json.dumps(
            {"runs": [run_payload("b", "Disks are fast"), run_payload("a", "Disks are fast")]}
        ),
        encoding="utf-8",
    )
    oracle = FakeOracle()

    result = reconcile_run_files(
        [path],
        oracle=oracle,
        engine_config=EngineConfig(
            oracle_timeout_seconds=None, danger_ranking=DangerRanking.CLAIM_REACH
        ),
    )

    assert result.record.overall_relationship is OverallRelationship.COMPATIBLE
    assert result.record.jointly_supported_claims == 1
    assert oracle.calls


def test_store_record_reports_new_and_existing(
    sqlite_unit_of_work: Callable[[], SqlAlchemyRecordUnitOfWork],
) -> None:
    record = make_record("a", "b")

    fingerprint, added = store_record(record, unit_of_work_factory=sqlite_unit_of_work)
    again, added_again = store_record(record, unit_of_work_factory=sqlite_unit_of_work)

    assert added
    assert not added_again
    assert again == fingerprint
    stored = get_stored_record(fingerprint, unit_of_work_factory=sqlite_unit_of_work)
    assert stored is not None
    assert stored.record == record
    listed = list_stored_records(unit_of_work_factory=sqlite_unit_of_work)
    assert [item.fingerprint for item in listed] == [fingerprint]
