"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING

from dialectics.adapters.oracle import HttpJudgmentOracle, ScriptedJudgmentOracle
from dialectics.adapters.records import record_fingerprint
from dialectics.adapters.runs import load_runs
from dialectics.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyRecordUnitOfWork,
    is_started,
    startup,
)
from dialectics.config import get_engine_config
from dialectics.domain.ports.unit_of_work import RecordUnitOfWork
from dialectics.domain.reconciliation import ReconciliationEngine

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from dialectics.config import EngineConfig
    from dialectics.domain.model import Record
    from dialectics.domain.ports import JudgmentOracle, StoredRecord
    from dialectics.domain.reconciliation import ReconciliationResult

UnitOfWorkFactory = Callable[[], RecordUnitOfWork]


log = getLogger(__name__)


def reconcile_run_files(
    paths: Iterable[Path],
    *,
    oracle: JudgmentOracle | None = None,
    answers_path: Path | None = None,
    engine_config: EngineConfig | None = None,
) -> ReconciliationResult:
    """Reconcile the runs stored in ``paths`` with the configured oracle.

    Without an explicit ``oracle`` the answers file is used when given,
    otherwise the HTTP oracle configured from the environment.
    """

    runs = load_runs(paths)
    effective_oracle = oracle or (
        ScriptedJudgmentOracle.from_file(answers_path)
        if answers_path is not None
        else HttpJudgmentOracle()
    )
    config = engine_config or get_engine_config()
    log.info(
        "Starting reconciliation: runs=%d, oracle=%s, ranking=%s",
        len(runs),
        type(effective_oracle).__name__,
        config.danger_ranking,
    )

    engine = ReconciliationEngine.from_config(effective_oracle, config)
    return engine.reconcile(runs)


def store_record(
    record: Record,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> tuple[str, bool]:
    """Store ``record`` once; returns its fingerprint and whether it was new."""

    with _unit_of_work(unit_of_work_factory) as uow:
        added = uow.repositories.records.add(record)
        uow.commit()
    fingerprint = record_fingerprint(record)
    log.info("Record %s %s", fingerprint, "stored" if added else "already stored")
    return fingerprint, added


def list_stored_records(
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> tuple[StoredRecord, ...]:
    with _unit_of_work(unit_of_work_factory) as uow:
        return uow.repositories.records.list_records()


def get_stored_record(
    fingerprint: str,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> StoredRecord | None:
    with _unit_of_work(unit_of_work_factory) as uow:
        return uow.repositories.records.get(fingerprint)


def _unit_of_work(factory: UnitOfWorkFactory | None) -> RecordUnitOfWork:
    if factory is not None:
        return factory()
    if not is_started():
        startup()
    return SqlAlchemyRecordUnitOfWork()
