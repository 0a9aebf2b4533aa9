from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from sqlalchemy import func, select

from dialectics.adapters.records import record_fingerprint
from dialectics.adapters.sqlalchemy import SqlAlchemyRecordRepository, record_table
from dialectics.domain.model import OverallRelationship
from dialectics.domain.ports import RecordRepository
from tests.helpers.records import make_record

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.orm import Session


def _ticking_clock() -> Callable[[], datetime]:
    start = datetime(2026, 1, 1, tzinfo=UTC)
    ticks = iter(range(1000))
    return lambda: start + timedelta(minutes=next(ticks))


def test_repository_satisfies_port(sqlite_session: Session) -> None:
    assert isinstance(SqlAlchemyRecordRepository(sqlite_session), RecordRepository)


def test_add_is_idempotent_per_fingerprint(sqlite_session: Session) -> None:
    repository = SqlAlchemyRecordRepository(sqlite_session)
    record = make_record("a", "b", overall=OverallRelationship.CONFLICTED, unresolved=1)

    assert repository.add(record)
    assert not repository.add(
        make_record("a", "b", overall=OverallRelationship.CONFLICTED, unresolved=1)
    )
    sqlite_session.commit()

    count = sqlite_session.execute(select(func.count()).select_from(record_table)).scalar_one()
    assert count == 1
    row = sqlite_session.execute(select(record_table)).mappings().one()
    assert row["overall_relationship"] == "conflicted"
    assert row["unresolved_conflicts"] == 1
    assert row["input_runs"] == '["a", "b"]'


def test_get_returns_the_stored_record(sqlite_session: Session) -> None:
    repository = SqlAlchemyRecordRepository(sqlite_session)
    record = make_record("a", "b", "c", overall=OverallRelationship.MIXED, resolved=1)
    repository.add(record)
    sqlite_session.commit()

    stored = repository.get(record_fingerprint(record))

    assert stored is not None
    assert stored.record == record
    assert stored.fingerprint == record_fingerprint(record)
    assert repository.get("0" * 64) is None


def test_list_records_in_storage_order(sqlite_session: Session) -> None:
    repository = SqlAlchemyRecordRepository(sqlite_session, clock=_ticking_clock())
    later = make_record("x", "y")
    earlier = make_record("a", "b")
    repository.add(earlier)
    repository.add(later)
    sqlite_session.commit()

    stored = repository.list_records()

    assert [item.record for item in stored] == [earlier, later]
