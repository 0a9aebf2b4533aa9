"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import insert, select

from dialectics.adapters.records import (
    canonical_json,
    record_fingerprint,
    record_from_dict,
    record_to_dict,
)
from dialectics.adapters.sqlalchemy.mappings import record_table
from dialectics.domain.ports import StoredRecord

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy import Row
    from sqlalchemy.orm import Session

    from dialectics.domain.model import Record


def _utc_now() -> datetime:
    return datetime.now(UTC)


class SqlAlchemyRecordRepository:
    """Insert-only record store keyed by record fingerprint."""

    def __init__(self, session: Session, *, clock: Callable[[], datetime] = _utc_now) -> None:
        self.session = session
        self._clock = clock

    def add(self, record: Record) -> bool:
        fingerprint = record_fingerprint(record)
        if self._exists(fingerprint):
            return False
        self.session.execute(
            insert(record_table).values(
                fingerprint=fingerprint,
                stored_at=self._clock(),
                input_runs=json.dumps(list(record.input_runs)),
                overall_relationship=str(record.overall_relationship),
                total_conflicts=record.total_conflicts,
                resolved_conflicts=record.resolved_conflicts,
                unresolved_conflicts=record.unresolved_conflicts,
                payload=canonical_json(record_to_dict(record)),
            )
        )
        return True

    def get(self, fingerprint: str) -> StoredRecord | None:
        stmt = select(
            record_table.c.fingerprint,
            record_table.c.stored_at,
            record_table.c.payload,
        ).where(record_table.c.fingerprint == fingerprint)
        row = self.session.execute(stmt).one_or_none()
        return None if row is None else _stored(row)

    def list_records(self) -> tuple[StoredRecord, ...]:
        stmt = select(
            record_table.c.fingerprint,
            record_table.c.stored_at,
            record_table.c.payload,
        ).order_by(record_table.c.stored_at, record_table.c.fingerprint)
        return tuple(_stored(row) for row in self.session.execute(stmt))

    def _exists(self, fingerprint: str) -> bool:
        stmt = select(record_table.c.fingerprint).where(record_table.c.fingerprint == fingerprint)
        return self.session.execute(stmt).scalar_one_or_none() is not None


def _stored(row: Row[tuple[str, datetime, str]]) -> StoredRecord:
    fingerprint, stored_at, payload = row
    return StoredRecord(
        fingerprint=fingerprint,
        stored_at=stored_at,
        record=record_from_dict(json.loads(payload)),
    )
