"""Ports for persisting emitted reconciliation records."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from datetime import datetime

    from dialectics.domain.model import Record


@dataclass(frozen=True, slots=True, kw_only=True)
class StoredRecord:
    """A record as read back from storage, keyed by its content fingerprint."""

    fingerprint: str
    stored_at: datetime
    record: Record


@runtime_checkable
class RecordRepository(Protocol):
    """Insert-only store of records.

    Records are never revised, so the contract has no update or delete.
    ``add`` returns ``False`` when an identical record is already stored.
    """

    def add(self, record: Record) -> bool: ...

    def get(self, fingerprint: str) -> StoredRecord | None: ...

    def list_records(self) -> tuple[StoredRecord, ...]: ...
