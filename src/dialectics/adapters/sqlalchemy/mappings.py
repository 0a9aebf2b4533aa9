"""SQLAlchemy table metadata for stored reconciliation records."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import Column, DateTime, Integer, MetaData, String, Table, Text

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

metadata = MetaData()

record_table = Table(
    "reconciliation_record",
    metadata,
    Column("fingerprint", String(64), primary_key=True),
    Column("stored_at", DateTime(timezone=True), nullable=False, index=True),
    Column("input_runs", Text, nullable=False),
    Column("overall_relationship", String(32), nullable=False),
    Column("total_conflicts", Integer, nullable=False),
    Column("resolved_conflicts", Integer, nullable=False),
    Column("unresolved_conflicts", Integer, nullable=False),
    Column("payload", Text, nullable=False),
)


def create_all_tables(engine: Engine) -> None:
    log.debug("Creating record tables on %s", engine.url)
    metadata.create_all(engine, checkfirst=True)
