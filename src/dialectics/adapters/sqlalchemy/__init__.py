"""SQLAlchemy adapter package for dialectics."""

from __future__ import annotations

from .mappings import create_all_tables, metadata, record_table
from .repositories import SqlAlchemyRecordRepository
from .unit_of_work import (
    SqlAlchemyRecordUnitOfWork,
    StartupError,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyRecordRepository",
    "SqlAlchemyRecordUnitOfWork",
    "StartupError",
    "create_all_tables",
    "is_started",
    "metadata",
    "record_table",
    "shutdown",
    "startup",
]
