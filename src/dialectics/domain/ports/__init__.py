"""Domain port definitions for adapters."""

from __future__ import annotations

from .oracle import (
    CommensurabilityJudgment,
    CommensurabilityQuestion,
    ContradictionJudgment,
    ContradictionQuestion,
    HomonymJudgment,
    IndependenceJudgment,
    IndependenceQuestion,
    JudgmentOracle,
    NeologismJudgment,
    OracleQuestion,
    ResolutionJudgment,
    ResolutionQuestion,
    Supporter,
    SynonymJudgment,
    TermJudgment,
    TermQuestion,
)
from .persistence import RecordRepository, StoredRecord
from .unit_of_work import RecordRepositories, RecordUnitOfWork, RepositoryCollection, UnitOfWork

__all__ = [
    "CommensurabilityJudgment",
    "CommensurabilityQuestion",
    "ContradictionJudgment",
    "ContradictionQuestion",
    "HomonymJudgment",
    "IndependenceJudgment",
    "IndependenceQuestion",
    "JudgmentOracle",
    "NeologismJudgment",
    "OracleQuestion",
    "RecordRepositories",
    "RecordRepository",
    "RecordUnitOfWork",
    "RepositoryCollection",
    "ResolutionJudgment",
    "ResolutionQuestion",
    "StoredRecord",
    "Supporter",
    "SynonymJudgment",
    "TermJudgment",
    "TermQuestion",
    "UnitOfWork",
]
