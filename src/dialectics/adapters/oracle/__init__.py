"""Public interface for the judgment oracle adapters."""

from __future__ import annotations

from .client import HttpJudgmentOracle
from .scripted import AnswerBook, ScriptedJudgmentOracle

__all__ = [
    "AnswerBook",
    "HttpJudgmentOracle",
    "ScriptedJudgmentOracle",
]
