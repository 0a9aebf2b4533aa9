"""Engine defaults, overridable from the environment."""

from __future__ import annotations

from dataclasses import dataclass

from dialectics.domain.model import DangerRanking

from .env import env_float, env_int, optional_env_var
from .errors import ConfigurationError
from .oracle import DEFAULT_ORACLE_TIMEOUT_SECONDS, ORACLE_TIMEOUT_ENV

DEFAULT_MAX_CONCURRENCY = 8
DEFAULT_MIN_TERM_LENGTH = 4


@dataclass(frozen=True, slots=True)
class EngineConfig:
    oracle_timeout_seconds: float | None = DEFAULT_ORACLE_TIMEOUT_SECONDS
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    min_term_length: int = DEFAULT_MIN_TERM_LENGTH
    danger_ranking: DangerRanking = DangerRanking.PAIR_COUNT


def get_engine_config() -> EngineConfig:
    ranking = optional_env_var("DIALECTICS_DANGER_RANKING") or DangerRanking.PAIR_COUNT
    try:
        danger_ranking = DangerRanking(ranking.lower())
    except ValueError as exc:
        choices = ", ".join(DangerRanking)
        raise ConfigurationError(
            f"DIALECTICS_DANGER_RANKING must be one of {choices}, got {ranking!r}"
        ) from exc

    return EngineConfig(
        oracle_timeout_seconds=env_float(ORACLE_TIMEOUT_ENV, DEFAULT_ORACLE_TIMEOUT_SECONDS),
        max_concurrency=env_int("DIALECTICS_MAX_CONCURRENCY", DEFAULT_MAX_CONCURRENCY, minimum=1),
        min_term_length=env_int("DIALECTICS_MIN_TERM_LENGTH", DEFAULT_MIN_TERM_LENGTH, minimum=1),
        danger_ranking=danger_ranking,
    )
