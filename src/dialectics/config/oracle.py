"""Judgment oracle configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import env_float, optional_env_var, require_env_vars
from .http_resilience import RateLimit, ResilienceConfig

ORACLE_URL_ENV = "DIALECTICS_ORACLE_URL"
ORACLE_TIMEOUT_ENV = "DIALECTICS_ORACLE_TIMEOUT"
ORACLE_RATE_ENV = "DIALECTICS_ORACLE_RATE"
ORACLE_TOKEN_ENV = "DIALECTICS_ORACLE_TOKEN"  # noqa: S105
DEFAULT_ORACLE_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True, slots=True)
class OracleConfig:
    """Holds HTTP judgment oracle configuration values."""

    timeout_seconds: float
    resilience: ResilienceConfig


def get_oracle_config(*, resilience: ResilienceConfig | None = None) -> OracleConfig:
    values = require_env_vars((ORACLE_URL_ENV,))
    timeout = env_float(ORACLE_TIMEOUT_ENV, DEFAULT_ORACLE_TIMEOUT_SECONDS)
    timeout_seconds = DEFAULT_ORACLE_TIMEOUT_SECONDS if timeout is None else timeout
    rate = env_float(ORACLE_RATE_ENV, None)
    token = optional_env_var(ORACLE_TOKEN_ENV)

    return OracleConfig(
        timeout_seconds=timeout_seconds,
        resilience=resilience
        or ResilienceConfig(
            name="oracle",
            base_url=values[ORACLE_URL_ENV],
            timeout_seconds=timeout_seconds,
            ratelimit=_rate_limit(rate),
            default_headers={"Authorization": f"Bearer {token}"} if token else None,
        ),
    )


def _rate_limit(calls_per_second: float | None) -> RateLimit | None:
    if calls_per_second is None:
        return None
    if calls_per_second >= 1:
        return RateLimit(max_calls=calls_per_second, per_seconds=1.0)
    return RateLimit(max_calls=1, per_seconds=1 / calls_per_second)
