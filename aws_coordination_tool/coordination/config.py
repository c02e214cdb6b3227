"""
Runtime configuration for the coordination components.

Values come from the environment so every server instance sharing a table
is configured the same way; CLI options override them per command.

Environment Variables:
    COORD_TABLE: DynamoDB table name (default: aws-coordination-tool)
    AWS_REGION / AWS_PROFILE: Standard AWS SDK settings
    COORD_ENDPOINT_URL: Alternative DynamoDB endpoint, e.g. DynamoDB Local
    COORD_LOCK_TTL: Default lock ttl in seconds (default: 30)
    COORD_IDEMPOTENCY_TTL: Idempotency record ttl in seconds (default: 3600)
    COORD_LOCK_FAIL_OPEN: Grant degraded locks when the cache is down (default: true)
    COORD_QUOTA_FAIL_OPEN: Allow quota checks when the store is down (default: false)
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass

from .constants import (
    DEFAULT_LOCK_TTL,
    DEFAULT_TABLE_NAME,
    ENV_ENDPOINT_URL,
    ENV_IDEMPOTENCY_TTL,
    ENV_LOCK_FAIL_OPEN,
    ENV_LOCK_TTL,
    ENV_QUOTA_FAIL_OPEN,
    ENV_TABLE,
    IDEMPOTENCY_TTL,
)

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _flag(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean, got '{raw}'")


def _int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got '{raw}'")
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


@dataclass
class CoordinationConfig:
    """Settings shared by every coordination component."""

    table_name: str = DEFAULT_TABLE_NAME
    region: str | None = None
    profile: str | None = None
    endpoint_url: str | None = None
    lock_ttl: int = DEFAULT_LOCK_TTL
    idempotency_ttl: int = IDEMPOTENCY_TTL
    lock_fail_open: bool = True
    quota_fail_open: bool = False

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "CoordinationConfig":
        """
        Build configuration from environment variables.

        Raises:
            ValueError: If a variable holds an invalid value
        """
        env = os.environ if env is None else env
        return cls(
            table_name=env.get(ENV_TABLE) or DEFAULT_TABLE_NAME,
            region=env.get("AWS_REGION") or None,
            profile=env.get("AWS_PROFILE") or None,
            endpoint_url=env.get(ENV_ENDPOINT_URL) or None,
            lock_ttl=_int(env, ENV_LOCK_TTL, DEFAULT_LOCK_TTL),
            idempotency_ttl=_int(env, ENV_IDEMPOTENCY_TTL, IDEMPOTENCY_TTL),
            lock_fail_open=_flag(env, ENV_LOCK_FAIL_OPEN, True),
            quota_fail_open=_flag(env, ENV_QUOTA_FAIL_OPEN, False),
        )
