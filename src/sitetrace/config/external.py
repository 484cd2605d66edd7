"""Connection settings for the read-only external monitoring database."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .env import env_int, require_env_var

EXTERNAL_DATABASE_URL_VAR = "EXTERNAL_DATABASE_URL"
DEFAULT_POOL_SIZE = 3
DEFAULT_CONNECT_TIMEOUT_SECONDS = 10
DEFAULT_POOL_TIMEOUT_SECONDS = 30
DEFAULT_POOL_RECYCLE_SECONDS = 30
DEFAULT_SSLMODE = "require"

_DRIVER_PREFIXES = ("postgres://", "postgresql://")
_SQLALCHEMY_PREFIX = "postgresql+psycopg2://"


@dataclass(frozen=True, slots=True)
class ExternalSourceConfig:
    url: str
    pool_size: int = DEFAULT_POOL_SIZE
    connect_timeout_seconds: int = DEFAULT_CONNECT_TIMEOUT_SECONDS
    pool_timeout_seconds: int = DEFAULT_POOL_TIMEOUT_SECONDS
    pool_recycle_seconds: int = DEFAULT_POOL_RECYCLE_SECONDS
    sslmode: str | None = DEFAULT_SSLMODE

    @property
    def is_postgres(self) -> bool:
        return self.url.startswith("postgresql")


def to_sqlalchemy_url(url: str) -> str:
    """Return ``url`` with a PostgreSQL scheme rewritten for the psycopg2 driver."""

    stripped = url.strip()
    for prefix in _DRIVER_PREFIXES:
        if stripped.startswith(prefix):
            return _SQLALCHEMY_PREFIX + stripped[len(prefix) :]
    return stripped


def get_external_source_config(*, url: str | None = None) -> ExternalSourceConfig:
    resolved = url or require_env_var(EXTERNAL_DATABASE_URL_VAR)
    sslmode = os.getenv("EXTERNAL_DB_SSLMODE", DEFAULT_SSLMODE).strip() or None
    return ExternalSourceConfig(
        url=to_sqlalchemy_url(resolved),
        pool_size=env_int("EXTERNAL_DB_POOL_SIZE", DEFAULT_POOL_SIZE),
        connect_timeout_seconds=env_int(
            "EXTERNAL_DB_CONNECT_TIMEOUT", DEFAULT_CONNECT_TIMEOUT_SECONDS
        ),
        pool_timeout_seconds=env_int("EXTERNAL_DB_POOL_TIMEOUT", DEFAULT_POOL_TIMEOUT_SECONDS),
        pool_recycle_seconds=env_int("EXTERNAL_DB_POOL_RECYCLE", DEFAULT_POOL_RECYCLE_SECONDS),
        sslmode=sslmode,
    )
