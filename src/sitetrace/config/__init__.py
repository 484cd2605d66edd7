"""Application configuration helpers."""

from __future__ import annotations

from .env import env_int, require_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .external import ExternalSourceConfig, get_external_source_config, to_sqlalchemy_url
from .logging import configure_logging
from .storage import (
    DatabaseConfig,
    StorageConfig,
    get_database_config,
    get_database_uri,
    get_storage_config,
)
from .sync import SyncConfig, get_sync_config

__all__ = [
    "ConfigurationError",
    "DatabaseConfig",
    "ExternalSourceConfig",
    "MissingConfigurationError",
    "StorageConfig",
    "SyncConfig",
    "configure_logging",
    "env_int",
    "get_database_config",
    "get_database_uri",
    "get_external_source_config",
    "get_storage_config",
    "get_sync_config",
    "require_env_var",
    "require_env_vars",
    "to_sqlalchemy_url",
]
