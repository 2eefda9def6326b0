"""Application configuration helpers."""

from __future__ import annotations

from factweave.common.logging import configure_logging

from .context import ContextConfig, get_context_config
from .env import env_flag, env_float, require_env_vars
from .errors import ConfigurationError, InvalidConfigurationValueError, MissingConfigurationError
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "ConfigurationError",
    "ContextConfig",
    "DatabaseConfig",
    "InvalidConfigurationValueError",
    "MissingConfigurationError",
    "StorageConfig",
    "configure_logging",
    "env_flag",
    "env_float",
    "get_context_config",
    "get_database_config",
    "get_storage_config",
    "require_env_vars",
]
