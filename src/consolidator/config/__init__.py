"""Application configuration helpers."""

from __future__ import annotations

from .env import optional_int_env_var
from .errors import ConfigurationError
from .logging import configure_logging, log_level_from_env
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "ConfigurationError",
    "DatabaseConfig",
    "StorageConfig",
    "configure_logging",
    "get_database_config",
    "get_storage_config",
    "log_level_from_env",
    "optional_int_env_var",
]
