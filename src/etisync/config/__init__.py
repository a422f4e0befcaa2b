"""Application configuration helpers."""

from __future__ import annotations

from .env import optional_float, require_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .logging import configure_logging
from .sheets import GoogleSheetsConfig, get_google_sheets_config
from .storage import (
    DatabaseConfig,
    StorageConfig,
    get_backend,
    get_database_config,
    get_storage_config,
)
from .workflows import WorkflowConfig, get_workflow_config

__all__ = [
    "ConfigurationError",
    "DatabaseConfig",
    "GoogleSheetsConfig",
    "MissingConfigurationError",
    "StorageConfig",
    "WorkflowConfig",
    "configure_logging",
    "get_backend",
    "get_database_config",
    "get_google_sheets_config",
    "get_storage_config",
    "get_workflow_config",
    "optional_float",
    "require_env_var",
    "require_env_vars",
]
