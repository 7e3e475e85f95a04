"""gitmeta configuration.

This module provides the public API for gitmeta configuration management:
loading TOML files and environment variables, validation, and typed access.

Example:
    >>> from gitmeta.config import GitMetaConfig
    >>> config = GitMetaConfig.load()
    >>> config.history.rename_threshold
    60
"""

from gitmeta.exceptions import (
    ConfigError,
    ConfigLoadError,
    ConfigValidationError,
)

from ._defaults import DEFAULT_CONFIG
from ._discovery import (
    discover_config_files,
    get_repo_config_path,
    get_user_config_path,
)
from ._loader import deep_merge, parse_env_vars, read_toml_file
from ._models import (
    GitMetaConfig,
    HistoryConfig,
    LogFormat,
    LoggingConfig,
    LogLevel,
    StatusConfig,
    load_config,
)

__all__ = [
    "DEFAULT_CONFIG",
    "ConfigError",
    "ConfigLoadError",
    "ConfigValidationError",
    "GitMetaConfig",
    "HistoryConfig",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "StatusConfig",
    "deep_merge",
    "discover_config_files",
    "get_repo_config_path",
    "get_user_config_path",
    "load_config",
    "parse_env_vars",
    "read_toml_file",
]
