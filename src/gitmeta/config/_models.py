"""Configuration models.

This module provides the Pydantic models for gitmeta configuration. The
top-level GitMetaConfig is immutable; build it through its factory methods.
"""

from enum import StrEnum
from pathlib import Path  # noqa: TC003 - used at runtime in signatures
from typing import Any, ClassVar, Self

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from gitmeta.config._defaults import DEFAULT_CONFIG
from gitmeta.config._discovery import discover_config_files
from gitmeta.config._loader import deep_merge, parse_env_vars, read_toml_file
from gitmeta.exceptions import ConfigValidationError


class LogLevel(StrEnum):
    """Log level threshold values.

    Values are ordered from most verbose (debug) to least verbose (error).
    """

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LogFormat(StrEnum):
    """Log output format values."""

    JSON = "json"
    TEXT = "text"


class LoggingConfig(BaseModel):
    """Logging configuration section.

    Attributes:
        level: Log level threshold.
        format: Log output format.
        file: Path to log file (empty logs to stderr).
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    level: LogLevel = LogLevel.WARNING
    format: LogFormat = LogFormat.JSON
    file: str = ""


class HistoryConfig(BaseModel):
    """History resolution configuration section.

    Attributes:
        detect_renames: Pair deleted and added files into renames when diffing.
        rename_threshold: Similarity percentage (0-100) for rename detection.
        metadata_dir: Name of the version-control metadata directory whose
            contents are never listed.
        untracked_message: Commit message placed on untracked file metadata.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    detect_renames: bool = True
    rename_threshold: int = Field(default=60, ge=0, le=100)
    metadata_dir: str = Field(default=".git", min_length=1)
    untracked_message: str = "Untracked file"


class StatusConfig(BaseModel):
    """Working-tree status configuration section.

    Attributes:
        include_ignored: Report ignored paths in status scans.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    include_ignored: bool = False


class GitMetaConfig(BaseModel):
    """Merged gitmeta configuration.

    Use from_dict(), from_file() or load() instead of the constructor so that
    defaults are merged in and validation errors are translated.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    history: HistoryConfig = Field(default_factory=HistoryConfig)
    status: StatusConfig = Field(default_factory=StatusConfig)

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],  # pyright: ignore[reportExplicitAny]
        *,
        source: str | None = None,
    ) -> Self:
        """Create configuration from a dictionary merged over the defaults.

        Args:
            data: Dictionary of configuration values.
            source: Description of where the values came from, for errors.

        Returns:
            Validated configuration object.

        Raises:
            ConfigValidationError: If a value fails validation.
        """
        merged = deep_merge(DEFAULT_CONFIG, data)
        try:
            return cls.model_validate(merged)
        except ValidationError as e:
            first = e.errors()[0]
            key = ".".join(str(part) for part in first["loc"])
            msg = f"Invalid configuration value for {key}: {first['msg']}"
            raise ConfigValidationError(
                msg, key=key, value=first.get("input"), source=source
            ) from e

    @classmethod
    def from_file(cls, path: Path) -> Self:
        """Load configuration from a single TOML file.

        Args:
            path: Path to the TOML config file.

        Returns:
            Configuration object from the file merged over the defaults.

        Raises:
            FileNotFoundError: If the file does not exist.
            ConfigLoadError: If the file cannot be parsed.
            ConfigValidationError: If validation fails.
        """
        return cls.from_dict(read_toml_file(path), source=str(path))

    @classmethod
    def load(
        cls,
        *,
        repo_root: Path | None = None,
        include_env: bool = True,
    ) -> Self:
        """Load merged configuration from all sources.

        Sources are merged lowest to highest precedence:
        defaults -> user file -> repository file -> environment.

        Args:
            repo_root: Repository working tree root. When None, the repository
                file source is skipped.
            include_env: Include GITMETA_* environment variables.

        Returns:
            Merged configuration object.

        Raises:
            ConfigLoadError: If a config file cannot be parsed.
            ConfigValidationError: If the merged config fails validation.
        """
        merged: dict[str, Any] = {}  # pyright: ignore[reportExplicitAny]
        for path in discover_config_files(repo_root):
            merged = deep_merge(merged, read_toml_file(path))

        if include_env:
            merged = deep_merge(merged, parse_env_vars())

        return cls.from_dict(merged)


def load_config(
    repo_root: Path | None = None, *, include_env: bool = True
) -> GitMetaConfig:
    """Load the merged configuration; see GitMetaConfig.load()."""
    return GitMetaConfig.load(repo_root=repo_root, include_env=include_env)
