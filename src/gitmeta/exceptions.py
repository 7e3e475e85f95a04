"""gitmeta exceptions.

Every repository failure is a translation of a dulwich failure mode. The
original engine exception is always chained via ``raise ... from`` and the
failing operation plus its target are kept as attributes.
"""

from pathlib import Path  # noqa: TC003 - used at runtime in signatures
from typing import Any


class GitMetaError(Exception):
    """Base exception for gitmeta errors."""


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigError(GitMetaError):
    """Base exception for configuration errors."""


class ConfigLoadError(ConfigError):
    """Raised when configuration cannot be loaded or parsed."""

    def __init__(
        self,
        message: str,
        *,
        path: Path | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        """Initialize with error message and optional location context."""
        super().__init__(message)
        self.path: Path | None = path
        self.line: int | None = line
        self.column: int | None = column


class ConfigValidationError(ConfigError):
    """Raised when configuration fails validation."""

    def __init__(
        self,
        message: str,
        *,
        key: str,
        value: Any,  # pyright: ignore[reportAny,reportExplicitAny]
        source: str | None = None,
    ) -> None:
        """Initialize with error message and validation context."""
        super().__init__(message)
        self.key: str = key
        self.value: Any = value  # pyright: ignore[reportExplicitAny]
        self.source: str | None = source


# =============================================================================
# Repository Exceptions
# =============================================================================


class RepositoryError(GitMetaError):
    """Base exception for repository operations.

    Attributes:
        operation: Name of the operation that failed (e.g. "resolve_last").
        target: The identifier the operation was acting on (path, ref, sha).
    """

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        target: str | None = None,
    ) -> None:
        """Initialize with error message and operation context.

        Args:
            message: Human-readable error message.
            operation: Name of the failing operation.
            target: Identifier the operation was acting on.
        """
        super().__init__(message)
        self.operation: str | None = operation
        self.target: str | None = target


class RepositoryNotFoundError(RepositoryError):
    """Raised when no git repository is found at or above a path.

    Attributes:
        path: The directory the search started from.
    """

    def __init__(
        self,
        message: str,
        *,
        path: Path | None = None,
        operation: str | None = None,
    ) -> None:
        """Initialize with error message and path context.

        Args:
            message: Human-readable error message.
            path: The directory the search started from.
            operation: Name of the failing operation.
        """
        super().__init__(
            message, operation=operation, target=str(path) if path else None
        )
        self.path: Path | None = path


class ReferenceResolutionError(RepositoryError, KeyError):
    """Raised when HEAD, a branch or a tag cannot be resolved.

    Also raised for HEAD on an empty repository with no commits.
    """

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message
        return str(self.args[0]) if self.args else ""


class ObjectNotFoundError(RepositoryError, KeyError):
    """Raised when a commit, tree or blob lookup by sha fails."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class DiffComputationError(RepositoryError):
    """Raised when dulwich fails to diff two trees."""


class CheckoutConflictError(RepositoryError):
    """Raised when a checkout would overwrite local modifications.

    Conflicts are always fatal; nothing is merged automatically.
    """


class HistoryNotFoundError(RepositoryError, LookupError):
    """Raised when no commit reachable from HEAD touches a path."""


class OperationCancelledError(RepositoryError):
    """Raised when a traversal is cancelled through its cancel event."""


class TagExistsError(RepositoryError, ValueError):
    """Raised when creating a tag whose name is already taken."""


# =============================================================================
# Watcher Exceptions
# =============================================================================


class WatcherError(GitMetaError):
    """Base exception for watcher registry errors.

    Attributes:
        path: The watched directory involved.
    """

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        """Initialize with error message and path context.

        Args:
            message: Human-readable error message.
            path: The watched directory involved.
        """
        super().__init__(message)
        self.path: Path | None = path


class WatcherExistsError(WatcherError):
    """Raised when a directory already has a registered watcher."""


class WatcherNotFoundError(WatcherError, KeyError):
    """Raised when no watcher is registered for a directory."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""
