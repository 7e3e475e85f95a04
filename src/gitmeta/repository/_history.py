"""Per-file history resolution.

Combines the commit graph walker with the diff attributor. A commit is part
of a path's history when its first-parent diff attributes at least one changed
line to that path, on either side of a rename, or renames or copies the path
without changing its content.
"""

import threading
from collections.abc import Iterator
from typing import Final

from dulwich.objects import Commit
from structlog.typing import FilteringBoundLogger

from gitmeta.exceptions import HistoryNotFoundError
from gitmeta.repository._diff import DiffAttributor, stat_for_path
from gitmeta.repository._handle import RepositoryHandle
from gitmeta.repository._models import (
    CommitRecord,
    FileChangeStat,
    FileMetadata,
    HistoryEntry,
)
from gitmeta.repository._walker import CommitGraphWalker


class FileHistoryResolver:
    """Answer "which commits touched this path" for one repository.

    Results are computed on every call; nothing is cached between calls.

    Example:
        >>> resolver = FileHistoryResolver(handle)
        >>> resolver.resolve_last("README.md").last_commit_sha
        '3f1c...'
        >>> [entry.sha for entry in resolver.resolve_history("README.md")]
        ['3f1c...', '9ab2...']
    """

    __slots__: Final = ("_attributor", "_handle", "_logger", "_walker")

    def __init__(
        self,
        handle: RepositoryHandle,
        *,
        walker: CommitGraphWalker | None = None,
        attributor: DiffAttributor | None = None,
    ) -> None:
        self._handle: RepositoryHandle = handle
        self._walker: CommitGraphWalker = walker or CommitGraphWalker(handle)
        self._attributor: DiffAttributor = attributor or DiffAttributor(handle)
        self._logger: FilteringBoundLogger = handle.logger.bind(component="history")

    def resolve_last(
        self,
        path: str,
        *,
        ref: str = "HEAD",
        cancel: threading.Event | None = None,
    ) -> FileMetadata:
        """Find the most recent commit that changed ``path``.

        The walk stops at the first matching commit.

        Args:
            path: Repository-relative path.
            ref: Reference the walk starts from.
            cancel: When set, the walk stops before the next commit.

        Returns:
            Metadata attributing the path to the matching commit.

        Raises:
            ReferenceResolutionError: If ``ref`` cannot be resolved.
            HistoryNotFoundError: If no reachable commit changed the path.
            DiffComputationError: If a commit cannot be diffed.
            OperationCancelledError: If ``cancel`` was set.
        """
        for record, stat in self._matches(path, ref, cancel):
            self._logger.debug("last_commit_resolved", path=path, commit=record.sha)
            return FileMetadata.from_commit(path, record, stat)

        msg = f"No commit reachable from {ref} touches {path}"
        raise HistoryNotFoundError(msg, operation="resolve_last", target=path)

    def resolve_history(
        self,
        path: str,
        *,
        ref: str = "HEAD",
        cancel: threading.Event | None = None,
    ) -> list[HistoryEntry]:
        """List every commit that changed ``path``, most recent first.

        Args:
            path: Repository-relative path.
            ref: Reference the walk starts from.
            cancel: When set, the walk stops before the next commit.

        Returns:
            One entry per matching commit; empty when none match.

        Raises:
            ReferenceResolutionError: If ``ref`` cannot be resolved.
            DiffComputationError: If a commit cannot be diffed.
            OperationCancelledError: If ``cancel`` was set.
        """
        history = [
            HistoryEntry.from_commit(record, stat)
            for record, stat in self._matches(path, ref, cancel)
        ]
        self._logger.debug("history_resolved", path=path, commits=len(history))
        return history

    def _matches(
        self,
        path: str,
        ref: str,
        cancel: threading.Event | None,
    ) -> Iterator[tuple[CommitRecord, FileChangeStat]]:
        commits: Iterator[Commit] = self._walker.commits(ref, cancel=cancel)
        for commit in commits:
            changes = self._attributor.changes(commit)
            if not any(change.touches(path) for change in changes):
                continue
            yield self._handle.commit_record(commit), stat_for_path(changes, path)
