"""Merged view of tracked and untracked files.

The file universe is every blob path in the HEAD tree plus every path the
status scan reports, minus ignored paths and anything inside the repository
metadata directory. Each path is resolved to FileMetadata through its
history; untracked files get placeholder metadata.
"""

import threading
from typing import Final

from structlog.typing import FilteringBoundLogger

from gitmeta.exceptions import HistoryNotFoundError, ReferenceResolutionError
from gitmeta.repository._handle import RepositoryHandle
from gitmeta.repository._history import FileHistoryResolver
from gitmeta.repository._models import FileMetadata, FileStatusEntry
from gitmeta.repository._status import StatusScanner


class FileUniverseMerger:
    """Resolve metadata for every file known to the repository."""

    __slots__: Final = ("_handle", "_logger", "_resolver", "_scanner")

    def __init__(
        self,
        handle: RepositoryHandle,
        *,
        scanner: StatusScanner | None = None,
        resolver: FileHistoryResolver | None = None,
    ) -> None:
        self._handle: RepositoryHandle = handle
        self._scanner: StatusScanner = scanner or StatusScanner(handle)
        self._resolver: FileHistoryResolver = resolver or FileHistoryResolver(handle)
        self._logger: FilteringBoundLogger = handle.logger.bind(component="universe")

    def universe(
        self, statuses: list[FileStatusEntry] | None = None
    ) -> set[str]:
        """Compute the set of paths metadata is produced for.

        Args:
            statuses: A status scan to reuse. Scanned fresh when None.

        Returns:
            Repository-relative paths from the HEAD tree and the status scan,
            excluding ignored and metadata-directory paths.
        """
        if statuses is None:
            statuses = self._scanner.scan()

        paths = {entry.path for entry in statuses if not entry.is_ignored}
        head_tree = self._handle.head_tree()
        if head_tree is not None:
            paths.update(self._handle.walk_tree(head_tree))

        metadata_dir = self._handle.config.history.metadata_dir
        return {p for p in paths if not self._in_metadata_dir(p, metadata_dir)}

    def list_files(
        self,
        directory: str | None = None,
        *,
        cancel: threading.Event | None = None,
    ) -> list[FileMetadata]:
        """Produce metadata for every file in the universe.

        A path whose history cannot be found gets placeholder metadata when
        the status scan flags it as new. Any other such path is left out of
        the result and a ``history_not_found`` warning is logged.

        Args:
            directory: Only include paths under this repository-relative
                directory. None, "" and "." mean the whole repository.
            cancel: When set, the current history walk stops and
                OperationCancelledError is raised.

        Returns:
            Metadata sorted by path.

        Raises:
            DiffComputationError: If a commit cannot be diffed.
            OperationCancelledError: If ``cancel`` was set.
        """
        statuses = self._scanner.scan()
        new_paths = {entry.path for entry in statuses if entry.is_new}
        paths = self.universe(statuses)

        prefix = self._directory_prefix(directory)
        if prefix:
            paths = {p for p in paths if p.startswith(prefix)}

        untracked_message = self._handle.config.history.untracked_message
        result: list[FileMetadata] = []
        for path in sorted(paths):
            try:
                result.append(self._resolver.resolve_last(path, cancel=cancel))
            except (HistoryNotFoundError, ReferenceResolutionError):
                # Empty repositories have no HEAD; every path has no history
                if path in new_paths:
                    result.append(FileMetadata.untracked(path, untracked_message))
                else:
                    self._logger.warning("history_not_found", path=path)

        self._logger.debug("files_listed", directory=directory, files=len(result))
        return result

    @staticmethod
    def _directory_prefix(directory: str | None) -> str:
        """Normalize a directory filter; "" means the whole repository."""
        parts = [p for p in (directory or "").split("/") if p not in ("", ".")]
        return "/".join(parts) + "/" if parts else ""

    @staticmethod
    def _in_metadata_dir(path: str, metadata_dir: str) -> bool:
        return path == metadata_dir or path.startswith(metadata_dir + "/")
