"""Working-tree status scanning."""

from dataclasses import dataclass
from typing import Final, cast

from dulwich import porcelain
from dulwich.diff_tree import CHANGE_RENAME, RenameDetector, tree_changes
from dulwich.ignore import IgnoreFilterManager
from dulwich.index import IndexEntry, commit_tree
from structlog.typing import FilteringBoundLogger

from gitmeta.repository._handle import RepositoryHandle
from gitmeta.repository._models import FileStatusEntry
from gitmeta.utils._git import decode_bytes


@dataclass(slots=True)
class _Flags:
    is_new: bool = False
    is_modified: bool = False
    is_deleted: bool = False
    is_renamed: bool = False
    is_ignored: bool = False
    old_path: str | None = None


class StatusScanner:
    """Report per-path working-tree status relative to the index and HEAD.

    Flags are independent: a file staged as new and then edited again on disk
    is both new and modified.
    """

    __slots__: Final = ("_handle", "_logger")

    def __init__(self, handle: RepositoryHandle) -> None:
        self._handle: RepositoryHandle = handle
        self._logger: FilteringBoundLogger = handle.logger.bind(component="status")

    def scan(self, *, include_ignored: bool | None = None) -> list[FileStatusEntry]:
        """Scan the working tree.

        Untracked directories are expanded to the files they contain.

        Args:
            include_ignored: Also report paths matched by ignore rules.
                Defaults to status.include_ignored.

        Returns:
            Status entries sorted by path. Unchanged tracked files are not
            reported.
        """
        if include_ignored is None:
            include_ignored = self._handle.config.status.include_ignored

        repo = self._handle.repo
        raw = porcelain.status(repo, ignored=include_ignored, untracked_files="all")
        flags: dict[str, _Flags] = {}

        def entry(path: bytes | str) -> _Flags:
            return flags.setdefault(decode_bytes(path), _Flags())

        staged = cast("dict[str, list[bytes]]", raw.staged)
        added = [decode_bytes(p) for p in staged.get("add", [])]
        deleted = [decode_bytes(p) for p in staged.get("delete", [])]
        renames = self._staged_renames() if added and deleted else {}

        # A rename target is still new to the index
        for path in added:
            entry(path).is_new = True
            if path in renames:
                entry(path).is_renamed = True
                entry(path).old_path = renames[path]
        renamed_from = set(renames.values())
        for path in deleted:
            if path not in renamed_from:
                entry(path).is_deleted = True
        for path in staged.get("modify", []):
            entry(path).is_modified = True

        for path in cast("list[bytes]", raw.unstaged):
            flagged = entry(path)
            if (self._handle.root / decode_bytes(path)).exists():
                flagged.is_modified = True
            else:
                flagged.is_deleted = True

        untracked = [decode_bytes(p) for p in cast("list[bytes | str]", raw.untracked)]
        ignore_manager = None
        if include_ignored and untracked:
            ignore_manager = IgnoreFilterManager.from_repo(repo)
        for path in untracked:
            flagged = entry(path)
            if ignore_manager is not None and ignore_manager.is_ignored(path):
                flagged.is_ignored = True
            else:
                flagged.is_new = True

        entries = [
            FileStatusEntry(
                path=path,
                is_new=f.is_new,
                is_modified=f.is_modified,
                is_deleted=f.is_deleted,
                is_renamed=f.is_renamed,
                is_ignored=f.is_ignored,
                old_path=f.old_path,
            )
            for path, f in sorted(flags.items())
        ]
        self._logger.debug("status_scanned", entries=len(entries))
        return entries

    def _staged_renames(self) -> dict[str, str]:
        """Pair staged deletions with staged additions.

        Returns:
            Mapping of new path to old path for each detected rename.
        """
        repo = self._handle.repo
        index = repo.open_index()
        blobs: list[tuple[bytes, bytes, int]] = []
        for path, index_entry in index.items():
            # Skip conflicted entries (they don't have sha/mode attributes)
            if isinstance(index_entry, IndexEntry):
                blobs.append((path, index_entry.sha, index_entry.mode))
        index_tree = commit_tree(repo.object_store, blobs)

        rename_detector = RenameDetector(
            repo.object_store,
            rename_threshold=self._handle.config.history.rename_threshold,
        )
        renames: dict[str, str] = {}
        for change in tree_changes(
            repo.object_store,
            self._handle.head_tree(),
            index_tree,
            rename_detector=rename_detector,
        ):
            if change.type == CHANGE_RENAME and change.old and change.new:
                renames[decode_bytes(change.new.path)] = decode_bytes(change.old.path)
        return renames
