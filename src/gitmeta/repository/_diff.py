"""Per-commit diff attribution.

This module turns the difference between a commit and its first parent into
a list of FileChange records. Every changed line becomes a LineChange carrying
both sides' paths, so a renamed file can be matched under either name.
"""

from difflib import SequenceMatcher
from typing import Final, cast

from dulwich.diff_tree import (
    CHANGE_ADD,
    CHANGE_COPY,
    CHANGE_DELETE,
    CHANGE_RENAME,
    RenameDetector,
    TreeChange,
    tree_changes,
)
from dulwich.objects import S_ISGITLINK, Commit, TreeEntry
from dulwich.patch import is_binary
from structlog.typing import FilteringBoundLogger

from gitmeta.exceptions import DiffComputationError
from gitmeta.repository._handle import RepositoryHandle
from gitmeta.repository._models import (
    ChangeType,
    FileChange,
    FileChangeStat,
    LineChange,
    LineOrigin,
)
from gitmeta.utils._git import decode_bytes

_CHANGE_TYPES: Final = {
    CHANGE_ADD: ChangeType.ADD,
    CHANGE_DELETE: ChangeType.DELETE,
    CHANGE_RENAME: ChangeType.RENAME,
    CHANGE_COPY: ChangeType.COPY,
}


def line_changes(
    old_content: bytes,
    new_content: bytes,
    *,
    old_path: str | None,
    new_path: str | None,
) -> tuple[LineChange, ...]:
    """Classify the lines that differ between two blob contents.

    Uses SequenceMatcher opcodes; a replaced block contributes its deleted
    lines followed by its added lines.

    Args:
        old_content: Parent-side content (empty for an addition).
        new_content: Commit-side content (empty for a deletion).
        old_path: Parent-side path recorded on every line.
        new_path: Commit-side path recorded on every line.

    Returns:
        The changed lines in diff order.
    """
    # Terminators are kept so newline-only edits count as changed lines
    old_lines = old_content.splitlines(keepends=True)
    new_lines = new_content.splitlines(keepends=True)

    matcher = SequenceMatcher(None, old_lines, new_lines, autojunk=False)

    deleted = LineChange(old_path, new_path, LineOrigin.DELETED)
    added = LineChange(old_path, new_path, LineOrigin.ADDED)
    lines: list[LineChange] = []

    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag in ("delete", "replace"):
            lines.extend([deleted] * (i2 - i1))
        if tag in ("insert", "replace"):
            lines.extend([added] * (j2 - j1))
        # "equal" - no changes

    return tuple(lines)


class DiffAttributor:
    """Compute the changes a commit introduces relative to its first parent.

    Only the first parent of a merge commit is diffed, so changes that reach
    a merge exclusively through a later parent are attributed to the merge
    itself through its first-parent diff. A root commit is diffed against the
    empty tree.
    """

    __slots__: Final = ("_detect_renames", "_handle", "_logger", "_rename_threshold")

    def __init__(
        self,
        handle: RepositoryHandle,
        *,
        detect_renames: bool | None = None,
        rename_threshold: int | None = None,
    ) -> None:
        """Initialize the attributor.

        Args:
            handle: The repository to read objects from.
            detect_renames: Pair deletions with additions into renames.
                Defaults to history.detect_renames.
            rename_threshold: Similarity percentage for rename detection.
                Defaults to history.rename_threshold.
        """
        history = handle.config.history
        self._handle: RepositoryHandle = handle
        self._detect_renames: bool = (
            history.detect_renames if detect_renames is None else detect_renames
        )
        self._rename_threshold: int = (
            history.rename_threshold if rename_threshold is None else rename_threshold
        )
        self._logger: FilteringBoundLogger = handle.logger.bind(component="diff")

    def changes(self, commit: Commit | str) -> list[FileChange]:
        """Diff a commit against its first parent.

        Args:
            commit: The commit object, or its SHA.

        Returns:
            One FileChange per changed path pair, in tree order.

        Raises:
            ObjectNotFoundError: If ``commit`` is a SHA that does not exist.
            DiffComputationError: If an object needed for the diff is missing.
        """
        if isinstance(commit, str):
            commit = self._handle.get_commit(commit)

        sha = decode_bytes(commit.id)
        store = self._handle.repo.object_store
        rename_detector = (
            RenameDetector(store, rename_threshold=self._rename_threshold)
            if self._detect_renames
            else None
        )

        try:
            # None stands in for the empty tree on root commits
            parent_tree: bytes | None = None
            if commit.parents:
                parent = store[commit.parents[0]]
                parent_tree = cast("bytes", getattr(parent, "tree", None))

            result = [
                self._to_file_change(change)
                for change in tree_changes(
                    store,
                    parent_tree,
                    cast("bytes", commit.tree),
                    rename_detector=rename_detector,
                )
            ]
        except KeyError as e:
            msg = f"Failed to diff commit {sha}: missing object {e}"
            raise DiffComputationError(msg, operation="diff", target=sha) from e

        self._logger.debug("commit_diffed", commit=sha, files=len(result))
        return result

    def stats(self, commit: Commit | str, path: str) -> FileChangeStat:
        """Count the lines a commit added to and deleted from ``path``.

        Args:
            commit: The commit object, or its SHA.
            path: Repository-relative path; matches either side of a rename.

        Returns:
            The line counts, zero when the commit does not touch the path.
        """
        return stat_for_path(self.changes(commit), path)

    def _to_file_change(self, change: TreeChange) -> FileChange:
        old_path, old_mode, old_sha = _entry_fields(change.old)
        new_path, new_mode, new_sha = _entry_fields(change.new)
        change_type = _CHANGE_TYPES.get(change.type, ChangeType.MODIFY)

        old_content = self._blob_data(old_sha, old_mode)
        new_content = self._blob_data(new_sha, new_mode)
        if old_content is None or new_content is None:
            return FileChange(old_path, new_path, change_type)

        if is_binary(old_content) or is_binary(new_content):
            return FileChange(old_path, new_path, change_type)

        lines = line_changes(
            old_content, new_content, old_path=old_path, new_path=new_path
        )
        return FileChange(old_path, new_path, change_type, lines)

    def _blob_data(self, sha: bytes | None, mode: int | None) -> bytes | None:
        """Read blob content; b"" for a missing side, None for a submodule."""
        if sha is None:
            return b""
        if mode is not None and S_ISGITLINK(mode):
            return None
        blob = self._handle.repo.object_store[sha]
        data: bytes = getattr(blob, "data", b"")
        return data


def stat_for_path(changes: list[FileChange], path: str) -> FileChangeStat:
    """Sum the line counts of every change record that touches ``path``."""
    additions = 0
    deletions = 0
    for change in changes:
        if change.touches(path):
            additions += change.additions
            deletions += change.deletions
    return FileChangeStat(path=path, additions=additions, deletions=deletions)


def _entry_fields(
    entry: TreeEntry | None,
) -> tuple[str | None, int | None, bytes | None]:
    """Unpack a tree entry that may be absent or the null entry."""
    if entry is None or entry.path is None:
        return (None, None, None)
    return (decode_bytes(entry.path), entry.mode, entry.sha)
