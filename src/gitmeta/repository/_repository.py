# ruff: noqa: TC003  # Path needed at runtime for method bodies
"""gitmeta repository facade.

This module provides GitMetaRepository, which wires the history, status,
tag and checkout components around a single repository handle and guards
them with its reader-writer lock, plus module-level discovery helpers.
"""

import threading
from pathlib import Path
from typing import cast

from dulwich import porcelain
from dulwich.errors import NotGitRepository
from dulwich.repo import Repo

from gitmeta.config import GitMetaConfig
from gitmeta.exceptions import RepositoryError
from gitmeta.repository._checkout import CheckoutController
from gitmeta.repository._diff import DiffAttributor
from gitmeta.repository._handle import RepositoryHandle
from gitmeta.repository._history import FileHistoryResolver
from gitmeta.repository._models import (
    CommitResult,
    Detached,
    FileMetadata,
    FileStatusEntry,
    HeadState,
    HistoryEntry,
    OnBranch,
    TagRecord,
)
from gitmeta.repository._status import StatusScanner
from gitmeta.repository._tags import TagCatalog
from gitmeta.repository._universe import FileUniverseMerger
from gitmeta.repository._walker import CommitGraphWalker
from gitmeta.utils._git import branch_ref, decode_bytes, strip_refs_heads


class GitMetaRepository(RepositoryHandle):
    """Version-control metadata for one git repository.

    Read-only queries share the handle's lock; mutations hold it exclusively.

    Example:
        >>> with GitMetaRepository(Path("~/src/project").expanduser()) as repo:
        ...     for meta in repo.list_files_with_metadata():
        ...         print(meta.path, meta.last_commit_sha[:8])
    """

    __slots__ = (
        "_checkout",
        "_diff",
        "_history",
        "_status",
        "_tags",
        "_universe",
        "_walker",
    )

    def __init__(
        self,
        working_dir: Path | None = None,
        *,
        config: GitMetaConfig | None = None,
    ) -> None:
        """Open the repository containing ``working_dir``.

        Args:
            working_dir: Directory to start discovery from. Defaults to the
                current working directory.
            config: Configuration to use; loaded from the default sources
                when None.

        Raises:
            RepositoryNotFoundError: If no repository contains working_dir.
        """
        super().__init__(working_dir, config=config)
        self._walker: CommitGraphWalker = CommitGraphWalker(self)
        self._diff: DiffAttributor = DiffAttributor(self)
        self._history: FileHistoryResolver = FileHistoryResolver(
            self, walker=self._walker, attributor=self._diff
        )
        self._status: StatusScanner = StatusScanner(self)
        self._universe: FileUniverseMerger = FileUniverseMerger(
            self, scanner=self._status, resolver=self._history
        )
        self._tags: TagCatalog = TagCatalog(self)
        self._checkout: CheckoutController = CheckoutController(self)

    # =========================================================================
    # Components
    # =========================================================================

    @property
    def walker(self) -> CommitGraphWalker:
        return self._walker

    @property
    def diff(self) -> DiffAttributor:
        return self._diff

    # =========================================================================
    # References
    # =========================================================================

    def head_commit_sha(self) -> str:
        """Get the commit SHA HEAD points at.

        Raises:
            ReferenceResolutionError: If HEAD does not resolve.
        """
        with self._lock.reading():
            return self.head_sha()

    def current_branch(self) -> str | None:
        """Get the checked-out branch name, or None when HEAD is detached."""
        state = self.head_state()
        return state.name if isinstance(state, OnBranch) else None

    def get_remote_url(self, name: str = "origin") -> str | None:
        """Get the URL of a configured remote, or None if it is not set."""
        with self._lock.reading():
            config = self._repo.get_config()
            try:
                url = config.get((b"remote", name.encode()), b"url")
            except KeyError:
                return None
            return decode_bytes(url)

    def create_branch(self, name: str, target: str = "HEAD") -> str:
        """Create a local branch without checking it out.

        Args:
            name: Branch name without the refs/heads/ prefix.
            target: Reference or SHA the branch starts at.

        Returns:
            SHA of the commit the new branch points at.

        Raises:
            RepositoryError: If the branch already exists.
            ReferenceResolutionError: If ``target`` does not resolve.
        """
        with self._lock.writing():
            if branch_ref(name) in self._repo.refs:
                msg = f"Branch already exists: {name}"
                raise RepositoryError(msg, operation="create_branch", target=name)
            commit = self.resolve_commit(target)
            porcelain.branch_create(self._repo, name, objectish=commit.id)
            self._logger.info(
                "branch_created", branch=name, commit=decode_bytes(commit.id)
            )
            return decode_bytes(commit.id)

    # =========================================================================
    # Staging and Committing
    # =========================================================================

    def add_all(self) -> frozenset[str]:
        """Stage every untracked and modified file that exists on disk.

        Deleted files are not staged. Ignored files are never staged.

        Returns:
            Repository-relative paths that were staged.
        """
        with self._lock.writing():
            entries = self._status.scan(include_ignored=False)
            paths = sorted(
                e.path
                for e in entries
                if (e.is_new or e.is_modified) and (self._root / e.path).exists()
            )
            if paths:
                absolute = [str(self._root / p) for p in paths]
                _ = porcelain.add(self._repo, paths=absolute)
            self._logger.debug("paths_staged", count=len(paths))
            return frozenset(paths)

    def commit(
        self,
        message: str,
        author_name: str,
        author_email: str,
    ) -> CommitResult:
        """Commit the staged changes.

        Args:
            message: Commit message.
            author_name: Author and committer name.
            author_email: Author and committer email.

        Returns:
            CommitResult with the new SHA, or no_changes when nothing is staged.
        """
        with self._lock.writing():
            raw = porcelain.status(self._repo, untracked_files="no")
            staged = cast("dict[str, list[bytes]]", raw.staged)
            if not any(staged.get(kind) for kind in ("add", "delete", "modify")):
                return CommitResult(sha=None, no_changes=True)

            author = f"{author_name} <{author_email}>".encode()
            sha_bytes: bytes = porcelain.commit(
                self._repo,
                message=message.encode(),
                author=author,
                committer=author,
            )
            sha = decode_bytes(sha_bytes)
            self._logger.info("commit_created", commit=sha)
            return CommitResult(sha=sha, no_changes=False)

    # =========================================================================
    # Status and History
    # =========================================================================

    def get_file_status(
        self, *, include_ignored: bool | None = None
    ) -> list[FileStatusEntry]:
        """Scan the working tree; see StatusScanner.scan()."""
        with self._lock.reading():
            return self._status.scan(include_ignored=include_ignored)

    def get_file_metadata(
        self, path: str, *, cancel: threading.Event | None = None
    ) -> FileMetadata:
        """Attribute a path to the last commit that changed it.

        Raises:
            ReferenceResolutionError: If HEAD does not resolve.
            HistoryNotFoundError: If no commit changed the path.
        """
        with self._lock.reading():
            return self._history.resolve_last(path, cancel=cancel)

    def list_files_with_metadata(
        self,
        directory: str | None = None,
        *,
        cancel: threading.Event | None = None,
    ) -> list[FileMetadata]:
        """Resolve metadata for every tracked and untracked file.

        See FileUniverseMerger.list_files().
        """
        with self._lock.reading():
            return self._universe.list_files(directory, cancel=cancel)

    def get_file_history(
        self, path: str, *, cancel: threading.Event | None = None
    ) -> list[HistoryEntry]:
        """List every commit that changed a path, most recent first.

        Raises:
            ReferenceResolutionError: If HEAD does not resolve.
        """
        with self._lock.reading():
            return self._history.resolve_history(path, cancel=cancel)

    # =========================================================================
    # Tags
    # =========================================================================

    def list_tags(self) -> list[TagRecord]:
        with self._lock.reading():
            return self._tags.list_tags()

    def get_tag(self, name: str) -> TagRecord:
        with self._lock.reading():
            return self._tags.get_tag(name)

    def create_tag(
        self, name: str, message: str | None = None, target: str = "HEAD"
    ) -> TagRecord:
        """Create an annotated (with message) or lightweight tag."""
        with self._lock.writing():
            return self._tags.create_tag(name, message, target)

    def delete_tag(self, name: str) -> None:
        with self._lock.writing():
            self._tags.delete_tag(name)

    # =========================================================================
    # Checkout
    # =========================================================================

    def head_state(self) -> HeadState:
        """Report whether HEAD is on a branch or detached."""
        with self._lock.reading():
            return self._checkout.state

    def checkout_branch(self, name: str) -> OnBranch:
        with self._lock.writing():
            return self._checkout.checkout_branch(name)

    def checkout_commit(self, sha: str) -> Detached:
        with self._lock.writing():
            return self._checkout.checkout_commit(sha)

    def checkout_tag(self, name: str) -> Detached:
        with self._lock.writing():
            return self._checkout.checkout_tag(name)


# =============================================================================
# Module Functions
# =============================================================================


def init_repository(
    path: Path, *, config: GitMetaConfig | None = None
) -> GitMetaRepository:
    """Create an empty repository at ``path`` and open it.

    The directory is created if it does not exist.
    """
    path.mkdir(parents=True, exist_ok=True)
    Repo.init(str(path)).close()
    return GitMetaRepository(path, config=config)


def find_repository(start: Path | None = None) -> Path | None:
    """Find the root of the repository containing ``start``.

    Args:
        start: Directory to search upward from. Defaults to the current
            working directory.

    Returns:
        The repository root, or None when ``start`` is not inside one.
    """
    try:
        repo = Repo.discover(str(start if start is not None else Path.cwd()))
    except NotGitRepository:
        return None
    with repo:
        return Path(decode_bytes(repo.path)).resolve()


def is_git_repository(path: Path) -> bool:
    """Check whether ``path`` itself is the root of a repository."""
    try:
        repo = Repo(str(path))
    except NotGitRepository:
        return False
    repo.close()
    return True


def get_branch_name(path: Path) -> str | None:
    """Get the checked-out branch of the repository containing ``path``.

    Returns:
        The branch name, or None when HEAD is detached or ``path`` is not
        inside a repository.
    """
    try:
        repo = Repo.discover(str(path))
    except NotGitRepository:
        return None
    with repo:
        head_ref = repo.refs.get_symrefs().get(b"HEAD")
        if head_ref is None or not head_ref.startswith(b"refs/heads/"):
            return None
        return strip_refs_heads(head_ref)
