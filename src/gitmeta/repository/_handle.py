"""Repository handle.

This module provides RepositoryHandle, which owns an open dulwich Repo and
offers the reference resolution, object lookup and tree walking primitives
the other repository components are built on.
"""

import stat
from collections.abc import Iterator
from pathlib import Path
from types import TracebackType
from typing import Final, Self, cast

from dulwich.errors import NotGitRepository
from dulwich.objects import S_ISGITLINK, Commit, Tree
from dulwich.objectspec import parse_commit
from dulwich.repo import Repo
from structlog.typing import FilteringBoundLogger

from gitmeta.config import GitMetaConfig
from gitmeta.exceptions import (
    ObjectNotFoundError,
    ReferenceResolutionError,
    RepositoryNotFoundError,
)
from gitmeta.repository._models import CommitRecord
from gitmeta.utils import ReadWriteLock, create_logger
from gitmeta.utils._git import decode_bytes, parse_identity

_HEAD: Final = b"HEAD"


def _open_repo(start: Path, *, operation: str) -> Repo:
    """Open the repository containing ``start``, walking upward.

    Raises:
        RepositoryNotFoundError: If no repository is found.
    """
    try:
        return Repo.discover(str(start))
    except NotGitRepository as e:
        msg = f"Not inside a git repository: {start}"
        raise RepositoryNotFoundError(msg, path=start, operation=operation) from e


def _repo_root(repo: Repo) -> Path:
    return Path(decode_bytes(repo.path)).resolve()


class RepositoryHandle:
    """An open repository session.

    The handle implements the context manager protocol; the underlying dulwich
    Repo is closed when the context exits. Read-only queries should hold
    ``lock.reading()`` and mutations ``lock.writing()``.

    Attributes:
        root: The resolved path to the repository working tree root.
        config: Effective configuration for this repository.
        logger: Logger bound to this repository.
        lock: Reader-writer lock coordinating access to the handle.
    """

    __slots__: Final = ("_config", "_lock", "_logger", "_repo", "_root")

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
            config: Configuration to use. When None, configuration is loaded
                from the default sources with this repository as root.

        Raises:
            RepositoryNotFoundError: If no repository contains working_dir.
        """
        start = working_dir if working_dir is not None else Path.cwd()
        self._repo: Repo = _open_repo(start, operation="open")
        self._root: Path = _repo_root(self._repo)
        self._config: GitMetaConfig = (
            config if config is not None else GitMetaConfig.load(repo_root=self._root)
        )
        self._logger: FilteringBoundLogger = create_logger(
            self._config.logging, repository=str(self._root)
        )
        self._lock: ReadWriteLock = ReadWriteLock()

    # =========================================================================
    # Context Manager Protocol
    # =========================================================================

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying git repository, releasing file handles."""
        self._repo.close()

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def root(self) -> Path:
        return self._root

    @property
    def repo(self) -> Repo:
        """The underlying dulwich Repo."""
        return self._repo

    @property
    def config(self) -> GitMetaConfig:
        return self._config

    @property
    def logger(self) -> FilteringBoundLogger:
        return self._logger

    @property
    def lock(self) -> ReadWriteLock:
        return self._lock

    # =========================================================================
    # Reference Resolution
    # =========================================================================

    def head_sha(self) -> str:
        """Get the commit SHA HEAD resolves to.

        Returns:
            The HEAD commit SHA as a hex string.

        Raises:
            ReferenceResolutionError: If HEAD cannot be resolved, including
                on an empty repository.
        """
        try:
            return decode_bytes(self._repo.head())
        except KeyError as e:
            msg = "HEAD does not resolve to a commit"
            raise ReferenceResolutionError(
                msg, operation="head", target="HEAD"
            ) from e

    def resolve_commit(self, ref: str | bytes = _HEAD) -> Commit:
        """Resolve a reference, tag or SHA to a commit.

        Annotated tags are peeled to the commit they point at.

        Args:
            ref: HEAD, a branch or tag name, a full ref name, or a (possibly
                abbreviated) commit SHA.

        Returns:
            The resolved commit object.

        Raises:
            ReferenceResolutionError: If ``ref`` does not resolve to a commit.
        """
        target = ref.encode() if isinstance(ref, str) else ref
        try:
            return parse_commit(self._repo, target)
        except (KeyError, ValueError) as e:
            msg = f"Cannot resolve reference to a commit: {decode_bytes(target)}"
            raise ReferenceResolutionError(
                msg, operation="resolve", target=decode_bytes(target)
            ) from e

    def get_commit(self, sha: str | bytes) -> Commit:
        """Look up a commit by its full SHA.

        Raises:
            ObjectNotFoundError: If no commit with that SHA exists.
        """
        sha_bytes = sha.encode() if isinstance(sha, str) else sha
        try:
            obj = self._repo.object_store[sha_bytes]
        except KeyError as e:
            msg = f"Commit not found: {decode_bytes(sha_bytes)}"
            raise ObjectNotFoundError(
                msg, operation="lookup", target=decode_bytes(sha_bytes)
            ) from e
        if not isinstance(obj, Commit):
            msg = f"Object is not a commit: {decode_bytes(sha_bytes)}"
            raise ObjectNotFoundError(
                msg, operation="lookup", target=decode_bytes(sha_bytes)
            )
        return obj

    def commit_record(self, commit: Commit) -> CommitRecord:
        """Convert a dulwich commit into a CommitRecord."""
        author_name, author_email = parse_identity(cast("bytes", commit.author))
        return CommitRecord(
            sha=decode_bytes(commit.id),
            message=decode_bytes(cast("bytes", commit.message)),
            author_name=author_name,
            author_email=author_email,
            timestamp=cast("int", commit.commit_time),
            parent_shas=tuple(decode_bytes(p) for p in commit.parents),
            tz_offset=cast("int", commit.commit_timezone),
        )

    # =========================================================================
    # Tree Walking
    # =========================================================================

    def head_tree(self) -> bytes | None:
        """Get the tree SHA of HEAD, or None on an empty repository."""
        try:
            commit = self._repo[self._repo.head()]
        except KeyError:
            return None
        return cast("bytes", getattr(commit, "tree", None))

    def walk_tree(self, tree_sha: bytes) -> Iterator[str]:
        """Yield the blob paths of a tree in pre-order.

        Each subtree is expanded where it sorts among its siblings, matching
        the order git lists the tree in. Submodule entries are skipped.

        Args:
            tree_sha: SHA of the root tree.

        Yields:
            Repository-relative blob paths.
        """
        stack: list[tuple[str, int, bytes]] = [("", stat.S_IFDIR, tree_sha)]
        while stack:
            path, mode, sha = stack.pop()
            if S_ISGITLINK(mode):
                continue
            if not stat.S_ISDIR(mode):
                yield path
                continue
            tree = self._repo.object_store[sha]
            if not isinstance(tree, Tree):
                continue
            prefix = f"{path}/" if path else ""
            children = [
                (f"{prefix}{decode_bytes(entry.path)}", entry.mode, entry.sha)
                for entry in tree.iteritems()
            ]
            # Reversed so the first child is popped next
            stack.extend(reversed(children))
