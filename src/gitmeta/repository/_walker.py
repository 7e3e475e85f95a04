"""Commit graph traversal."""

import heapq
import threading
from collections.abc import Iterator
from typing import Final, cast

from dulwich.objects import Commit
from structlog.typing import FilteringBoundLogger

from gitmeta.exceptions import OperationCancelledError
from gitmeta.repository._handle import RepositoryHandle
from gitmeta.utils._git import decode_bytes

_HEAD: Final = "HEAD"


class CommitGraphWalker:
    """Walk the commits reachable from a reference, most recent first.

    Commits are ordered by committer time, newest first; commits with equal
    times come out in the order they were discovered. Each commit is produced
    at most once per traversal even if the graph references it repeatedly.

    Example:
        >>> walker = CommitGraphWalker(handle)
        >>> for sha in walker.walk("main"):
        ...     print(sha[:8])
    """

    __slots__: Final = ("_handle", "_logger")

    def __init__(self, handle: RepositoryHandle) -> None:
        self._handle: RepositoryHandle = handle
        self._logger: FilteringBoundLogger = handle.logger.bind(component="walker")

    def walk(
        self,
        ref: str = _HEAD,
        *,
        cancel: threading.Event | None = None,
    ) -> Iterator[str]:
        """Produce the SHAs of all commits reachable from ``ref``.

        The starting reference is resolved before this method returns, so an
        unresolvable start fails at call time rather than on first iteration.
        The returned iterator is lazy and cannot be restarted.

        Args:
            ref: Starting reference (HEAD, branch, tag or commit SHA).
            cancel: When set, the traversal stops before the next commit.

        Returns:
            Iterator of commit SHA hex strings.

        Raises:
            ReferenceResolutionError: If ``ref`` cannot be resolved, including
                HEAD on an empty repository.
        """
        return (decode_bytes(commit.id) for commit in self.commits(ref, cancel=cancel))

    def commits(
        self,
        ref: str = _HEAD,
        *,
        cancel: threading.Event | None = None,
    ) -> Iterator[Commit]:
        """Like walk(), but produce the commit objects themselves.

        Raises:
            ReferenceResolutionError: If ``ref`` cannot be resolved.
        """
        start = self._handle.resolve_commit(ref)
        self._logger.debug("walk_started", ref=ref, start=decode_bytes(start.id))
        return self._traverse(start, ref, cancel)

    def _traverse(
        self,
        start: Commit,
        ref: str,
        cancel: threading.Event | None,
    ) -> Iterator[Commit]:
        # Max-heap on commit time via negation; seq breaks ties by discovery
        seq = 0
        heap: list[tuple[int, int, Commit]] = [(-self._commit_time(start), seq, start)]
        seen: set[bytes] = {start.id}
        visited = 0

        while heap:
            if cancel is not None and cancel.is_set():
                self._logger.debug("walk_cancelled", ref=ref, visited=visited)
                msg = f"Commit traversal from {ref} was cancelled"
                raise OperationCancelledError(msg, operation="walk", target=ref)

            _, _, commit = heapq.heappop(heap)
            visited += 1
            yield commit

            for parent_sha in commit.parents:
                if parent_sha in seen:
                    continue
                seen.add(parent_sha)
                parent = self._handle.get_commit(parent_sha)
                seq += 1
                heapq.heappush(heap, (-self._commit_time(parent), seq, parent))

        self._logger.debug("walk_finished", ref=ref, visited=visited)

    @staticmethod
    def _commit_time(commit: Commit) -> int:
        return cast("int", commit.commit_time)
