"""Checkout state machine.

HEAD is either attached to a local branch (OnBranch) or detached at a commit
(Detached). Only checkout_branch() attaches HEAD; checking out a commit or a
tag always detaches it.
"""

from typing import Final

from dulwich import porcelain
from dulwich.objects import Commit
from structlog.typing import FilteringBoundLogger

from gitmeta.exceptions import (
    CheckoutConflictError,
    ReferenceResolutionError,
)
from gitmeta.repository._handle import RepositoryHandle
from gitmeta.repository._models import Detached, HeadState, OnBranch
from gitmeta.utils._git import branch_ref, decode_bytes, strip_refs_heads, tag_ref

_SHA_HEX_LENGTH: Final = 40


class CheckoutController:
    """Move HEAD and the working tree between branches, tags and commits.

    Local modifications that the target would overwrite abort the checkout
    with CheckoutConflictError; nothing is merged.
    """

    __slots__: Final = ("_handle", "_logger")

    def __init__(self, handle: RepositoryHandle) -> None:
        self._handle: RepositoryHandle = handle
        self._logger: FilteringBoundLogger = handle.logger.bind(component="checkout")

    @property
    def state(self) -> HeadState:
        """The current HEAD state.

        An unborn branch on an empty repository is reported as OnBranch.

        Raises:
            ReferenceResolutionError: If HEAD is detached and does not resolve.
        """
        symrefs = self._handle.repo.refs.get_symrefs()
        head_ref = symrefs.get(b"HEAD")
        if head_ref is not None and head_ref.startswith(b"refs/heads/"):
            return OnBranch(strip_refs_heads(head_ref) or "")
        return Detached(self._handle.head_sha())

    def checkout_branch(self, name: str) -> OnBranch:
        """Check out a local branch and attach HEAD to it.

        Args:
            name: Branch name without the refs/heads/ prefix.

        Returns:
            The new state.

        Raises:
            ReferenceResolutionError: If the branch does not exist.
            CheckoutConflictError: If local changes would be overwritten.
        """
        try:
            tip = self._handle.repo.refs[branch_ref(name)]
        except KeyError as e:
            msg = f"Branch not found: {name}"
            raise ReferenceResolutionError(
                msg, operation="checkout_branch", target=name
            ) from e

        self._apply(name, operation="checkout_branch", target=name)
        self._logger.info("branch_checked_out", branch=name, commit=decode_bytes(tip))
        return OnBranch(name)

    def checkout_commit(self, sha: str) -> Detached:
        """Check out a commit with a detached HEAD.

        Args:
            sha: Full or abbreviated commit SHA.

        Returns:
            The new state.

        Raises:
            ObjectNotFoundError: If a full SHA names no commit.
            ReferenceResolutionError: If an abbreviated SHA does not resolve.
            CheckoutConflictError: If local changes would be overwritten.
        """
        if len(sha) == _SHA_HEX_LENGTH:
            commit = self._handle.get_commit(sha)
        else:
            commit = self._handle.resolve_commit(sha)
        return self._detach(commit, operation="checkout_commit", target=sha)

    def checkout_tag(self, name: str) -> Detached:
        """Check out the commit a tag points at, with a detached HEAD.

        Args:
            name: Tag name without the refs/tags/ prefix.

        Returns:
            The new state.

        Raises:
            ReferenceResolutionError: If the tag does not exist.
            CheckoutConflictError: If local changes would be overwritten.
        """
        commit = self._handle.resolve_commit(tag_ref(name))
        return self._detach(commit, operation="checkout_tag", target=name)

    def _detach(self, commit: Commit, *, operation: str, target: str) -> Detached:
        sha = decode_bytes(commit.id)
        self._apply(sha, operation=operation, target=target)
        self._logger.info("head_detached", target=target, commit=sha)
        return Detached(sha)

    def _apply(self, checkout_target: str, *, operation: str, target: str) -> None:
        """Run the tree checkout, translating conflicts."""
        try:
            porcelain.checkout(self._handle.repo, checkout_target)
        except porcelain.CheckoutError as e:
            msg = f"Checkout of {target} would overwrite local changes: {e}"
            raise CheckoutConflictError(msg, operation=operation, target=target) from e
