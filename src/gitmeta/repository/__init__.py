"""gitmeta repository metadata.

This package extracts version-control metadata from a git repository:
last-commit attribution and full history per file, working-tree status,
a merged view of tracked and untracked files, tags and checkouts.

Classes:
    GitMetaRepository: Facade wiring every component around one handle.
    RepositoryHandle: An open repository session.
    CommitGraphWalker: Commits reachable from a reference, newest first.
    DiffAttributor: Per-commit changes against the first parent.
    FileHistoryResolver: Last commit and full history of a path.
    StatusScanner: Working-tree status flags per path.
    FileUniverseMerger: Metadata for every tracked and untracked file.
    TagCatalog: Annotated and lightweight tags.
    CheckoutController: Branch, commit and tag checkouts.

Example:
    >>> from gitmeta.repository import GitMetaRepository
    >>> with GitMetaRepository() as repo:
    ...     meta = repo.get_file_metadata("README.md")
    ...     print(meta.last_commit_sha, meta.last_author_name)
"""

from gitmeta.repository._checkout import CheckoutController
from gitmeta.repository._diff import DiffAttributor, line_changes, stat_for_path
from gitmeta.repository._handle import RepositoryHandle
from gitmeta.repository._history import FileHistoryResolver
from gitmeta.repository._models import (
    UNTRACKED_MESSAGE,
    AnnotatedTag,
    ChangeType,
    CommitRecord,
    CommitResult,
    Detached,
    FileChange,
    FileChangeStat,
    FileMetadata,
    FileStatusEntry,
    HeadState,
    HistoryEntry,
    LightweightTag,
    LineChange,
    LineOrigin,
    OnBranch,
    TagRecord,
)
from gitmeta.repository._repository import (
    GitMetaRepository,
    find_repository,
    get_branch_name,
    init_repository,
    is_git_repository,
)
from gitmeta.repository._status import StatusScanner
from gitmeta.repository._tags import TagCatalog
from gitmeta.repository._universe import FileUniverseMerger
from gitmeta.repository._walker import CommitGraphWalker

__all__ = [
    "UNTRACKED_MESSAGE",
    "AnnotatedTag",
    "ChangeType",
    "CheckoutController",
    "CommitGraphWalker",
    "CommitRecord",
    "CommitResult",
    "Detached",
    "DiffAttributor",
    "FileChange",
    "FileChangeStat",
    "FileHistoryResolver",
    "FileMetadata",
    "FileStatusEntry",
    "FileUniverseMerger",
    "GitMetaRepository",
    "HeadState",
    "HistoryEntry",
    "LightweightTag",
    "LineChange",
    "LineOrigin",
    "OnBranch",
    "RepositoryHandle",
    "StatusScanner",
    "TagCatalog",
    "TagRecord",
    "find_repository",
    "get_branch_name",
    "init_repository",
    "is_git_repository",
    "line_changes",
    "stat_for_path",
]
