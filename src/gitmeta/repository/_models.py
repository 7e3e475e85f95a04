"""gitmeta repository models.

This module defines the immutable records produced by the repository
components: commits, per-file change records, file metadata, status entries,
tags and HEAD states.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Final, Self, TypeAlias

from gitmeta.utils._git import to_datetime

UNTRACKED_MESSAGE: Final = "Untracked file"


class LineOrigin(StrEnum):
    """Which side of a diff a changed line belongs to."""

    ADDED = "+"
    DELETED = "-"


class ChangeType(StrEnum):
    """Kind of change a diff record describes."""

    ADD = "add"
    DELETE = "delete"
    MODIFY = "modify"
    RENAME = "rename"
    COPY = "copy"


@dataclass(frozen=True, slots=True)
class CommitRecord:
    """A commit as read from the object store.

    Attributes:
        sha: Full 40-character commit SHA hex string.
        message: Complete commit message (subject + body).
        author_name: Author name from commit.
        author_email: Author email from commit.
        timestamp: Committer time in seconds since the epoch.
        parent_shas: SHA hex strings of parent commits, first parent first.
        tz_offset: Committer timezone offset in seconds east of UTC.
    """

    sha: str
    message: str
    author_name: str
    author_email: str
    timestamp: int
    parent_shas: tuple[str, ...]
    tz_offset: int = 0

    @property
    def committed_at(self) -> datetime:
        """Committer time as an aware datetime."""
        return to_datetime(self.timestamp, self.tz_offset)


@dataclass(frozen=True, slots=True)
class FileChangeStat:
    """Added and deleted line counts for one path in one commit.

    Attributes:
        path: Repository-relative path.
        additions: Number of lines added.
        deletions: Number of lines deleted.
    """

    path: str
    additions: int = 0
    deletions: int = 0


@dataclass(frozen=True, slots=True)
class LineChange:
    """A single changed line attributed to the paths of its diff record.

    Attributes:
        old_path: Path on the parent side, None for an addition.
        new_path: Path on the commit side, None for a deletion.
        origin: Whether the line was added or deleted.
    """

    old_path: str | None
    new_path: str | None
    origin: LineOrigin


@dataclass(frozen=True, slots=True)
class FileChange:
    """One changed path pair between a commit and its first parent.

    Attributes:
        old_path: Path on the parent side, None for an added file.
        new_path: Path on the commit side, None for a deleted file.
        change_type: Kind of change.
        lines: Changed lines, deletions before additions within each hunk.
            Empty for binary content and for changes with no line effect.
    """

    old_path: str | None
    new_path: str | None
    change_type: ChangeType
    lines: tuple[LineChange, ...] = ()

    @property
    def additions(self) -> int:
        """Number of added lines."""
        return sum(1 for line in self.lines if line.origin is LineOrigin.ADDED)

    @property
    def deletions(self) -> int:
        """Number of deleted lines."""
        return sum(1 for line in self.lines if line.origin is LineOrigin.DELETED)

    @property
    def path(self) -> str:
        """The path the change is reported under (new path when present)."""
        return self.new_path or self.old_path or ""

    @property
    def paths(self) -> frozenset[str]:
        """Every distinct path the record references."""
        return frozenset(p for p in (self.old_path, self.new_path) if p)

    def touches(self, path: str) -> bool:
        """Whether the change counts as a change to ``path``.

        Changed lines match the paths they are recorded under. A rename or
        copy between two paths also matches both of them without any changed
        lines. Any other record without changed lines matches nothing.
        """
        if any(path in (line.old_path, line.new_path) for line in self.lines):
            return True
        return (
            self.change_type in (ChangeType.RENAME, ChangeType.COPY)
            and self.old_path != self.new_path
            and path in self.paths
        )

    def to_stat(self) -> FileChangeStat:
        """Collapse the line records into a FileChangeStat."""
        return FileChangeStat(
            path=self.path, additions=self.additions, deletions=self.deletions
        )


@dataclass(frozen=True, slots=True)
class FileMetadata:
    """Last-commit attribution for a single path.

    Untracked files carry an empty commit SHA, the untracked message, an
    empty author, zero time and zero line counts.

    Attributes:
        path: Repository-relative path.
        last_commit_sha: SHA of the last commit touching the path, empty for
            untracked files.
        last_commit_message: Message of that commit.
        last_author_name: Author name of that commit.
        last_author_email: Author email of that commit.
        last_commit_time: Committer time of that commit in seconds.
        added_lines: Lines added to the path by that commit.
        deleted_lines: Lines deleted from the path by that commit.
    """

    path: str
    last_commit_sha: str
    last_commit_message: str
    last_author_name: str
    last_author_email: str
    last_commit_time: int
    added_lines: int = 0
    deleted_lines: int = 0

    @property
    def is_untracked(self) -> bool:
        """True for synthesized metadata of a file with no history."""
        return not self.last_commit_sha

    @classmethod
    def untracked(
        cls, path: str, message: str = UNTRACKED_MESSAGE
    ) -> Self:
        """Build the placeholder metadata for an untracked file."""
        return cls(
            path=path,
            last_commit_sha="",
            last_commit_message=message,
            last_author_name="",
            last_author_email="",
            last_commit_time=0,
        )

    @classmethod
    def from_commit(
        cls, path: str, commit: CommitRecord, stat: FileChangeStat
    ) -> Self:
        """Attribute ``path`` to ``commit`` with the given line counts."""
        return cls(
            path=path,
            last_commit_sha=commit.sha,
            last_commit_message=commit.message,
            last_author_name=commit.author_name,
            last_author_email=commit.author_email,
            last_commit_time=commit.timestamp,
            added_lines=stat.additions,
            deleted_lines=stat.deletions,
        )


@dataclass(frozen=True, slots=True)
class HistoryEntry:
    """One commit in a file's history.

    Attributes:
        sha: Full commit SHA hex string.
        message: Complete commit message.
        author_name: Author name.
        author_email: Author email.
        timestamp: Committer time in seconds.
        parent_shas: Parent SHA hex strings, first parent first.
        added_lines: Lines added to the queried path by this commit.
        deleted_lines: Lines deleted from the queried path by this commit.
    """

    sha: str
    message: str
    author_name: str
    author_email: str
    timestamp: int
    parent_shas: tuple[str, ...]
    added_lines: int = 0
    deleted_lines: int = 0

    @classmethod
    def from_commit(
        cls, commit: CommitRecord, stat: FileChangeStat
    ) -> Self:
        """Build an entry from a commit and the queried path's line counts."""
        return cls(
            sha=commit.sha,
            message=commit.message,
            author_name=commit.author_name,
            author_email=commit.author_email,
            timestamp=commit.timestamp,
            parent_shas=commit.parent_shas,
            added_lines=stat.additions,
            deleted_lines=stat.deletions,
        )


@dataclass(frozen=True, slots=True)
class FileStatusEntry:
    """Working-tree status of one path. Flags are independent.

    Attributes:
        path: Repository-relative path.
        is_new: Staged as an addition, or untracked.
        is_modified: Content differs from HEAD or the index.
        is_deleted: Removed from the index or from disk.
        is_renamed: Staged rename from ``old_path``; the target is also new.
        is_ignored: Matched by an ignore rule.
        old_path: Source path of a staged rename.
    """

    path: str
    is_new: bool = False
    is_modified: bool = False
    is_deleted: bool = False
    is_renamed: bool = False
    is_ignored: bool = False
    old_path: str | None = None


@dataclass(frozen=True, slots=True)
class AnnotatedTag:
    """A tag stored as its own object.

    Attributes:
        name: Tag name without the refs/tags/ prefix.
        target_sha: SHA of the commit the tag ultimately points at.
        tag_sha: SHA of the tag object itself.
        message: Tag message.
        tagger_name: Tagger name.
        tagger_email: Tagger email.
        tag_time: Tag time in seconds.
    """

    name: str
    target_sha: str
    tag_sha: str
    message: str
    tagger_name: str
    tagger_email: str
    tag_time: int

    @property
    def is_annotated(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class LightweightTag:
    """A tag reference pointing directly at a commit.

    The message is always empty; identity and time come from the target
    commit's author.
    """

    name: str
    target_sha: str
    tagger_name: str
    tagger_email: str
    tag_time: int
    message: str = field(default="", init=False)

    @property
    def is_annotated(self) -> bool:
        return False


TagRecord: TypeAlias = AnnotatedTag | LightweightTag


@dataclass(frozen=True, slots=True)
class OnBranch:
    """HEAD is a symbolic reference to a local branch."""

    name: str


@dataclass(frozen=True, slots=True)
class Detached:
    """HEAD points directly at a commit."""

    commit_sha: str


HeadState: TypeAlias = OnBranch | Detached


@dataclass(frozen=True, slots=True)
class CommitResult:
    """Result of a commit operation.

    Attributes:
        sha: Commit SHA hex string, None if no_changes.
        no_changes: True if nothing was committed.
    """

    sha: str | None
    no_changes: bool
