"""Tag catalog.

Each tag reference is resolved exactly once into either an AnnotatedTag (the
reference points at a tag object) or a LightweightTag (the reference points
straight at a commit).
"""

from typing import Final, cast

from dulwich import porcelain
from dulwich.objects import Commit, ShaFile, Tag
from structlog.typing import FilteringBoundLogger

from gitmeta.exceptions import ReferenceResolutionError, TagExistsError
from gitmeta.repository._handle import RepositoryHandle
from gitmeta.repository._models import AnnotatedTag, LightweightTag, TagRecord
from gitmeta.utils import get_author_info
from gitmeta.utils._git import decode_bytes, parse_identity, tag_ref

_TAGS_PREFIX: Final = b"refs/tags"


class _NotACommitError(Exception):
    """A tag ultimately points at something other than a commit."""


class TagCatalog:
    """List, create and delete tags."""

    __slots__: Final = ("_handle", "_logger")

    def __init__(self, handle: RepositoryHandle) -> None:
        self._handle: RepositoryHandle = handle
        self._logger: FilteringBoundLogger = handle.logger.bind(component="tags")

    def list_tags(self) -> list[TagRecord]:
        """List every tag that resolves to a commit, sorted by name.

        Tags pointing at trees or blobs are skipped with a warning.
        """
        refs = self._handle.repo.refs.as_dict(_TAGS_PREFIX)
        records: list[TagRecord] = []
        for name_bytes, sha in sorted(refs.items()):
            name = decode_bytes(name_bytes)
            try:
                records.append(self._resolve(name, sha))
            except _NotACommitError:
                self._logger.warning("tag_skipped", tag=name, sha=decode_bytes(sha))
        return records

    def get_tag(self, name: str) -> TagRecord:
        """Resolve a single tag by name.

        Raises:
            ReferenceResolutionError: If the tag does not exist or does not
                point at a commit.
        """
        sha = self._lookup(name, operation="get_tag")
        try:
            return self._resolve(name, sha)
        except _NotACommitError as e:
            msg = f"Tag does not point at a commit: {name}"
            raise ReferenceResolutionError(msg, operation="get_tag", target=name) from e

    def create_tag(
        self,
        name: str,
        message: str | None = None,
        target: str = "HEAD",
    ) -> TagRecord:
        """Create a tag.

        With a message an annotated tag object is written, tagged by the
        configured user identity. Without one a lightweight reference is
        created.

        Args:
            name: Tag name without the refs/tags/ prefix.
            message: Annotation message, or None for a lightweight tag.
            target: Reference or SHA of the commit to tag.

        Returns:
            The created tag.

        Raises:
            TagExistsError: If a tag with this name already exists.
            ReferenceResolutionError: If ``target`` does not resolve.
        """
        repo = self._handle.repo
        if tag_ref(name) in repo.refs:
            msg = f"Tag already exists: {name}"
            raise TagExistsError(msg, operation="create_tag", target=name)

        commit = self._handle.resolve_commit(target)
        annotated = message is not None
        porcelain.tag_create(
            repo,
            name.encode(),
            author=get_author_info(repo).format() if annotated else None,
            message=message.encode() if message is not None else None,
            annotated=annotated,
            objectish=commit.id,
        )
        self._logger.info(
            "tag_created", tag=name, target=decode_bytes(commit.id), annotated=annotated
        )
        return self.get_tag(name)

    def delete_tag(self, name: str) -> None:
        """Delete a tag reference. The tag object, if any, is left in the store.

        Raises:
            ReferenceResolutionError: If the tag does not exist.
        """
        _ = self._lookup(name, operation="delete_tag")
        porcelain.tag_delete(self._handle.repo, name.encode())
        self._logger.info("tag_deleted", tag=name)

    def _lookup(self, name: str, *, operation: str) -> bytes:
        try:
            return self._handle.repo.refs[tag_ref(name)]
        except KeyError as e:
            msg = f"Tag not found: {name}"
            raise ReferenceResolutionError(msg, operation=operation, target=name) from e

    def _resolve(self, name: str, sha: bytes) -> TagRecord:
        store = self._handle.repo.object_store
        obj: ShaFile = store[sha]

        if isinstance(obj, Tag):
            tagger_name, tagger_email = parse_identity(cast("bytes", obj.tagger or b""))
            # Tag messages are stored with a trailing newline
            message = decode_bytes(cast("bytes", obj.message or b""))
            return AnnotatedTag(
                name=name,
                target_sha=decode_bytes(self._peel(obj).id),
                tag_sha=decode_bytes(obj.id),
                message=message.removesuffix("\n"),
                tagger_name=tagger_name,
                tagger_email=tagger_email,
                tag_time=cast("int", obj.tag_time or 0),
            )

        if isinstance(obj, Commit):
            author_name, author_email = parse_identity(cast("bytes", obj.author))
            return LightweightTag(
                name=name,
                target_sha=decode_bytes(obj.id),
                tagger_name=author_name,
                tagger_email=author_email,
                tag_time=cast("int", obj.author_time),
            )

        raise _NotACommitError(name)

    def _peel(self, tag: Tag) -> Commit:
        """Follow a chain of tag objects to the commit at its end."""
        store = self._handle.repo.object_store
        obj: ShaFile = tag
        while isinstance(obj, Tag):
            _, target_sha = obj.object
            obj = store[target_sha]
        if not isinstance(obj, Commit):
            raise _NotACommitError(decode_bytes(tag.id))
        return obj
