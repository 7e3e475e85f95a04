"""Common git utility functions.

This module provides shared helper functions for byte/string conversion,
reference name handling and identity parsing.
"""

from datetime import UTC, datetime, timedelta, timezone
from typing import Final

_REFS_HEADS: Final = "refs/heads/"
_REFS_TAGS: Final = "refs/tags/"


def decode_bytes(value: bytes | str) -> str:
    """Decode bytes to str if needed.

    Args:
        value: A bytes or str value.

    Returns:
        The value as a string. Undecodable bytes are replaced.
    """
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value


def strip_refs_heads(branch: bytes | str | None) -> str | None:
    """Strip refs/heads/ prefix from a branch reference.

    Args:
        branch: Branch reference (bytes or str), possibly with refs/heads/ prefix.

    Returns:
        Branch name without prefix, or None if input is None.
    """
    if branch is None:
        return None
    branch_str = decode_bytes(branch)
    if branch_str.startswith(_REFS_HEADS):
        return branch_str[len(_REFS_HEADS) :]
    return branch_str


def branch_ref(name: str) -> bytes:
    """Build the full ``refs/heads/<name>`` reference for a branch name."""
    return f"{_REFS_HEADS}{name}".encode()


def tag_ref(name: str) -> bytes:
    """Build the full ``refs/tags/<name>`` reference for a tag name."""
    return f"{_REFS_TAGS}{name}".encode()


def parse_identity(identity: bytes) -> tuple[str, str]:
    """Split a git identity line into name and email.

    Args:
        identity: Identity bytes in "Name <email>" format.

    Returns:
        Tuple of (name, email). The email is empty when the line carries no
        angle-bracketed part.
    """
    identity_str = decode_bytes(identity)
    if "<" in identity_str and identity_str.endswith(">"):
        name_part, email_part = identity_str.rsplit("<", 1)
        return (name_part.strip(), email_part.rstrip(">"))
    return (identity_str.strip(), "")


def to_datetime(timestamp: int, tz_offset: int = 0) -> datetime:
    """Convert a git timestamp and offset to an aware datetime.

    Args:
        timestamp: Unix timestamp in seconds.
        tz_offset: Offset from UTC in seconds as dulwich stores it on commit
            and tag objects (positive = east of UTC).

    Returns:
        Datetime in the offset's timezone.
    """
    if tz_offset == 0:
        return datetime.fromtimestamp(timestamp, tz=UTC)
    return datetime.fromtimestamp(timestamp, tz=timezone(timedelta(seconds=tz_offset)))
