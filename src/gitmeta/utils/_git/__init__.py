"""Git helpers shared by the repository components."""

from gitmeta.utils._git._common import (
    branch_ref,
    decode_bytes,
    parse_identity,
    strip_refs_heads,
    tag_ref,
    to_datetime,
)

__all__ = [
    "branch_ref",
    "decode_bytes",
    "parse_identity",
    "strip_refs_heads",
    "tag_ref",
    "to_datetime",
]
