"""Shared utilities for gitmeta."""

from gitmeta.utils._author import AuthorInfo, get_author_info
from gitmeta.utils._locking import ReadWriteLock
from gitmeta.utils._logging import create_logger

__all__ = [
    "AuthorInfo",
    "ReadWriteLock",
    "create_logger",
    "get_author_info",
]
