"""Directory change notification.

Example:
    >>> from gitmeta.watch import WatcherRegistry
    >>> with WatcherRegistry() as registry:
    ...     registry.watch(Path("."), print)
"""

from gitmeta.exceptions import WatcherError, WatcherExistsError, WatcherNotFoundError
from gitmeta.watch._registry import (
    DEFAULT_IGNORE_PATTERNS,
    EventCallback,
    EventKind,
    FileEvent,
    WatcherRegistry,
)

__all__ = [
    "DEFAULT_IGNORE_PATTERNS",
    "EventCallback",
    "EventKind",
    "FileEvent",
    "WatcherError",
    "WatcherExistsError",
    "WatcherNotFoundError",
    "WatcherRegistry",
]
