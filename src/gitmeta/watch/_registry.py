"""Directory watcher registry built on watchfiles.

Each registered directory gets its own background thread running
``watchfiles.watch``. Events are delivered to the directory's callback as
FileEvent records. The registry owns every watcher it starts; closing it stops
them all.
"""

import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from types import TracebackType
from typing import Final, Self, TypeAlias

from pathspec import PathSpec
from structlog.typing import FilteringBoundLogger
from watchfiles import Change, watch

from gitmeta.config import LoggingConfig
from gitmeta.exceptions import WatcherError, WatcherExistsError, WatcherNotFoundError
from gitmeta.utils import create_logger

DEFAULT_IGNORE_PATTERNS: Final = (".git/",)

_STOP_TIMEOUT: Final = 5.0


class EventKind(StrEnum):
    """Kind of filesystem change."""

    CREATE = "create"
    MODIFY = "modify"
    REMOVE = "remove"


_CHANGE_KINDS: Final = {
    Change.added: EventKind.CREATE,
    Change.modified: EventKind.MODIFY,
    Change.deleted: EventKind.REMOVE,
}


@dataclass(frozen=True, slots=True)
class FileEvent:
    """A change to one path under a watched directory.

    Attributes:
        path: Absolute path of the changed file or directory.
        kind: What happened to it.
    """

    path: Path
    kind: EventKind


EventCallback: TypeAlias = Callable[[FileEvent], None]


@dataclass(slots=True)
class _Watch:
    root: Path
    thread: threading.Thread
    stop_event: threading.Event


def _build_filter(
    root: Path,
    ignore_paths: Iterable[Path],
    ignore_patterns: Iterable[str],
) -> Callable[[Change, str], bool]:
    """Build a watchfiles filter rejecting ignored paths.

    Args:
        root: The watched directory; patterns match paths relative to it.
        ignore_paths: Paths whose whole subtree is ignored.
        ignore_patterns: Gitignore-style patterns.

    Returns:
        A filter returning True for changes that should be reported.
    """
    prefixes = [p.resolve() for p in ignore_paths]
    spec = PathSpec.from_lines("gitwildmatch", list(ignore_patterns))

    def should_watch(_change: Change, changed_path: str) -> bool:
        changed = Path(changed_path)
        if any(
            changed == prefix or changed.is_relative_to(prefix) for prefix in prefixes
        ):
            return False
        try:
            rel_path = changed.relative_to(root)
        except ValueError:
            # Path not relative to watched dir, use absolute
            return not spec.match_file(changed_path)
        return not spec.match_file(rel_path.as_posix())

    return should_watch


class WatcherRegistry:
    """Owns the directory watchers started through it.

    The registry is a context manager; leaving the context stops every
    watcher. Callbacks run on the watcher's background thread.

    Example:
        >>> events = []
        >>> with WatcherRegistry() as registry:
        ...     registry.watch(Path("docs"), events.append)
        ...     ...
        ...     registry.unwatch(Path("docs"))
    """

    __slots__: Final = ("_lock", "_logger", "_watches")

    def __init__(self, logging_config: LoggingConfig | None = None) -> None:
        self._watches: dict[Path, _Watch] = {}
        self._lock: threading.Lock = threading.Lock()
        self._logger: FilteringBoundLogger = create_logger(
            logging_config, component="watch"
        )

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    @property
    def watched_paths(self) -> frozenset[Path]:
        """Directories with a running watcher."""
        with self._lock:
            return frozenset(self._watches)

    def is_watching(self, path: Path) -> bool:
        with self._lock:
            return path.resolve() in self._watches

    def watch(
        self,
        path: Path,
        on_event: EventCallback,
        *,
        recursive: bool = True,
        ignore_paths: Iterable[Path] = (),
        ignore_patterns: Iterable[str] = DEFAULT_IGNORE_PATTERNS,
    ) -> None:
        """Start watching a directory.

        Args:
            path: Directory to watch.
            on_event: Called with each FileEvent on the watcher thread.
            recursive: Also watch subdirectories.
            ignore_paths: Subtrees whose events are dropped.
            ignore_patterns: Gitignore-style patterns, relative to ``path``,
                whose events are dropped.

        Raises:
            WatcherError: If ``path`` is not an existing directory.
            WatcherExistsError: If ``path`` is already being watched.
        """
        root = path.resolve()
        if not root.is_dir():
            msg = f"Cannot watch a path that is not a directory: {path}"
            raise WatcherError(msg, path=path)

        with self._lock:
            if root in self._watches:
                msg = f"Directory is already being watched: {path}"
                raise WatcherExistsError(msg, path=root)

            stop_event = threading.Event()
            watch_filter = _build_filter(root, ignore_paths, ignore_patterns)
            thread = threading.Thread(
                target=self._run,
                args=(root, on_event, recursive, watch_filter, stop_event),
                name=f"gitmeta-watch:{root}",
                daemon=True,
            )
            self._watches[root] = _Watch(
                root=root, thread=thread, stop_event=stop_event
            )
            thread.start()

        self._logger.info("watch_started", path=str(root), recursive=recursive)

    def unwatch(self, path: Path) -> None:
        """Stop watching a directory and wait for its thread to exit.

        Raises:
            WatcherNotFoundError: If ``path`` is not being watched.
        """
        root = path.resolve()
        with self._lock:
            entry = self._watches.pop(root, None)
        if entry is None:
            msg = f"Directory is not being watched: {path}"
            raise WatcherNotFoundError(msg, path=root)
        self._stop(entry)

    def close(self) -> None:
        """Stop every watcher."""
        with self._lock:
            entries = list(self._watches.values())
            self._watches.clear()
        for entry in entries:
            self._stop(entry)

    def _stop(self, entry: _Watch) -> None:
        entry.stop_event.set()
        if entry.thread is not threading.current_thread():
            entry.thread.join(timeout=_STOP_TIMEOUT)
        self._logger.info("watch_stopped", path=str(entry.root))

    def _run(
        self,
        root: Path,
        on_event: EventCallback,
        recursive: bool,  # noqa: FBT001
        watch_filter: Callable[[Change, str], bool],
        stop_event: threading.Event,
    ) -> None:
        try:
            for changes in watch(
                root,
                recursive=recursive,
                watch_filter=watch_filter,
                stop_event=stop_event,
                raise_interrupt=False,
            ):
                for change, changed_path in sorted(changes):
                    event = FileEvent(
                        path=Path(changed_path), kind=_CHANGE_KINDS[change]
                    )
                    try:
                        on_event(event)
                    except Exception:
                        self._logger.exception(
                            "watch_callback_failed", path=changed_path
                        )
        except OSError:
            # Directory removed or watcher backend failed; the watch is over
            self._logger.exception("watch_failed", path=str(root))
            with self._lock:
                # A newer watch of the same root may have replaced this one
                current = self._watches.get(root)
                if current is not None and current.stop_event is stop_event:
                    del self._watches[root]
