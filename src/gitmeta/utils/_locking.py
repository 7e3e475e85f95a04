"""Reader-writer lock for repository handles."""

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Final


class ReadWriteLock:
    """A writer-preferring reader-writer lock.

    Any number of readers may hold the lock at once; a writer holds it alone.
    Once a writer is waiting, new readers block until it has finished, so a
    steady stream of queries cannot starve a checkout.

    The lock is not reentrant. Acquiring the write side while holding the
    read side on the same thread deadlocks.

    Example:
        >>> lock = ReadWriteLock()
        >>> with lock.reading():
        ...     pass
        >>> with lock.writing():
        ...     pass
    """

    __slots__: Final = ("_cond", "_readers", "_writer", "_writers_waiting")

    def __init__(self) -> None:
        self._cond: threading.Condition = threading.Condition(threading.Lock())
        self._readers: int = 0
        self._writer: bool = False
        self._writers_waiting: int = 0

    def acquire_read(self) -> None:
        """Acquire the shared side, blocking while a writer holds or awaits it."""
        with self._cond:
            while self._writer or self._writers_waiting:
                _ = self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        """Release the shared side.

        Raises:
            RuntimeError: If no reader holds the lock.
        """
        with self._cond:
            if self._readers == 0:
                msg = "release_read() called without a matching acquire_read()"
                raise RuntimeError(msg)
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        """Acquire the exclusive side, blocking until all holders release."""
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    _ = self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True

    def release_write(self) -> None:
        """Release the exclusive side.

        Raises:
            RuntimeError: If no writer holds the lock.
        """
        with self._cond:
            if not self._writer:
                msg = "release_write() called without a matching acquire_write()"
                raise RuntimeError(msg)
            self._writer = False
            self._cond.notify_all()

    @contextmanager
    def reading(self) -> Iterator[None]:
        """Hold the shared side for the duration of the block."""
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def writing(self) -> Iterator[None]:
        """Hold the exclusive side for the duration of the block."""
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()

    @property
    def readers(self) -> int:
        """Number of threads currently holding the shared side."""
        with self._cond:
            return self._readers

    @property
    def write_locked(self) -> bool:
        """Whether a writer currently holds the lock."""
        with self._cond:
            return self._writer
