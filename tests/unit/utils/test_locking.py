import threading

import pytest

from gitmeta.utils import ReadWriteLock

_TIMEOUT = 5.0


class TestReadWriteLock:
    def test_readers_share_the_lock(self) -> None:
        lock = ReadWriteLock()

        with lock.reading(), lock.reading():
            assert lock.readers == 2
            assert not lock.write_locked

        assert lock.readers == 0

    def test_writer_holds_lock_alone(self) -> None:
        lock = ReadWriteLock()
        reader_entered = threading.Event()

        def reader() -> None:
            with lock.reading():
                reader_entered.set()

        with lock.writing():
            assert lock.write_locked
            thread = threading.Thread(target=reader)
            thread.start()
            assert not reader_entered.wait(0.1)

        thread.join(_TIMEOUT)
        assert reader_entered.is_set()
        assert not lock.write_locked

    def test_writer_waits_for_readers(self) -> None:
        lock = ReadWriteLock()
        writer_entered = threading.Event()

        def writer() -> None:
            with lock.writing():
                writer_entered.set()

        lock.acquire_read()
        thread = threading.Thread(target=writer)
        thread.start()
        assert not writer_entered.wait(0.1)
        lock.release_read()

        thread.join(_TIMEOUT)
        assert writer_entered.is_set()

    def test_waiting_writer_blocks_new_readers(self) -> None:
        lock = ReadWriteLock()
        order: list[str] = []
        writer_started = threading.Event()

        def writer() -> None:
            writer_started.set()
            with lock.writing():
                order.append("writer")

        def late_reader() -> None:
            with lock.reading():
                order.append("reader")

        lock.acquire_read()
        writer_thread = threading.Thread(target=writer)
        writer_thread.start()
        _ = writer_started.wait(_TIMEOUT)
        # Give the writer time to register as waiting
        while not lock._writers_waiting:  # pyright: ignore[reportPrivateUsage]
            _ = writer_started.wait(0.01)
        reader_thread = threading.Thread(target=late_reader)
        reader_thread.start()
        assert not order
        lock.release_read()

        writer_thread.join(_TIMEOUT)
        reader_thread.join(_TIMEOUT)
        assert order == ["writer", "reader"]

    def test_lock_released_when_block_raises(self) -> None:
        lock = ReadWriteLock()

        with pytest.raises(ValueError, match="inside"), lock.writing():
            raise ValueError("inside")

        assert not lock.write_locked
        with lock.reading():
            assert lock.readers == 1

    def test_unmatched_release_read(self) -> None:
        with pytest.raises(RuntimeError, match="release_read"):
            ReadWriteLock().release_read()

    def test_unmatched_release_write(self) -> None:
        with pytest.raises(RuntimeError, match="release_write"):
            ReadWriteLock().release_write()
