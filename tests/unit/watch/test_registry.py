import threading
import time
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import TypeAlias

import pytest
from pytest_mock import MockerFixture
from watchfiles import Change

from gitmeta.watch import (
    EventKind,
    FileEvent,
    WatcherError,
    WatcherExistsError,
    WatcherNotFoundError,
    WatcherRegistry,
)
from gitmeta.watch._registry import _build_filter

_TIMEOUT = 5.0

_Batch: TypeAlias = set[tuple[Change, str]]


def _until_stopped(batches: list[_Batch]) -> Callable[..., Iterator[_Batch]]:
    """Fake watchfiles.watch: yield batches, then block until stopped."""

    def fake_watch(
        *_paths: Path, stop_event: threading.Event, **_kwargs: object
    ) -> Iterator[_Batch]:
        yield from batches
        _ = stop_event.wait(_TIMEOUT)

    return fake_watch


class _Collector:
    def __init__(self, expected: int) -> None:
        self.events: list[FileEvent] = []
        self._expected = expected
        self.done = threading.Event()

    def __call__(self, event: FileEvent) -> None:
        self.events.append(event)
        if len(self.events) >= self._expected:
            self.done.set()


class TestWatcherRegistry:
    def test_delivers_events_with_kinds(
        self, tmp_path: Path, mocker: MockerFixture
    ) -> None:
        batch = {
            (Change.added, str(tmp_path / "a.txt")),
            (Change.modified, str(tmp_path / "b.txt")),
            (Change.deleted, str(tmp_path / "c.txt")),
        }
        _ = mocker.patch(
            "gitmeta.watch._registry.watch", side_effect=_until_stopped([batch])
        )
        collector = _Collector(expected=3)

        with WatcherRegistry() as registry:
            registry.watch(tmp_path, collector)
            assert collector.done.wait(_TIMEOUT)

        assert sorted(collector.events, key=lambda e: e.path) == [
            FileEvent(tmp_path / "a.txt", EventKind.CREATE),
            FileEvent(tmp_path / "b.txt", EventKind.MODIFY),
            FileEvent(tmp_path / "c.txt", EventKind.REMOVE),
        ]

    def test_passes_options_to_watchfiles(
        self, tmp_path: Path, mocker: MockerFixture
    ) -> None:
        mock_watch = mocker.patch(
            "gitmeta.watch._registry.watch", side_effect=_until_stopped([])
        )

        with WatcherRegistry() as registry:
            registry.watch(tmp_path, lambda _event: None, recursive=False)
            registry.unwatch(tmp_path)

        args, kwargs = mock_watch.call_args
        assert args == (tmp_path.resolve(),)
        assert kwargs["recursive"] is False
        assert kwargs["raise_interrupt"] is False
        assert kwargs["stop_event"].is_set()
        assert callable(kwargs["watch_filter"])

    def test_rejects_non_directory(self, tmp_path: Path) -> None:
        file_path = tmp_path / "file.txt"
        _ = file_path.write_text("x")

        with WatcherRegistry() as registry, pytest.raises(WatcherError) as exc_info:
            registry.watch(file_path, lambda _event: None)

        assert exc_info.value.path == file_path

    def test_rejects_duplicate_watch(
        self, tmp_path: Path, mocker: MockerFixture
    ) -> None:
        _ = mocker.patch(
            "gitmeta.watch._registry.watch", side_effect=_until_stopped([])
        )

        with WatcherRegistry() as registry:
            registry.watch(tmp_path, lambda _event: None)
            with pytest.raises(WatcherExistsError):
                registry.watch(tmp_path / ".", lambda _event: None)
            assert registry.watched_paths == frozenset({tmp_path.resolve()})

    def test_unwatch_unknown_directory(self, tmp_path: Path) -> None:
        with WatcherRegistry() as registry, pytest.raises(WatcherNotFoundError):
            registry.unwatch(tmp_path)

    def test_unwatch_stops_watcher(
        self, tmp_path: Path, mocker: MockerFixture
    ) -> None:
        _ = mocker.patch(
            "gitmeta.watch._registry.watch", side_effect=_until_stopped([])
        )

        with WatcherRegistry() as registry:
            registry.watch(tmp_path, lambda _event: None)
            assert registry.is_watching(tmp_path)
            registry.unwatch(tmp_path)
            assert not registry.is_watching(tmp_path)
            assert registry.watched_paths == frozenset()

    def test_close_stops_every_watcher(
        self, tmp_path: Path, mocker: MockerFixture
    ) -> None:
        first = tmp_path / "first"
        second = tmp_path / "second"
        first.mkdir()
        second.mkdir()
        mock_watch = mocker.patch(
            "gitmeta.watch._registry.watch", side_effect=_until_stopped([])
        )
        registry = WatcherRegistry()
        registry.watch(first, lambda _event: None)
        registry.watch(second, lambda _event: None)

        registry.close()

        assert registry.watched_paths == frozenset()
        assert all(c.kwargs["stop_event"].is_set() for c in mock_watch.call_args_list)

    def test_failing_callback_does_not_stop_delivery(
        self,
        tmp_path: Path,
        mocker: MockerFixture,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        batches = [
            {(Change.added, str(tmp_path / "boom.txt"))},
            {(Change.added, str(tmp_path / "fine.txt"))},
        ]
        _ = mocker.patch(
            "gitmeta.watch._registry.watch", side_effect=_until_stopped(batches)
        )
        delivered: list[Path] = []
        done = threading.Event()

        def on_event(event: FileEvent) -> None:
            if event.path.name == "boom.txt":
                msg = "callback failure"
                raise RuntimeError(msg)
            delivered.append(event.path)
            done.set()

        with WatcherRegistry() as registry:
            registry.watch(tmp_path, on_event)
            assert done.wait(_TIMEOUT)

        assert delivered == [tmp_path / "fine.txt"]
        assert "watch_callback_failed" in capsys.readouterr().err

    def test_backend_error_removes_watch(
        self, tmp_path: Path, mocker: MockerFixture
    ) -> None:
        _ = mocker.patch(
            "gitmeta.watch._registry.watch", side_effect=OSError("gone")
        )

        with WatcherRegistry() as registry:
            registry.watch(tmp_path, lambda _event: None)
            for _ in range(500):
                if not registry.is_watching(tmp_path):
                    break
                time.sleep(0.01)

            assert not registry.is_watching(tmp_path)

    def test_late_backend_error_keeps_newer_watch(
        self, tmp_path: Path, mocker: MockerFixture
    ) -> None:
        release = threading.Event()
        entered = threading.Event()
        failed_threads: list[threading.Thread] = []
        stale = _until_stopped([])

        def fail_after_release(
            *_paths: Path, stop_event: threading.Event, **_kwargs: object
        ) -> Iterator[_Batch]:
            failed_threads.append(threading.current_thread())
            entered.set()
            _ = release.wait(_TIMEOUT)
            raise OSError("gone")
            yield  # pragma: no cover

        calls = iter([fail_after_release, stale])
        _ = mocker.patch(
            "gitmeta.watch._registry.watch",
            side_effect=lambda *args, **kwargs: next(calls)(*args, **kwargs),
        )
        _ = mocker.patch("gitmeta.watch._registry._STOP_TIMEOUT", 0.01)

        with WatcherRegistry() as registry:
            registry.watch(tmp_path, lambda _event: None)
            assert entered.wait(_TIMEOUT)
            registry.unwatch(tmp_path)
            registry.watch(tmp_path, lambda _event: None)

            release.set()
            for thread in failed_threads:
                thread.join(_TIMEOUT)

            assert failed_threads
            assert registry.is_watching(tmp_path)


class TestBuildFilter:
    def test_default_pattern_hides_git_directory(self, tmp_path: Path) -> None:
        should_watch = _build_filter(tmp_path, [], [".git/"])

        assert not should_watch(Change.modified, str(tmp_path / ".git" / "index"))
        assert should_watch(Change.modified, str(tmp_path / "src" / "a.py"))

    def test_patterns_are_relative_to_root(self, tmp_path: Path) -> None:
        should_watch = _build_filter(tmp_path, [], ["*.log", "build/"])

        assert not should_watch(Change.added, str(tmp_path / "deep" / "x.log"))
        assert not should_watch(Change.added, str(tmp_path / "build" / "out.o"))
        assert should_watch(Change.added, str(tmp_path / "src" / "build.py"))

    def test_ignore_paths_drop_whole_subtree(self, tmp_path: Path) -> None:
        vendor = tmp_path / "vendor"
        should_watch = _build_filter(tmp_path, [vendor], [])

        assert not should_watch(Change.added, str(vendor))
        assert not should_watch(Change.added, str(vendor / "lib" / "x.py"))
        assert should_watch(Change.added, str(tmp_path / "vendored.txt"))
