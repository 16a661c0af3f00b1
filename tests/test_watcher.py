"""Tests for the watchdog adapter."""

import asyncio
from unittest.mock import MagicMock

import pytest
from watchdog.events import (
    DirModifiedEvent,
    FileClosedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
)

from goup.errors import WatchRegistrationError
from goup.watch import ChangeEvent, DirectoryWatcher, Op, translate


class TestTranslate:
    """Tests for watchdog event translation."""

    def test_modified_is_write(self):
        assert translate(FileModifiedEvent("/p/main.go")) == [ChangeEvent("/p/main.go", Op.WRITE)]

    def test_created(self):
        assert translate(FileCreatedEvent("/p/new.go")) == [ChangeEvent("/p/new.go", Op.CREATE)]

    def test_deleted_is_remove(self):
        assert translate(FileDeletedEvent("/p/old.go")) == [ChangeEvent("/p/old.go", Op.REMOVE)]

    def test_moved_is_rename_plus_create(self):
        events = translate(FileMovedEvent("/p/.main.go.tmp", "/p/main.go"))

        assert events == [
            ChangeEvent("/p/.main.go.tmp", Op.RENAME),
            ChangeEvent("/p/main.go", Op.CREATE),
        ]

    def test_unknown_type_is_other(self):
        assert translate(FileClosedEvent("/p/main.go")) == [ChangeEvent("/p/main.go", Op.OTHER)]

    def test_directory_event(self):
        assert translate(DirModifiedEvent("/p")) == [ChangeEvent("/p", Op.WRITE)]

    def test_bytes_path(self):
        assert translate(FileModifiedEvent(b"/p/main.go")) == [ChangeEvent("/p/main.go", Op.WRITE)]


class TestDirectoryWatcher:
    """Tests for registration and delivery."""

    @pytest.mark.asyncio
    async def test_add_schedules_non_recursive(self, tmp_path):
        observer = MagicMock()
        watcher = DirectoryWatcher(observer_factory=lambda: observer)
        watcher.start(asyncio.get_running_loop())

        watcher.add(str(tmp_path))
        watcher.add(str(tmp_path))

        observer.start.assert_called_once()
        observer.schedule.assert_called_once()
        _, path = observer.schedule.call_args.args
        assert path == str(tmp_path)
        assert observer.schedule.call_args.kwargs["recursive"] is False
        assert watcher.watched == [str(tmp_path)]

    @pytest.mark.asyncio
    async def test_add_missing_directory_fails(self, tmp_path):
        watcher = DirectoryWatcher(observer_factory=MagicMock)
        watcher.start(asyncio.get_running_loop())

        with pytest.raises(WatchRegistrationError, match="failed to register"):
            watcher.add(str(tmp_path / "missing"))

    @pytest.mark.asyncio
    async def test_add_observer_refusal_fails(self, tmp_path):
        observer = MagicMock()
        observer.schedule.side_effect = OSError(28, "inotify watch limit reached")
        watcher = DirectoryWatcher(observer_factory=lambda: observer)
        watcher.start(asyncio.get_running_loop())

        with pytest.raises(WatchRegistrationError) as exc_info:
            watcher.add(str(tmp_path))

        assert exc_info.value.path == str(tmp_path)

    def test_add_before_start_fails(self, tmp_path):
        watcher = DirectoryWatcher(observer_factory=MagicMock)

        with pytest.raises(WatchRegistrationError):
            watcher.add(str(tmp_path))

    @pytest.mark.asyncio
    async def test_handler_delivers_to_loop(self, tmp_path):
        observer = MagicMock()
        watcher = DirectoryWatcher(observer_factory=lambda: observer)
        watcher.start(asyncio.get_running_loop())
        watcher.add(str(tmp_path))
        handler = observer.schedule.call_args.args[0]

        # Called from the observer thread in practice
        await asyncio.to_thread(handler.dispatch, FileModifiedEvent(str(tmp_path / "a.go")))

        item = await asyncio.wait_for(watcher.get(), timeout=1.0)
        assert item == ChangeEvent(str(tmp_path / "a.go"), Op.WRITE)

    @pytest.mark.asyncio
    async def test_translation_error_is_delivered(self, tmp_path):
        observer = MagicMock()
        watcher = DirectoryWatcher(observer_factory=lambda: observer)
        watcher.start(asyncio.get_running_loop())
        watcher.add(str(tmp_path))
        handler = observer.schedule.call_args.args[0]
        bad_event = MagicMock()
        bad_event.src_path = object()

        handler.on_any_event(bad_event)

        item = await asyncio.wait_for(watcher.get(), timeout=1.0)
        assert isinstance(item, Exception)

    @pytest.mark.asyncio
    async def test_stop_joins_observer(self):
        observer = MagicMock()
        watcher = DirectoryWatcher(observer_factory=lambda: observer)
        watcher.start(asyncio.get_running_loop())

        watcher.stop()

        observer.stop.assert_called_once()
        observer.join.assert_called_once_with(timeout=2.0)
        assert not watcher.is_running
