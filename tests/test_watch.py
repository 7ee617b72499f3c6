import asyncio
import os
from unittest.mock import patch

import pytest
from watchdog.events import FileModifiedEvent, FileMovedEvent

from csv2html import watch
from csv2html.errors import WatchError
from csv2html.watch import WatchSession, WatchState, file_is_ready


class FakeObserver:
    """Stands in for a watchdog Observer; events are injected by the test."""

    def __init__(self):
        self.handler = None
        self.watched = None
        self.alive = False
        self.joined = False

    def schedule(self, handler, path, recursive=False):
        self.handler = handler
        self.watched = path

    def start(self):
        self.alive = True

    def stop(self):
        self.alive = False

    def join(self, timeout=None):
        self.joined = True

    def is_alive(self):
        return self.alive


def _session(path, observer, **kwargs):
    return WatchSession(str(path), observer_factory=lambda: observer, **kwargs)


def test_file_is_ready(tmp_path):
    path = tmp_path / "data.csv"
    assert file_is_ready(str(path)) is False  # missing: replace in progress
    path.write_text("")
    assert file_is_ready(str(path)) is False  # truncated: rewrite in progress
    path.write_text("a\n")
    assert file_is_ready(str(path)) is True


def test_stat_failure_is_a_watch_error(tmp_path):
    with patch.object(watch.os, "stat", side_effect=PermissionError(13, "Permission denied")):
        with pytest.raises(WatchError, match="stat file"):
            file_is_ready(str(tmp_path / "data.csv"))


def test_empty_file_keeps_watching_until_content(tmp_path):
    path = tmp_path / "data.csv"
    path.write_text("a,b\n")
    observer = FakeObserver()

    async def scenario():
        async with _session(path, observer) as session:
            waiter = asyncio.ensure_future(session.wait())

            path.write_text("")
            session.notify_change("modified")
            await asyncio.sleep(0.05)
            assert not waiter.done()
            assert session.state is WatchState.WATCHING

            path.write_text("a,b\n1,2\n")
            session.notify_change("modified")
            return await asyncio.wait_for(waiter, 1)

    assert asyncio.run(scenario()) is WatchState.SIGNALED
    assert observer.watched == os.path.dirname(os.path.realpath(path))
    assert observer.joined
    assert not observer.alive


def test_missing_file_during_replace_keeps_watching(tmp_path):
    path = tmp_path / "data.csv"
    path.write_text("old\n")
    observer = FakeObserver()

    async def scenario():
        async with _session(path, observer) as session:
            waiter = asyncio.ensure_future(session.wait())

            path.unlink()
            session.notify_change("deleted")
            await asyncio.sleep(0.05)
            assert not waiter.done()

            staged = tmp_path / "data.csv.tmp"
            staged.write_text("new\n")
            staged.rename(path)
            session.notify_change("moved")
            return await asyncio.wait_for(waiter, 1)

    assert asyncio.run(scenario()) is WatchState.SIGNALED


def test_handler_only_forwards_events_for_the_watched_file(tmp_path):
    path = tmp_path / "data.csv"
    path.write_text("a\n")
    observer = FakeObserver()

    async def scenario():
        async with _session(path, observer) as session:
            observer.handler.dispatch(FileModifiedEvent(str(tmp_path / "other.csv")))
            await asyncio.sleep(0)
            assert session._queue.qsize() == 0

            observer.handler.dispatch(FileMovedEvent(str(tmp_path / "data.csv.tmp"), str(path)))
            return await asyncio.wait_for(session.wait(), 1)

    assert asyncio.run(scenario()) is WatchState.SIGNALED


def test_watcher_error_fails_the_session(tmp_path):
    path = tmp_path / "data.csv"
    path.write_text("a\n")
    observer = FakeObserver()

    async def scenario():
        async with _session(path, observer) as session:
            session.notify_error("queue overflow")
            with pytest.raises(WatchError, match="watcher error: queue overflow"):
                await session.wait()
            return session.state

    assert asyncio.run(scenario()) is WatchState.FAILED


def test_dead_observer_thread_fails_the_session(tmp_path):
    path = tmp_path / "data.csv"
    path.write_text("a\n")
    observer = FakeObserver()

    async def scenario():
        async with _session(path, observer, liveness_interval=0.01) as session:
            observer.alive = False
            with pytest.raises(WatchError, match="observer thread exited"):
                await asyncio.wait_for(session.wait(), 1)

    asyncio.run(scenario())


def test_disconnect_cancels_the_wait(tmp_path):
    path = tmp_path / "data.csv"
    path.write_text("a\n")
    observer = FakeObserver()

    async def scenario():
        gone = asyncio.Event()
        async with _session(path, observer) as session:
            waiter = asyncio.ensure_future(session.wait(gone.wait))
            await asyncio.sleep(0.01)
            gone.set()
            return await asyncio.wait_for(waiter, 1)

    assert asyncio.run(scenario()) is WatchState.CANCELLED
    assert observer.joined


def test_only_first_outcome_counts(tmp_path):
    path = tmp_path / "data.csv"
    path.write_text("a\n")
    observer = FakeObserver()

    async def scenario():
        async with _session(path, observer) as session:
            session.notify_change("modified")
            session.notify_error("late")
            session.cancel()
            return await session.wait()

    assert asyncio.run(scenario()) is WatchState.SIGNALED


def test_missing_file_cannot_be_watched(tmp_path):
    session = WatchSession(str(tmp_path / "missing.csv"), observer_factory=FakeObserver)

    async def scenario():
        with pytest.raises(WatchError, match="add file to watcher"):
            async with session:
                pass

    asyncio.run(scenario())
    assert session.state is WatchState.FAILED
