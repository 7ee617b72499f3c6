"""
File-change notification for the live-reload long poll.

A WatchSession lives for one /watch connection. It schedules a watchdog
observer on the directory of the watched file and funnels three sources into
one asyncio queue: filesystem events for that file, watcher failures, and the
client going away. The first item that ends the session wins; the other
producers are cancelled.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import os
from typing import Any, Awaitable, Callable, Optional

from fastapi.concurrency import run_in_threadpool
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .errors import WatchError
from .rules import WATCH_EVENT_TYPES, WATCH_JOIN_TIMEOUT, WATCH_LIVENESS_INTERVAL

logger = logging.getLogger(__name__)


class WatchState(str, enum.Enum):
    WATCHING = "watching"
    SIGNALED = "signaled"
    FAILED = "failed"
    CANCELLED = "cancelled"


def file_is_ready(path: str) -> bool:
    """
    Decide whether a change to ``path`` should be reported.

    A missing file is taken as an atomic replace in progress and an empty file
    as a truncate before rewrite; both mean "keep waiting".
    """
    try:
        st = os.stat(path)
    except FileNotFoundError:
        return False
    except OSError as exc:
        raise WatchError(f"stat file: {exc}") from exc
    return st.st_size > 0


class _PathEventHandler(FileSystemEventHandler):
    """Forwards events that touch one file to a WatchSession."""

    def __init__(self, session: "WatchSession"):
        super().__init__()
        self.session = session

    def _touches(self, event: FileSystemEvent) -> bool:
        paths = [event.src_path, getattr(event, "dest_path", "")]
        return any(p and os.path.realpath(os.fsdecode(p)) == self.session.path for p in paths)

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type not in WATCH_EVENT_TYPES:
            return
        if self._touches(event):
            self.session.notify_change(event.event_type)


class WatchSession:
    def __init__(
        self,
        path: str,
        observer_factory: Callable[[], Any] = Observer,
        liveness_interval: float = WATCH_LIVENESS_INTERVAL,
    ):
        self.path = os.path.realpath(path)
        self.state = WatchState.WATCHING
        self._observer_factory = observer_factory
        self._liveness_interval = liveness_interval
        self._observer = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._queue: Optional[asyncio.Queue] = None

    async def __aenter__(self) -> "WatchSession":
        self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def start(self) -> None:
        """Acquire the watch. Must be called from the event loop that will wait on it."""
        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()
        try:
            os.stat(self.path)
            observer = self._observer_factory()
            observer.schedule(_PathEventHandler(self), os.path.dirname(self.path), recursive=False)
            observer.start()
        except OSError as exc:
            self.state = WatchState.FAILED
            raise WatchError(f"add file to watcher: {exc}") from exc
        self._observer = observer

    async def close(self) -> None:
        observer, self._observer = self._observer, None
        if observer is None:
            return
        observer.stop()
        await run_in_threadpool(observer.join, WATCH_JOIN_TIMEOUT)

    # Producers. Safe to call from any thread.

    def _post(self, kind: str, payload: Any = None) -> None:
        self._loop.call_soon_threadsafe(self._queue.put_nowait, (kind, payload))

    def notify_change(self, event_type: str) -> None:
        self._post("change", event_type)

    def notify_error(self, error: Any) -> None:
        self._post("error", error)

    def cancel(self) -> None:
        self._post("cancel")

    async def _watch_observer(self) -> None:
        while self._observer is not None and self._observer.is_alive():
            await asyncio.sleep(self._liveness_interval)
        self.notify_error("observer thread exited")

    async def _relay(self, disconnected: Callable[[], Awaitable]) -> None:
        await disconnected()
        self.cancel()

    async def wait(self, disconnected: Optional[Callable[[], Awaitable]] = None) -> WatchState:
        """
        Block until the file changes, the watcher fails, or the awaitable returned by
        ``disconnected`` completes.

        Returns SIGNALED or CANCELLED, and raises WatchError on failure. Only one
        outcome is ever produced per session.
        """
        producers = [asyncio.ensure_future(self._watch_observer())]
        if disconnected is not None:
            producers.append(asyncio.ensure_future(self._relay(disconnected)))
        try:
            while True:
                kind, payload = await self._queue.get()
                if kind == "change":
                    logger.info("File changed (%s)", payload)
                    if file_is_ready(self.path):
                        self.state = WatchState.SIGNALED
                        return self.state
                elif kind == "error":
                    raise WatchError(f"watcher error: {payload}")
                elif kind == "cancel":
                    self.state = WatchState.CANCELLED
                    return self.state
        except WatchError:
            self.state = WatchState.FAILED
            raise
        finally:
            for task in producers:
                task.cancel()
