from __future__ import annotations
import os
import queue
import threading
from typing import Callable, Iterable, List

from watchdog.events import (
    EVENT_TYPE_CLOSED,
    EVENT_TYPE_CLOSED_NO_WRITE,
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    EVENT_TYPE_OPENED,
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver

from ..cursor import FileCursor
from ..errors import WatchFailure
from ..log import get_logger
from ..reader import IncrementalReader
from .base import ChangeEvent, ChangeKind, ChangeNotifier

logger = get_logger("notifiers.events")

# Event classes every directory is registered for.
WATCHED_EVENTS = [FileModifiedEvent, FileCreatedEvent, FileDeletedEvent, FileMovedEvent]

# Access notifications some backends deliver regardless of registration.
_ACCESS_EVENTS = {EVENT_TYPE_OPENED, EVENT_TYPE_CLOSED, EVENT_TYPE_CLOSED_NO_WRITE}

QUEUE_SIZE = 1024

# Put on the queue by stop() to end a blocking wait immediately.
_WAKE = object()


class _QueueHandler(FileSystemEventHandler):
    """Runs on the observer thread; only hands raw events over."""

    def __init__(self, events: "queue.Queue[object]") -> None:
        super().__init__()
        self.events = events
        self.overflowed = threading.Event()

    def on_any_event(self, event: FileSystemEvent) -> None:
        try:
            self.events.put_nowait(event)
        except queue.Full:
            self.overflowed.set()


def translate(event: FileSystemEvent) -> List[ChangeEvent]:
    """Map a watchdog event to the changes it means for individual paths."""
    src = os.path.abspath(os.fsdecode(event.src_path))
    kind = event.event_type
    if kind == EVENT_TYPE_MODIFIED:
        return [ChangeEvent(ChangeKind.MODIFY, src, kind)]
    if kind == EVENT_TYPE_CREATED:
        return [ChangeEvent(ChangeKind.CREATE, src, kind)]
    if kind == EVENT_TYPE_DELETED:
        return [ChangeEvent(ChangeKind.DELETE, src, kind)]
    if kind == EVENT_TYPE_MOVED:
        dest = os.path.abspath(os.fsdecode(event.dest_path))
        return [
            ChangeEvent(ChangeKind.DELETE, src, kind),
            ChangeEvent(ChangeKind.CREATE, dest, kind),
        ]
    if kind in _ACCESS_EVENTS:
        return []
    return [ChangeEvent(None, src, kind)]


class EventNotifier(ChangeNotifier):
    """
    Follows files through native filesystem notifications (inotify,
    FSEvents, ReadDirectoryChangesW) provided by watchdog.

    One non-recursive watch is scheduled per parent directory, however many
    tailed files live in it. The observer thread only queues raw events; all
    reading happens on the thread that called start_watching().
    """

    def __init__(
        self,
        cursors: Iterable[FileCursor],
        reader: IncrementalReader,
        *,
        isolate_failures: bool = True,
        observer_factory: Callable[[], BaseObserver] = Observer,
        wake_interval: float = 1.0,
    ) -> None:
        super().__init__(cursors, reader, isolate_failures=isolate_failures)
        self.observer_factory = observer_factory
        self.wake_interval = wake_interval
        self.events: "queue.Queue[object]" = queue.Queue(maxsize=QUEUE_SIZE)
        self.handler = _QueueHandler(self.events)

    def _watch(self) -> None:
        observer = self.observer_factory()
        for directory in sorted(self.directories):
            logger.debug("Watching directory: %s", directory)
            observer.schedule(self.handler, directory, recursive=False, event_filter=WATCHED_EVENTS)
        observer.start()
        self.ready.set()
        try:
            self.catch_up()
            while self._active:
                for change in self.next_batch():
                    if not self._active:
                        break
                    self.dispatch(change)
        finally:
            observer.stop()
            observer.join()
            logger.debug("Released all directory watches")

    def catch_up(self) -> None:
        """
        Read whatever was written before the watches were in place. Writes
        from then on are reported by the observer.
        """
        for cursor in list(self.cursors):
            if not self._active:
                return
            try:
                size = cursor.size()
            except FileNotFoundError:
                self._fail(WatchFailure.gone(cursor.name, cursor.path), cursor)
                continue
            if cursor.position != size:
                logger.debug("%s: %d byte(s) written before the watch started", cursor.name, size - cursor.position)
                self._changed(cursor)

    def _wake(self) -> None:
        try:
            self.events.put_nowait(_WAKE)
        except queue.Full:
            # a full queue wakes the waiter anyway
            pass

    def next_batch(self) -> List[ChangeEvent]:
        """
        Wait for the next raw event and return it together with everything
        else already queued. An empty list means the wait timed out.
        """
        try:
            first = self.events.get(timeout=self.wake_interval)
        except queue.Empty:
            return []
        raw = [first]
        while True:
            try:
                raw.append(self.events.get_nowait())
            except queue.Empty:
                break

        batch: List[ChangeEvent] = []
        if self.handler.overflowed.is_set():
            self.handler.overflowed.clear()
            batch.append(ChangeEvent(ChangeKind.OVERFLOW, "", "overflow"))
        for event in raw:
            if event is _WAKE:
                continue
            batch.extend(translate(event))
        return batch

    def dispatch(self, change: ChangeEvent) -> None:
        if change.kind is ChangeKind.OVERFLOW:
            logger.debug("Event queue overflowed, dropped events skipped")
            return
        if change.kind is None:
            directory = os.path.dirname(change.path)
            for cursor in [c for c in self.cursors if c.directory == directory]:
                self._fail(WatchFailure.protocol(cursor.name, cursor.path, change.event_type), cursor)
            return

        for cursor in list(self.cursors):
            if cursor.path != change.path:
                continue
            logger.debug("%s: %s", cursor.name, change.kind.value)
            if change.kind is ChangeKind.DELETE:
                self._fail(WatchFailure.gone(cursor.name, cursor.path), cursor)
            elif change.kind is ChangeKind.CREATE:
                self._fail(WatchFailure.created(cursor.name, cursor.path), cursor)
            else:
                self._changed(cursor)
