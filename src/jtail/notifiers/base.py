from __future__ import annotations
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Set

from ..cursor import FileCursor
from ..errors import WatchFailure
from ..log import get_logger
from ..reader import IncrementalReader

logger = get_logger("notifiers")


class ChangeKind(str, Enum):
    MODIFY = "modify"
    CREATE = "create"
    DELETE = "delete"
    OVERFLOW = "overflow"


@dataclass(frozen=True)
class ChangeEvent:
    """
    One filesystem notification. ``kind`` is None when the raw event type
    was not recognised; ``event_type`` keeps the raw name for reporting.
    """
    kind: Optional[ChangeKind]
    path: str
    event_type: str = ""


class ChangeNotifier(ABC):
    """
    Follow phase driver. Subclasses decide *when* a file might have changed;
    reading is always delegated to the shared IncrementalReader.

    A notifier owns a fixed list of cursors. Cursors whose file can no longer
    be followed are removed from that list and reported as WatchFailure
    values. With ``isolate_failures`` the remaining files keep being
    followed, otherwise the first failure ends the session.
    """

    def __init__(
        self,
        cursors: Iterable[FileCursor],
        reader: IncrementalReader,
        *,
        isolate_failures: bool = True,
    ) -> None:
        self.cursors: List[FileCursor] = list(cursors)
        self.reader = reader
        self.isolate_failures = isolate_failures
        self.failures: List[WatchFailure] = []
        self._stop = threading.Event()
        # set once changes are being detected
        self.ready = threading.Event()

    @property
    def directories(self) -> Set[str]:
        return {c.directory for c in self.cursors}

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def start_watching(self) -> List[WatchFailure]:
        """Block until stopped, a fatal failure, or nothing is left to watch."""
        logger.debug("%s: watching %d file(s)", type(self).__name__, len(self.cursors))
        self._watch()
        return self.failures

    def stop(self) -> None:
        self._stop.set()
        self._wake()

    @abstractmethod
    def _watch(self) -> None:
        ...

    def _wake(self) -> None:
        """Interrupt a pending wait. Subclasses override when they block elsewhere."""

    @property
    def _active(self) -> bool:
        return bool(self.cursors) and not self._stop.is_set()

    def _changed(self, cursor: FileCursor) -> None:
        try:
            self.reader.read(cursor)
        except FileNotFoundError:
            self._fail(WatchFailure.gone(cursor.name, cursor.path), cursor)

    def _fail(self, failure: WatchFailure, cursor: FileCursor) -> None:
        logger.warning("%s", failure.message)
        self.failures.append(failure)
        if cursor in self.cursors:
            self.cursors.remove(cursor)
        if not self.isolate_failures:
            self._stop.set()
