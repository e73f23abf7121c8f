from __future__ import annotations
import os
from typing import Iterable

from ..cursor import FileCursor
from ..errors import WatchFailure
from ..log import get_logger
from ..reader import IncrementalReader
from .base import ChangeNotifier

logger = get_logger("notifiers.polling")

DEFAULT_SLEEP_INTERVAL = 1.0


class PollNotifier(ChangeNotifier):
    """
    The old fashioned way of noticing changes: stat every file once per
    ``interval`` seconds and read whenever size and cursor disagree.
    Works on filesystems without native change notification.
    """

    def __init__(
        self,
        cursors: Iterable[FileCursor],
        reader: IncrementalReader,
        *,
        interval: float = DEFAULT_SLEEP_INTERVAL,
        isolate_failures: bool = True,
    ) -> None:
        super().__init__(cursors, reader, isolate_failures=isolate_failures)
        if interval <= 0:
            raise ValueError(f"Poll interval must be positive, got {interval}")
        self.interval = interval

    def _watch(self) -> None:
        self.ready.set()
        while self._active:
            # Event.wait doubles as an interruptible sleep
            if self._stop.wait(self.interval):
                break
            self.check()

    def check(self) -> None:
        """Run one pass over all watched files."""
        for cursor in list(self.cursors):
            if self._stop.is_set():
                return
            try:
                st = os.stat(cursor.path)
            except FileNotFoundError:
                self._fail(WatchFailure.gone(cursor.name, cursor.path), cursor)
                continue
            if st.st_ino != cursor.inode:
                self._fail(WatchFailure.created(cursor.name, cursor.path), cursor)
                continue
            if cursor.position != st.st_size:
                logger.debug("%s: size %d, cursor %d", cursor.name, st.st_size, cursor.position)
                self._changed(cursor)
