from __future__ import annotations
from typing import List, Optional, Sequence, TextIO

from .cursor import FileCursor
from .errors import ConfigurationError, WatchFailure
from .log import get_logger
from .notifiers.base import ChangeNotifier
from .notifiers.events import EventNotifier
from .notifiers.polling import DEFAULT_SLEEP_INTERVAL, PollNotifier
from .output import TailOutput
from .reader import BUFFER_SIZE
from .window import LineCount, TailMode, TailWindowComputer

logger = get_logger("engine")

NOTIFIERS = ("event", "poll")


class TailEngine:
    """
    Prints the initial window of every file, then (when following) hands the
    cursors to exactly one change notifier until it is stopped or runs out
    of files.

    Example:
        engine = TailEngine(["app.log"], LineCount(20), follow=True)
        failures = engine.run()      # blocks; engine.stop() from another thread
    """

    def __init__(
        self,
        files: Sequence[str],
        mode: TailMode = LineCount(),
        *,
        follow: bool = False,
        notifier: str = "event",
        sleep_interval: float = DEFAULT_SLEEP_INTERVAL,
        headers: Optional[bool] = None,
        stream: Optional[TextIO] = None,
        encoding: str = "utf-8",
        isolate_failures: bool = True,
        chunk_size: int = BUFFER_SIZE,
    ) -> None:
        if not files:
            raise ConfigurationError("At least one file is required")
        if notifier not in NOTIFIERS:
            raise ConfigurationError(f"Unknown notifier {notifier!r}, expected one of {', '.join(NOTIFIERS)}")
        if headers is None:
            headers = len(files) > 1

        self.mode = mode
        self.follow = follow
        self.output = TailOutput(stream, headers=headers)
        self.window = TailWindowComputer(self.output, mode, encoding=encoding, chunk_size=chunk_size)
        self.reader = self.window.reader
        self.cursors: List[FileCursor] = [FileCursor(name) for name in files]

        self.notifier: Optional[ChangeNotifier] = None
        if follow:
            if notifier == "poll":
                self.notifier = PollNotifier(
                    self.cursors, self.reader, interval=sleep_interval, isolate_failures=isolate_failures
                )
            else:
                self.notifier = EventNotifier(self.cursors, self.reader, isolate_failures=isolate_failures)

    def run(self) -> List[WatchFailure]:
        """
        Emit the initial windows and, when following, block in the notifier.
        Returns the files that had to be given up on.
        """
        for cursor in self.cursors:
            if self.notifier is not None and self.notifier.stopped:
                return []
            self.window.compute(cursor)

        if self.notifier is None:
            return []
        logger.debug("Following %d file(s) with %s", len(self.cursors), type(self.notifier).__name__)
        return self.notifier.start_watching()

    def stop(self) -> None:
        if self.notifier is not None:
            self.notifier.stop()
