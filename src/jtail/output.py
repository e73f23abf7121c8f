from __future__ import annotations
import sys
from typing import Optional, TextIO

from .cursor import FileCursor
from .log import get_logger

logger = get_logger("output")


class TailOutput:
    """
    Text sink shared by the window computer and the incremental reader.
    Knows how to frame output with ``==> name <==`` headers and where to
    put truncation notices.
    """

    def __init__(self, stream: Optional[TextIO] = None, *, headers: bool = False) -> None:
        self.stream = stream if stream is not None else sys.stdout
        self.headers = headers
        self._current: Optional[str] = None

    def header(self, cursor: FileCursor, *, force: bool = False) -> None:
        """Print the header for ``cursor`` unless it already owns the output."""
        if not self.headers:
            return
        if not force and self._current == cursor.path:
            return
        self._current = cursor.path
        self.stream.write(f"==> {cursor.name} <==\n")

    def truncated(self, cursor: FileCursor) -> None:
        logger.info("%s: file truncated, restarting at offset 0", cursor.name)
        self.stream.write(f"jtail: {cursor.name}: file truncated\n")
        self.stream.flush()

    def write(self, text: str) -> None:
        if text:
            self.stream.write(text)
            self.stream.flush()
