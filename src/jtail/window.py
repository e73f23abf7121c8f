from __future__ import annotations
import codecs
from dataclasses import dataclass
from typing import Optional, Union

from .cursor import FileCursor
from .log import get_logger
from .output import TailOutput
from .reader import BUFFER_SIZE, IncrementalReader

logger = get_logger("window")

DEFAULT_LINES = 10


# -------------------------
# Modes
# -------------------------
@dataclass(frozen=True)
class ByteCount:
    """Last ``count`` bytes."""
    count: int


@dataclass(frozen=True)
class LineCount:
    """Last ``count`` lines."""
    count: int = DEFAULT_LINES


@dataclass(frozen=True)
class ByteCountFromStart:
    """Everything from byte offset ``count`` on."""
    count: int


@dataclass(frozen=True)
class LineCountFromStart:
    """Everything from 0-indexed line ``count`` on."""
    count: int


# None means "print nothing"
TailMode = Optional[Union[ByteCount, LineCount, ByteCountFromStart, LineCountFromStart]]


# -------------------------
# Initial window
# -------------------------
class TailWindowComputer:
    """
    Prints the first batch of output for a file and leaves the cursor where
    follow mode has to continue.
    """

    def __init__(
        self,
        output: TailOutput,
        mode: TailMode = LineCount(),
        *,
        encoding: str = "utf-8",
        chunk_size: int = BUFFER_SIZE,
    ) -> None:
        self.output = output
        self.mode = mode
        self.encoding = encoding
        self.chunk_size = chunk_size
        self.reader = IncrementalReader(output, encoding=encoding, chunk_size=chunk_size)

    def compute(self, cursor: FileCursor) -> None:
        self.output.header(cursor, force=True)
        if cursor.truncated():
            self.output.truncated(cursor)
            cursor.set_position(0)

        if cursor.position != 0:
            # already tailing this one, only show what is new
            logger.debug("%s: resuming at offset %d", cursor.name, cursor.position)
            self.reader.read(cursor)
            return

        mode = self.mode
        logger.debug("%s: initial window %r", cursor.name, mode)
        if isinstance(mode, ByteCountFromStart):
            cursor.set_position(mode.count)
            self.reader.read(cursor)
        elif isinstance(mode, LineCountFromStart):
            self._lines_from_start(cursor, mode.count)
        elif isinstance(mode, ByteCount):
            cursor.set_position(cursor.size() - mode.count)
            self.reader.read(cursor)
        elif isinstance(mode, LineCount):
            self._lines_from_end(cursor, mode.count)

    def _lines_from_start(self, cursor: FileCursor, skip: int) -> None:
        decoder = codecs.getincrementaldecoder(self.encoding)(errors="replace")
        consumed = 0
        current = 0
        found = False
        with open(cursor.path, "rb") as f:
            for line in f:
                consumed += len(line)
                if current >= skip:
                    self.output.write(decoder.decode(line))
                    found = True
                current += 1
        self.output.write(decoder.decode(b"", final=True))

        if current < skip:
            self.output.truncated(cursor)
            cursor.set_position(0)
            return
        cursor.set_position(consumed)
        if not found:
            logger.debug("%s: has exactly %d lines, nothing to show", cursor.name, skip)

    def _lines_from_end(self, cursor: FileCursor, wanted: int) -> None:
        """
        Scan backwards in ``chunk_size`` pieces until ``wanted`` complete
        lines are buffered or the start of the file is reached.

        Chunks are joined as raw bytes before any splitting or decoding, so a
        line or a multibyte character cut by a chunk boundary is simply
        completed by the next (earlier) chunk.
        """
        end = cursor.size()
        chunks = []
        pos = end
        newlines = 0
        trailing = 0

        with open(cursor.path, "rb") as f:
            while pos > 0 and wanted > 0:
                step = min(self.chunk_size, pos)
                pos -= step
                f.seek(pos)
                chunk = f.read(step)
                if not chunks and chunk.endswith(b"\n"):
                    # the final newline terminates the last line, it does not start a new one
                    trailing = 1
                chunks.append(chunk)
                newlines += chunk.count(b"\n")
                if newlines - trailing >= wanted:
                    break

        data = b"".join(reversed(chunks))
        stop = len(data) - trailing
        start = 0
        for _ in range(wanted):
            nl = data.rfind(b"\n", 0, stop)
            if nl < 0:
                start = 0
                break
            stop = nl
            start = nl + 1

        self.output.write(data[start:].decode(self.encoding, errors="replace"))
        cursor.set_position(end)
