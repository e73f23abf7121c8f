from __future__ import annotations
import codecs

from .cursor import FileCursor
from .output import TailOutput

# Buffer size of 4k.
BUFFER_SIZE = 4096


class IncrementalReader:
    """
    Emits whatever was appended to a file since the cursor last moved.

    This is the only forward-reading code path: the initial byte windows,
    the re-entry case and every follow-mode signal all end up here.
    """

    def __init__(self, output: TailOutput, *, encoding: str = "utf-8", chunk_size: int = BUFFER_SIZE) -> None:
        self.output = output
        self.encoding = encoding
        self.chunk_size = chunk_size

    def read(self, cursor: FileCursor) -> int:
        """Print new content of ``cursor``'s file. Returns the number of bytes consumed."""
        start = cursor.position
        if cursor.truncated():
            self.output.header(cursor)
            self.output.truncated(cursor)
            cursor.set_position(0)
            start = 0
        elif start >= cursor.size():
            return 0

        decoder = codecs.getincrementaldecoder(self.encoding)(errors="replace")
        with open(cursor.path, "rb") as f:
            f.seek(start)
            while True:
                chunk = f.read(self.chunk_size)
                if not chunk:
                    break
                text = decoder.decode(chunk)
                if text:
                    # no header for bytes that do not decode to anything yet
                    self.output.header(cursor)
                    self.output.write(text)
            # an incomplete multibyte sequence at EOF stays unread until the writer finishes it
            pending, _ = decoder.getstate()
            end = f.tell() - len(pending)
        cursor.set_position(end)
        return end - start
