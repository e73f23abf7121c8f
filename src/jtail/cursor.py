from __future__ import annotations
import os
import stat

from .errors import NotFoundError, NotRegularFileError


class FileCursor:
    """
    Read position of one tailed file.

    ``name`` is the path as the user gave it (used in headers and notices),
    ``path`` is its absolute form. The size is always asked from the
    filesystem because other processes keep writing to the file.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self.path = os.path.abspath(name)
        try:
            st = os.stat(self.path)
        except FileNotFoundError:
            raise NotFoundError(f"File {name} does not exist.")
        if not stat.S_ISREG(st.st_mode):
            raise NotRegularFileError(f"File {name} is not a regular file.")
        self.inode = st.st_ino
        self.position = 0
        self.last_size = st.st_size

    @property
    def directory(self) -> str:
        return os.path.dirname(self.path)

    def size(self) -> int:
        self.last_size = os.stat(self.path).st_size
        return self.last_size

    def set_position(self, position: int) -> None:
        """Move the cursor, clamped into ``[0, size()]``."""
        size = self.size()
        if position > size:
            position = size
        if position < 0:
            position = 0
        self.position = position

    def truncated(self) -> bool:
        return self.position > self.size()

    def __repr__(self) -> str:
        return f"FileCursor({self.name!r}, position={self.position})"
