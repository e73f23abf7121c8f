from __future__ import annotations
from dataclasses import dataclass
from enum import Enum


class TailError(Exception):
    """Base class for everything jtail reports as a failure."""


class NotFoundError(TailError, FileNotFoundError):
    pass


class NotRegularFileError(TailError, OSError):
    pass


class FileGoneError(TailError):
    pass


class UnexpectedCreateError(TailError):
    pass


class ProtocolError(TailError):
    pass


class ConfigurationError(TailError, ValueError):
    pass


class ErrorKind(str, Enum):
    GONE = "gone"
    CREATED = "created"
    PROTOCOL = "protocol"


_ERROR_TYPES = {
    ErrorKind.GONE: FileGoneError,
    ErrorKind.CREATED: UnexpectedCreateError,
    ErrorKind.PROTOCOL: ProtocolError,
}


@dataclass(frozen=True)
class WatchFailure:
    """
    Result value produced by a notifier when a watched file can no longer be
    followed. The dispatch loop passes these around instead of raising.
    """
    kind: ErrorKind
    path: str
    message: str

    def error(self) -> TailError:
        return _ERROR_TYPES[self.kind](self.message)

    @classmethod
    def gone(cls, name: str, path: str) -> "WatchFailure":
        return cls(ErrorKind.GONE, path, f"File {name} has been deleted.")

    @classmethod
    def created(cls, name: str, path: str) -> "WatchFailure":
        return cls(ErrorKind.CREATED, path, f"File {name} has been created again while being tailed.")

    @classmethod
    def protocol(cls, name: str, path: str, event_type: str) -> "WatchFailure":
        return cls(ErrorKind.PROTOCOL, path, f"Unknown event {event_type!r} for file {name}.")
