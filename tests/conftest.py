"""
Pytest configuration and shared fixtures.

This file is automatically loaded by pytest and provides
common fixtures and configuration for all test files.
"""
from __future__ import annotations
import io
import threading
import time
import pytest
from pathlib import Path

from jtail.output import TailOutput


@pytest.fixture
def make_file(tmp_path):
    """Return a factory writing ``content`` (str or bytes) to a file under tmp_path."""
    def _make(name: str = "a.txt", content="") -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, str):
            content = content.encode("utf-8")
        path.write_bytes(content)
        return path
    return _make


@pytest.fixture
def numbered(make_file):
    """Return a factory for files holding the lines "1".."n"."""
    def _numbered(n: int, name: str = "a.txt") -> Path:
        return make_file(name, "".join(f"{i}\n" for i in range(1, n + 1)))
    return _numbered


@pytest.fixture
def stream():
    return io.StringIO()


@pytest.fixture
def output(stream):
    return TailOutput(stream)


def append(path: Path, text: str) -> None:
    with open(path, "a", encoding="utf-8") as f:
        f.write(text)


def wait_for(predicate, timeout: float = 5.0, interval: float = 0.02) -> bool:
    """Poll ``predicate`` until it is true or ``timeout`` seconds passed."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


class Background:
    """Run a blocking notifier/engine call on a daemon thread."""

    def __init__(self, target) -> None:
        self.result = None
        self.error = None
        self._target = target
        self.thread = threading.Thread(target=self._run, daemon=True)

    def _run(self) -> None:
        try:
            self.result = self._target()
        except BaseException as e:  # surfaced through .error in the test
            self.error = e

    def start(self) -> "Background":
        self.thread.start()
        return self

    def join(self, timeout: float = 5.0) -> None:
        self.thread.join(timeout)
        assert not self.thread.is_alive(), "background call did not finish"
        if self.error is not None:
            raise self.error
