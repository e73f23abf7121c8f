"""
Test cases for the incremental reader.

Tests cover:
- Appended content is emitted exactly once
- Truncation detection and restart at offset 0
- Multibyte characters split by a writer
- Header switching between files
"""
from __future__ import annotations
import io

from jtail.cursor import FileCursor
from jtail.output import TailOutput
from jtail.reader import IncrementalReader
from jtail.window import LineCount, TailWindowComputer
from conftest import append


class TestIncrementalRead:
    """Test reading appended bytes."""

    def test_reads_from_position(self, make_file, output, stream):
        path = make_file(content="old\n")
        cursor = FileCursor(str(path))
        cursor.set_position(4)
        append(path, "new\n")

        consumed = IncrementalReader(output).read(cursor)
        assert stream.getvalue() == "new\n"
        assert consumed == 4
        assert cursor.position == 8

    def test_nothing_new(self, make_file, output, stream):
        path = make_file(content="abc")
        cursor = FileCursor(str(path))
        cursor.set_position(3)
        assert IncrementalReader(output).read(cursor) == 0
        assert stream.getvalue() == ""

    def test_full_tail_then_append(self, numbered, output, stream):
        """After tailing every line, only appended lines show up."""
        path = numbered(12)
        cursor = FileCursor(str(path))
        TailWindowComputer(output, LineCount(12)).compute(cursor)
        assert stream.getvalue().splitlines() == [str(i) for i in range(1, 13)]

        stream.seek(0)
        stream.truncate()
        append(path, "x\ny\nz\n")
        IncrementalReader(output).read(cursor)
        IncrementalReader(output).read(cursor)
        assert stream.getvalue() == "x\ny\nz\n"

    def test_small_chunks(self, make_file, output, stream):
        path = make_file(content="")
        cursor = FileCursor(str(path))
        append(path, "abcdefghij\n")
        IncrementalReader(output, chunk_size=3).read(cursor)
        assert stream.getvalue() == "abcdefghij\n"


class TestTruncation:
    """Test a file shrinking under the cursor."""

    def test_notice_and_restart(self, make_file, output, stream):
        path = make_file(content="0123456789\n")
        cursor = FileCursor(str(path))
        cursor.set_position(11)
        path.write_text("new\n")

        IncrementalReader(output).read(cursor)
        assert stream.getvalue() == f"jtail: {path}: file truncated\nnew\n"
        assert cursor.position == 4

    def test_resumes_after_truncation(self, make_file, output, stream):
        path = make_file(content="0123456789\n")
        cursor = FileCursor(str(path))
        cursor.set_position(11)
        path.write_text("ab\n")
        reader = IncrementalReader(output)
        reader.read(cursor)
        append(path, "cd\n")
        reader.read(cursor)
        assert stream.getvalue() == f"jtail: {path}: file truncated\nab\ncd\n"


class TestDecoding:
    """Test text decoding of raw bytes."""

    def test_partial_character_waits(self, make_file, output, stream):
        """An incomplete UTF-8 sequence is left for the next read."""
        euro = "€".encode("utf-8")
        path = make_file(content=b"a" + euro[:1])
        cursor = FileCursor(str(path))
        reader = IncrementalReader(output)

        reader.read(cursor)
        assert stream.getvalue() == "a"
        assert cursor.position == 1

        with open(path, "ab") as f:
            f.write(euro[1:] + b"\n")
        reader.read(cursor)
        assert stream.getvalue() == "a€\n"

    def test_invalid_bytes_replaced(self, make_file, output, stream):
        path = make_file(content=b"ok\xff\xfe\n")
        cursor = FileCursor(str(path))
        IncrementalReader(output).read(cursor)
        assert stream.getvalue() == "ok��\n"

    def test_other_encoding(self, make_file, output, stream):
        path = make_file(content="café\n".encode("latin-1"))
        cursor = FileCursor(str(path))
        IncrementalReader(output, encoding="latin-1").read(cursor)
        assert stream.getvalue() == "café\n"


class TestHeaderSwitching:
    """Test that headers only appear when the output switches file."""

    def test_switch(self, make_file):
        first = make_file("one.log", "")
        second = make_file("two.log", "")
        stream = io.StringIO()
        reader = IncrementalReader(TailOutput(stream, headers=True))
        a, b = FileCursor(str(first)), FileCursor(str(second))

        append(first, "1\n")
        reader.read(a)
        append(first, "2\n")
        reader.read(a)
        append(second, "x\n")
        reader.read(b)
        append(first, "3\n")
        reader.read(a)

        assert stream.getvalue() == (
            f"==> {first} <==\n1\n2\n"
            f"==> {second} <==\nx\n"
            f"==> {first} <==\n3\n"
        )

    def test_no_header_for_partial_character(self, make_file):
        """Bytes that decode to nothing yet do not take over the output."""
        first = make_file("one.log", b"a" + "€".encode("utf-8")[:1])
        second = make_file("two.log", "")
        stream = io.StringIO()
        reader = IncrementalReader(TailOutput(stream, headers=True))
        a, b = FileCursor(str(first)), FileCursor(str(second))

        reader.read(a)
        append(second, "x\n")
        reader.read(b)
        # position is still behind size, but there is nothing printable
        reader.read(a)
        reader.read(a)

        assert a.position == 1
        assert stream.getvalue() == (
            f"==> {first} <==\na"
            f"==> {second} <==\nx\n"
        )
