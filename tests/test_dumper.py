"""Tests for capture dump rendering and artifact writing.

Run from repo root:
    python3 tests/test_dumper.py
"""

import sys
import os
import tempfile
from pathlib import Path

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "python"))

from streamcap.dumper import CaptureDumper, hexdump, render_windows
from streamcap.ringbuffer import DualWindowBuffer


def make_buffer(first, last, chunks):
    buf = DualWindowBuffer(first, last)
    for chunk in chunks:
        buf.add(chunk)
    return buf


def raised(exc):
    """Return *exc* with a real traceback attached."""
    try:
        raise exc
    except BaseException as caught:
        return caught


def test_hexdump_single_line():
    """Short chunks render on one padded line with a printable column."""
    print("test_hexdump_single_line...", end="")

    lines = list(hexdump(b"AB\x00~\x7f"))
    assert len(lines) == 1
    line = lines[0]
    assert line.startswith("00000000  41 42 00 7e 7f ")
    assert line.endswith("  |AB.~.|")
    assert len(line) == len("00000000  ") + 47 + len("  |AB.~.|")

    print(" OK")


def test_hexdump_multi_line():
    """Lines hold 16 bytes and carry hex offsets."""
    print("test_hexdump_multi_line...", end="")

    data = bytes(range(0x30, 0x30 + 33))
    lines = list(hexdump(data))
    assert len(lines) == 3
    assert lines[0].startswith("00000000  30 31 32")
    assert lines[1].startswith("00000010  40 41 42")
    assert lines[2].startswith("00000020  50 ")
    assert lines[0].endswith("|0123456789:;<=>?|")
    assert lines[2].endswith("|P|")

    assert list(hexdump(b"")) == []

    print(" OK")


def test_render_windows():
    """Both windows are labelled, with the dropped middle counted."""
    print("test_render_windows...", end="")

    buf = make_buffer(2, 2, [b"a", b"b", b"c", b"d", b"e"])
    text = "\n".join(render_windows(buf))

    assert "== first window: 2 of 2 chunks ==" in text
    assert "== 1 chunks not retained ==" in text
    assert "== last window: 2 of 2 chunks ==" in text
    for index, char in [(0, "a"), (1, "b"), (3, "d"), (4, "e")]:
        assert f"-- chunk {index}: 1 bytes --" in text
        assert f"|{char}|" in text
    assert "|c|" not in text

    # first window rendered before last window
    assert text.index("|b|") < text.index("== last window") < text.index("|d|")

    print(" OK")


def test_dump_writes_artifact():
    """The artifact holds the cause, the call site and both windows."""
    print("test_dump_writes_artifact...", end="")

    buf = make_buffer(1, 1, [b"HELO", b"lost", b"QUIT"])
    cause = raised(ConnectionError("peer went away"))

    with tempfile.TemporaryDirectory() as tmpdir:
        dumper = CaptureDumper("testCapture-", tmpdir)
        path = dumper.dump(buf, cause)

        assert isinstance(path, Path)
        assert path.parent == Path(tmpdir)
        assert path.name.startswith("testCapture-")
        assert path.name.endswith(".txt")

        text = path.read_text()

    assert "ConnectionError: peer went away" in text
    assert "The above exception was the direct cause of the following dump:" in text
    assert "Dump from (most recent call last):" in text
    assert "test_dump_writes_artifact" in text
    assert text.index("peer went away") < text.index("Dump from") < text.index("== first window")
    assert "|HELO|" in text
    assert "|QUIT|" in text
    assert "|lost|" not in text

    print(" OK")


def test_dump_unique_names():
    """Repeated dumps never overwrite each other."""
    print("test_dump_unique_names...", end="")

    buf = make_buffer(0, 1, [b"x"])
    with tempfile.TemporaryDirectory() as tmpdir:
        dumper = CaptureDumper("testCapture-", tmpdir)
        paths = {dumper.dump(buf, None) for _ in range(5)}
        assert len(paths) == 5
        assert None not in paths

    print(" OK")


def test_dump_any_buffer_state():
    """Empty, first-only, last-only and full buffers all dump cleanly."""
    print("test_dump_any_buffer_state...", end="")

    buffers = [
        make_buffer(0, 0, []),
        make_buffer(3, 3, []),
        make_buffer(3, 0, [b"a", b"b"]),
        make_buffer(0, 3, [b"a", b"b", b"c", b"d"]),
        make_buffer(2, 2, [bytes([i]) * 40 for i in range(10)]),
    ]

    with tempfile.TemporaryDirectory() as tmpdir:
        dumper = CaptureDumper("testCapture-", tmpdir)
        for buf in buffers:
            path = dumper.dump(buf, raised(ValueError("bad frame")))
            assert path is not None and path.exists()
            assert dumper.dump(buf) is not None

    print(" OK")


def test_dump_without_cause():
    """A dump with no cause still records where it was taken."""
    print("test_dump_without_cause...", end="")

    buf = make_buffer(0, 1, [b"z"])
    with tempfile.TemporaryDirectory() as tmpdir:
        text = CaptureDumper("testCapture-", tmpdir).dump(buf).read_text()

    assert text.startswith("Dump from (most recent call last):")
    assert "direct cause" not in text

    print(" OK")


def test_dump_failure_returns_none():
    """An unusable directory yields None, never an exception."""
    print("test_dump_failure_returns_none...", end="")

    buf = make_buffer(1, 1, [b"a", b"b"])
    with tempfile.TemporaryDirectory() as tmpdir:
        missing = os.path.join(tmpdir, "missing")
        dumper = CaptureDumper("testCapture-", missing)
        assert dumper.dump(buf, raised(OSError("disk gone"))) is None
        assert not os.path.exists(missing)

    print(" OK")


class ExplodingBuffer:
    """Buffer whose contents cannot be read back."""

    first_capacity = 1
    last_capacity = 1
    seen = 0

    def snapshot(self):
        raise RuntimeError("capture state corrupted")


def test_dump_partial_write_removed():
    """A dump that fails mid-write leaves no truncated artifact behind."""
    print("test_dump_partial_write_removed...", end="")

    with tempfile.TemporaryDirectory() as tmpdir:
        dumper = CaptureDumper("testCapture-", tmpdir)
        assert dumper.dump(ExplodingBuffer(), raised(ValueError("bad frame"))) is None
        assert os.listdir(tmpdir) == []

    print(" OK")


if __name__ == "__main__":
    print("streamcap dumper tests")
    print("======================\n")

    test_hexdump_single_line()
    test_hexdump_multi_line()
    test_render_windows()
    test_dump_writes_artifact()
    test_dump_unique_names()
    test_dump_any_buffer_state()
    test_dump_without_cause()
    test_dump_failure_returns_none()
    test_dump_partial_write_removed()

    print("\nAll dumper tests passed.")
