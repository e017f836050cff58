"""Capturing stream decorators.

CapturingReader / CapturingWriter wrap a byte source / sink and mirror every
successful read or write into a DualWindowBuffer.  The wrapped stream's
return values, blocking behaviour and exceptions are passed through
untouched; capture is a side observation only.

    reader = CapturingReader(TCPTransport(host, port), 16, 256)
    try:
        handle(reader.read(4096))
    except Exception as exc:
        reader.capture_rest_of_stream()
        reader.dump(exc)
        raise

The decorator owns the wrapped stream: closing it closes the stream.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from .dumper import CaptureDumper
from .ringbuffer import DualWindowBuffer, window_sizes
from .transport import ByteSink, ByteSource, available

logger = logging.getLogger(__name__)

INPUT_DUMP_PREFIX = "streamcapInputCapture-"
OUTPUT_DUMP_PREFIX = "streamcapOutputCapture-"

# Marks where live reads stop and the forced drain begins.
DRAIN_SENTINEL = b"\xde\xad\xbe\xef"


class _Capturing:
    """Shared plumbing: owned stream, capture buffer, dumper, delegation."""

    def __init__(self, stream, capture: tuple[int, ...], prefix: str,
                 dump_dir: str | os.PathLike | None):
        self._stream = stream
        self._capture: DualWindowBuffer[bytes] = DualWindowBuffer(*window_sizes(*capture))
        self._dumper = CaptureDumper(prefix, dump_dir)

    @property
    def stream(self):
        return self._stream

    @property
    def capture(self) -> DualWindowBuffer[bytes]:
        return self._capture

    def close(self) -> None:
        self._stream.close()

    def dump(self, cause: BaseException | None = None) -> Path | None:
        """Write the captured bytes and *cause* to a temp file.  Never raises."""
        return self._dumper.dump(self._capture, cause)

    def __getattr__(self, name):
        if name == "_stream":
            raise AttributeError(name)
        return getattr(self._stream, name)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


class CapturingReader(_Capturing):
    """Input stream that remembers the first and last chunks read from it.

    CapturingReader(stream)              -> first=0, last=1024
    CapturingReader(stream, last)        -> first=0, last=last
    CapturingReader(stream, first, last)
    """

    def __init__(self, stream: ByteSource, *capture: int,
                 dump_dir: str | os.PathLike | None = None):
        super().__init__(stream, capture, INPUT_DUMP_PREFIX, dump_dir)

    def read(self, *args) -> bytes:
        data = self._stream.read(*args)
        if data:
            self._capture.add(data)
        return data

    def read1(self, *args) -> bytes:
        data = self._stream.read1(*args)
        if data:
            self._capture.add(data)
        return data

    def readline(self, *args) -> bytes:
        data = self._stream.readline(*args)
        if data:
            self._capture.add(data)
        return data

    def readlines(self, *args) -> list[bytes]:
        lines = self._stream.readlines(*args)
        for line in lines:
            self._capture.add(line)
        return lines

    def readinto(self, b) -> int | None:
        count = self._stream.readinto(b)
        if count is not None and count > 0:
            self._capture.add(memoryview(b).cast("B")[:count])
        return count

    def readinto1(self, b) -> int | None:
        count = self._stream.readinto1(b)
        if count is not None and count > 0:
            self._capture.add(memoryview(b).cast("B")[:count])
        return count

    def __iter__(self):
        return self

    def __next__(self) -> bytes:
        line = self.readline()
        if not line:
            raise StopIteration
        return line

    def available(self) -> int:
        return available(self._stream)

    def capture_rest_of_stream(self) -> None:
        """Capture a sentinel, then whatever the stream can deliver without blocking.

        Meant to run from an error handler right before dump(); I/O failures
        are logged and discarded.
        """
        try:
            self._capture.add(DRAIN_SENTINEL)
            rest = self.available()
            if rest > 0:
                self.read(rest)
        except Exception:
            logger.warning("failed to drain remaining input for capture",
                           exc_info=True)


class CapturingWriter(_Capturing):
    """Output stream that remembers the first and last chunks written to it.

    Constructor shapes are the same as CapturingReader's.
    """

    def __init__(self, stream: ByteSink, *capture: int,
                 dump_dir: str | os.PathLike | None = None):
        super().__init__(stream, capture, OUTPUT_DUMP_PREFIX, dump_dir)

    def write(self, data) -> int | None:
        self._capture.add(data)
        return self._stream.write(data)

    def writelines(self, lines) -> None:
        for line in lines:
            self.write(line)

    def flush(self) -> None:
        self._stream.flush()
