"""Render a capture buffer and a failure cause into a temp-file artifact.

Artifact layout (free-form text, for humans only):

  [formatted cause traceback, if any]
  [synthetic "Dump from" stack showing the dump call site]
  [first window chunks, arrival order]
  [count of chunks retained by neither window]
  [last window chunks, arrival order]

Each chunk is a classic hexdump: offset, 16 hex bytes, printable column.
"""

from __future__ import annotations

import contextlib
import logging
import os
import tempfile
import traceback
from pathlib import Path
from typing import IO, Iterable, Iterator

import numpy as np

from .ringbuffer import DualWindowBuffer

logger = logging.getLogger(__name__)

HEXDUMP_WIDTH = 16
DUMP_SUFFIX = ".txt"

_HEX_TABLE = np.array([f"{i:02x}" for i in range(256)])


def hexdump(data: bytes, width: int = HEXDUMP_WIDTH) -> Iterator[str]:
    """Yield hexdump lines for *data*: ``00000010  41 42 ...  |AB...|``."""
    arr = np.frombuffer(data, dtype=np.uint8)
    codes = _HEX_TABLE[arr]
    text = np.where((arr >= 0x20) & (arr <= 0x7E), arr, ord(".")) \
        .astype(np.uint8).tobytes().decode("ascii")

    for off in range(0, len(arr), width):
        hex_part = " ".join(codes[off:off + width])
        yield f"{off:08x}  {hex_part:<{width * 3 - 1}}  |{text[off:off + width]}|"


def format_cause(cause: BaseException | None,
                 stack: list[traceback.FrameSummary]) -> list[str]:
    """Format *cause* followed by the stack the dump was taken from."""
    lines: list[str] = []
    if cause is not None:
        lines.extend(traceback.format_exception(type(cause), cause, cause.__traceback__))
        lines.append("\nThe above exception was the direct cause of the following dump:\n\n")
    lines.append("Dump from (most recent call last):\n")
    lines.extend(traceback.format_list(stack))
    return lines


def _render_chunks(chunks: Iterable[bytes], start: int) -> Iterator[str]:
    for index, chunk in enumerate(chunks, start):
        yield f"-- chunk {index}: {len(chunk)} bytes --"
        yield from hexdump(chunk)


def render_windows(buffer: DualWindowBuffer[bytes]) -> Iterator[str]:
    """Yield the text rendering of both windows of *buffer*."""
    first, last = buffer.snapshot()

    yield f"== first window: {len(first)} of {buffer.first_capacity} chunks =="
    yield from _render_chunks(first, 0)

    omitted = buffer.seen - len(first) - len(last)
    if omitted > 0:
        yield f"== {omitted} chunks not retained =="

    yield f"== last window: {len(last)} of {buffer.last_capacity} chunks =="
    yield from _render_chunks(last, buffer.seen - len(last))


class CaptureDumper:
    """Writes capture artifacts as uniquely named temp files.

    Dumping is best-effort: any failure is logged and discarded so that it
    never masks the error being diagnosed.
    """

    def __init__(self, prefix: str, directory: str | os.PathLike | None = None,
                 suffix: str = DUMP_SUFFIX):
        self.prefix = prefix
        self.directory = directory
        self.suffix = suffix

    def dump(self, buffer: DualWindowBuffer[bytes],
             cause: BaseException | None = None) -> Path | None:
        """Write *buffer* and *cause* to a new artifact; return its path or None."""
        stack = traceback.extract_stack()[:-1]
        name = None
        try:
            fd, name = tempfile.mkstemp(prefix=self.prefix, suffix=self.suffix,
                                        dir=self.directory)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                self._write(f, buffer, cause, stack)
        except Exception:
            logger.warning("failed to write %s capture dump", self.prefix,
                           exc_info=True)
            # drop the truncated artifact
            if name is not None:
                with contextlib.suppress(OSError):
                    os.unlink(name)
            return None

        logger.info("wrote capture dump to %s", name)
        return Path(name)

    @staticmethod
    def _write(f: IO[str], buffer: DualWindowBuffer[bytes],
               cause: BaseException | None,
               stack: list[traceback.FrameSummary]) -> None:
        f.writelines(format_cause(cause, stack))
        f.write("\n")
        for line in render_windows(buffer):
            f.write(line)
            f.write("\n")
