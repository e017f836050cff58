"""Transport adapters and the stream capabilities the capture layer wraps."""

from __future__ import annotations

import io
import os
import select
import socket
from typing import Protocol

_PEEK_SIZE = 65536


class ByteSource(Protocol):
    """Readable byte stream."""

    def read(self, n: int = -1) -> bytes: ...
    def readinto(self, b) -> int | None: ...
    def close(self) -> None: ...


class ByteSink(Protocol):
    """Writable byte stream."""

    def write(self, data) -> int | None: ...
    def flush(self) -> None: ...
    def close(self) -> None: ...


def available(stream) -> int:
    """Bytes readable from *stream* without blocking.

    Uses the stream's own available() when it has one, the unread tail for
    in-memory streams, and 0 otherwise.
    """
    probe = getattr(stream, "available", None)
    if probe is not None:
        return probe()
    if isinstance(stream, io.BytesIO):
        return max(0, len(stream.getbuffer()) - stream.tell())
    return 0


class SerialTransport:
    """UART / serial port transport (requires pyserial).

    *port* is a device path or any pyserial URL (``loop://``, ``socket://``).
    """

    def __init__(self, port: str, baudrate: int = 115200, timeout: float = 1.0):
        import serial
        self._ser = serial.serial_for_url(port, baudrate=baudrate, timeout=timeout)

    def read(self, n: int = 1) -> bytes:
        return self._ser.read(n)

    def readinto(self, b) -> int | None:
        return self._ser.readinto(b)

    def available(self) -> int:
        return self._ser.in_waiting

    def write(self, data) -> int | None:
        return self._ser.write(data)

    def flush(self) -> None:
        self._ser.flush()

    def close(self) -> None:
        self._ser.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


class TCPTransport:
    """TCP stream transport (client mode)."""

    def __init__(self, host: str, port: int, timeout: float = 5.0):
        self._sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._sock.settimeout(timeout)
        self._sock.connect((host, port))

    def read(self, n: int = _PEEK_SIZE) -> bytes:
        try:
            return self._sock.recv(n)
        except socket.timeout:
            return b""

    def readinto(self, b) -> int | None:
        try:
            return self._sock.recv_into(b)
        except socket.timeout:
            return 0

    def fileno(self) -> int:
        return self._sock.fileno()

    def available(self) -> int:
        """Bytes already queued in the kernel receive buffer (capped at 64 KiB)."""
        ready, _, _ = select.select([self._sock], [], [], 0)
        if not ready:
            return 0
        return len(self._sock.recv(_PEEK_SIZE, socket.MSG_PEEK))

    def write(self, data) -> int | None:
        self._sock.sendall(data)
        return len(data)

    def flush(self) -> None:
        pass

    def close(self) -> None:
        self._sock.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


class FileTransport:
    """Read from / write to a raw binary file (for replay or logging)."""

    def __init__(self, path: str | os.PathLike, mode: str = "rb"):
        self._f = open(path, mode)

    def read(self, n: int = -1) -> bytes:
        return self._f.read(n) or b""

    def readinto(self, b) -> int | None:
        return self._f.readinto(b)

    def available(self) -> int:
        return max(0, os.fstat(self._f.fileno()).st_size - self._f.tell())

    def write(self, data) -> int | None:
        return self._f.write(data)

    def flush(self) -> None:
        self._f.flush()

    def close(self) -> None:
        self._f.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
