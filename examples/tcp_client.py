#!/usr/bin/env python3
"""Read length-prefixed frames from a TCP peer, dumping the capture on failure.

Point it at anything that speaks [uint32 LE length][payload]:
    python examples/tcp_client.py localhost 4040

On a protocol error or a closed connection the first 8 and last 64 chunks
seen in each direction are written to streamcap*Capture-*.txt in the temp
directory.
"""

import logging
import select
import struct
import sys

from streamcap.streams import CapturingReader, CapturingWriter
from streamcap.transport import TCPTransport

logging.basicConfig(level=logging.INFO)

MAX_FRAME = 1_048_576


def read_exact(reader: CapturingReader, n: int) -> bytes:
    """Read exactly *n* bytes; a peer that hangs up mid-frame is an error."""
    buf = bytearray()
    while len(buf) < n:
        # TCPTransport.read returns b"" on timeout as well as EOF
        readable, _, _ = select.select([reader], [], [], 5.0)
        if not readable:
            continue
        chunk = reader.read(n - len(buf))
        if not chunk:
            raise ConnectionError(f"connection closed after {len(buf)} of {n} bytes")
        buf.extend(chunk)
    return bytes(buf)


host, port = sys.argv[1], int(sys.argv[2])
transport = TCPTransport(host, port, timeout=5.0)
reader = CapturingReader(transport, 8, 64)
writer = CapturingWriter(transport, 8, 64)

try:
    writer.write(b"HELLO\n")
    while True:
        (length,) = struct.unpack("<I", read_exact(reader, 4))
        if length > MAX_FRAME:
            raise ValueError(f"frame length {length} exceeds {MAX_FRAME}")
        print(f"frame: {read_exact(reader, length)!r}")
except KeyboardInterrupt:
    pass
except Exception as exc:
    reader.capture_rest_of_stream()
    print(f"input capture: {reader.dump(exc)}", file=sys.stderr)
    print(f"output capture: {writer.dump(exc)}", file=sys.stderr)
    raise
finally:
    transport.close()
