"""streamcap - bounded first/last capture of byte streams for post-mortem dumps."""

from .ringbuffer import DualWindowBuffer, window_sizes, DEFAULT_CAPTURE_FIRST, DEFAULT_CAPTURE_LAST
from .streams import CapturingReader, CapturingWriter, DRAIN_SENTINEL
from .dumper import CaptureDumper, hexdump
from .transport import ByteSource, ByteSink, SerialTransport, TCPTransport, FileTransport, available

__all__ = [
    "DualWindowBuffer", "window_sizes", "DEFAULT_CAPTURE_FIRST", "DEFAULT_CAPTURE_LAST",
    "CapturingReader", "CapturingWriter", "DRAIN_SENTINEL",
    "CaptureDumper", "hexdump",
    "ByteSource", "ByteSink", "SerialTransport", "TCPTransport", "FileTransport", "available",
]
