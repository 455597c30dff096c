"""
Line-oriented, non-blocking standard input reader.

Pipes, terminals and sockets are watched by the event loop through
connect_read_pipe(). Anything else (regular files, /dev/null and other
character devices) cannot be watched for readiness, so it is read chunk by
chunk from loop callbacks.
"""

import asyncio
import logging
import os
import stat
import sys
from typing import Callable, Optional

logger = logging.getLogger(__name__)

READ_CHUNK = 4096


class LineReader(asyncio.Protocol):
    """
    Delivers each complete input line as bytes.

    The trailing newline (and a carriage return before it) is stripped.
    A partial line still buffered at end-of-input is discarded.
    """

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        on_line: Callable[[bytes], None],
        on_eof: Optional[Callable[[], None]] = None,
        stream=None,
    ):
        """
        Initialize line reader.

        Args:
            loop: Event loop to schedule reads on.
            on_line: Invoked with each line.
            on_eof: Invoked once when the input is exhausted.
            stream: Input file object (default: sys.stdin).
        """
        self.loop = loop
        self.on_line = on_line
        self.on_eof = on_eof
        self.stream = stream if stream is not None else sys.stdin

        self._buffer = bytearray()
        self._closed = False
        self._transport: Optional[asyncio.BaseTransport] = None
        self._attach_task: Optional[asyncio.Task] = None
        self._pump_handle: Optional[asyncio.Handle] = None
        self._fd: Optional[int] = None

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self) -> None:
        """Begin reading on the loop."""
        pipe = getattr(self.stream, "buffer", self.stream)
        fd = pipe.fileno()

        mode = os.fstat(fd).st_mode
        if not (stat.S_ISFIFO(mode) or stat.S_ISSOCK(mode) or os.isatty(fd)):
            self._fd = fd
            self._pump_handle = self.loop.call_soon(self._pump_file)
            return

        self._attach_task = self.loop.create_task(
            self.loop.connect_read_pipe(lambda: self, pipe)
        )
        self._attach_task.add_done_callback(self._attached)

    def close(self) -> None:
        """Stop reading; on_eof is not invoked. Idempotent."""
        if self._closed:
            return

        self._closed = True
        self._buffer.clear()
        if self._pump_handle is not None:
            self._pump_handle.cancel()
            self._pump_handle = None
        if self._attach_task is not None and not self._attach_task.done():
            self._attach_task.cancel()
        if self._transport is not None:
            self._transport.close()
        logger.debug("Line reader closed")

    # asyncio.Protocol

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        self._transport = transport

    def data_received(self, data: bytes) -> None:
        self._feed(data)

    def eof_received(self) -> None:
        self._end_of_input()

    def connection_lost(self, exc: Optional[Exception]) -> None:
        if exc is not None:
            logger.warning(f"Input stream failed: {exc}")
        self._end_of_input()

    # Internals

    def _attached(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Cannot read input stream: {exc}")
            self._end_of_input()
            return
        if self._closed:
            transport, _ = task.result()
            transport.close()

    def _pump_file(self) -> None:
        self._pump_handle = None
        try:
            data = os.read(self._fd, READ_CHUNK)
        except OSError as e:
            logger.warning(f"Input stream failed: {e}")
            data = b""
        if not data:
            self._end_of_input()
            return

        self._feed(data)
        if not self._closed:
            self._pump_handle = self.loop.call_soon(self._pump_file)

    def _feed(self, data: bytes) -> None:
        if self._closed:
            return

        self._buffer.extend(data)
        while not self._closed:
            newline = self._buffer.find(b"\n")
            if newline < 0:
                break
            line = bytes(self._buffer[:newline]).rstrip(b"\r")
            del self._buffer[: newline + 1]
            self.on_line(line)

    def _end_of_input(self) -> None:
        if self._closed:
            return

        if self._buffer:
            logger.debug(f"Discarding {len(self._buffer)} bytes of partial input line")
        self.close()
        logger.debug("End of input")
        if self.on_eof is not None:
            self.on_eof()
