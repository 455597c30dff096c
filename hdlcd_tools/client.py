"""
HDLCd client session.

HdlcdClient owns the TCP connection to the daemon and runs the session
lifecycle on the asyncio event loop:

    IDLE -> CONNECTING -> OPEN -> CLOSING -> CLOSED
                 |                              ^
                 +------------------------------+   (connect failure)

All callbacks (connect result, data, control, closed) are invoked on the
loop. on_closed fires exactly once per session, after the last inbound
callback, and never from inside another callback.
"""

import asyncio
import logging
import socket
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, List, NamedTuple, Optional, Tuple

from hdlcd_tools.descriptor import SessionDescriptor
from hdlcd_tools.packets import (
    CtrlType,
    Packet,
    PacketCtrl,
    PacketData,
    PacketDecoder,
    PacketError,
    encode_session_header,
)

logger = logging.getLogger(__name__)

DEFAULT_KEEPALIVE_INTERVAL = 60.0
DEFAULT_LINGER = 2.0


class SessionState(Enum):
    """Session lifecycle state."""

    IDLE = "idle"
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"


@dataclass
class SessionHandlers:
    """
    Callbacks invoked by the session.

    Attributes:
        on_data: Invoked with each inbound payload packet.
        on_ctrl: Invoked with each inbound control packet (keep-alives excluded).
        on_closed: Invoked once when the session reaches CLOSED.
    """

    on_data: Optional[Callable[[PacketData], None]] = None
    on_ctrl: Optional[Callable[[PacketCtrl], None]] = None
    on_closed: Optional[Callable[[], None]] = None


class Endpoint(NamedTuple):
    """Resolved TCP endpoint."""

    family: int
    address: Tuple


async def resolve(host: str, service: str) -> List[Endpoint]:
    """
    Resolve a host and service to TCP endpoints.

    Args:
        host: Host name or address.
        service: Port number or service name.

    Returns:
        Endpoints in resolver order.

    Raises:
        OSError: On resolution failure (socket.gaierror).
    """
    loop = asyncio.get_running_loop()
    infos = await loop.getaddrinfo(host, service, type=socket.SOCK_STREAM)
    return [Endpoint(family, sockaddr) for family, _, _, _, sockaddr in infos]


class HdlcdClient(asyncio.Protocol):
    """
    Client session to one serial device managed by the HDLC daemon.

    The client is its own asyncio protocol; the transport is created once a
    TCP connection succeeds and the session header has been queued.
    """

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        device: str,
        descriptor: SessionDescriptor,
        handlers: Optional[SessionHandlers] = None,
        keepalive_interval: float = DEFAULT_KEEPALIVE_INTERVAL,
        linger: float = DEFAULT_LINGER,
    ):
        """
        Initialize client session.

        Args:
            loop: Event loop all I/O and callbacks run on.
            device: Serial device name as known to the daemon.
            descriptor: Session descriptor sent in the session header.
            handlers: Inbound and closed callbacks.
            keepalive_interval: Seconds between keep-alives while open (0 disables).
            linger: Seconds to wait for the daemon to close after shutdown()
                before closing locally (0 waits forever).
        """
        self.loop = loop
        self.device = device
        self.descriptor = descriptor
        self.handlers = handlers if handlers is not None else SessionHandlers()
        self.keepalive_interval = keepalive_interval
        self.linger = linger

        self.state = SessionState.IDLE
        self._transport: Optional[asyncio.Transport] = None
        self._decoder = PacketDecoder()
        self._pending: List[bytes] = []
        self._header = b""
        self._on_result: Optional[Callable[[bool], None]] = None
        self._connect_task: Optional[asyncio.Task] = None
        self._shutdown_requested = False
        self._aborted = False
        self._keepalive_handle: Optional[asyncio.TimerHandle] = None
        self._linger_handle: Optional[asyncio.TimerHandle] = None
        self._closed_notified = False
        self._closed_future: asyncio.Future = loop.create_future()

        # Statistics
        self.stats = {
            "packets_tx": 0,
            "packets_rx": 0,
            "bytes_tx": 0,
            "bytes_rx": 0,
            "dropped_tx": 0,
        }

    @property
    def is_open(self) -> bool:
        return self.state == SessionState.OPEN

    @property
    def is_closed(self) -> bool:
        return self.state == SessionState.CLOSED

    # Connect

    def async_connect(self, endpoints: Iterable[Endpoint], on_result: Callable[[bool], None]) -> None:
        """
        Connect to the first reachable endpoint.

        Args:
            endpoints: Endpoints tried in order.
            on_result: Invoked exactly once with the outcome, before any
                data or control callback.

        Raises:
            RuntimeError: If the session is not idle.
        """
        self._begin_connect(on_result)
        self._connect_task = self.loop.create_task(self._connect(list(endpoints)))

    def async_resolve_and_connect(
        self, host: str, service: str, on_result: Callable[[bool], None]
    ) -> None:
        """
        Resolve host/service, then connect as async_connect() does.

        A resolution failure is reported as on_result(False).
        """
        self._begin_connect(on_result)
        self._connect_task = self.loop.create_task(self._resolve_and_connect(host, service))

    def _begin_connect(self, on_result: Callable[[bool], None]) -> None:
        if self.state != SessionState.IDLE:
            raise RuntimeError(f"Cannot connect a session in state {self.state.value}")

        self.state = SessionState.CONNECTING
        self._on_result = on_result

    async def _resolve_and_connect(self, host: str, service: str) -> None:
        try:
            endpoints = await resolve(host, service)
        except OSError as e:
            logger.warning(f"Cannot resolve {host}:{service}: {e}")
            self._connect_failed()
            return

        await self._connect(endpoints)

    async def _connect(self, endpoints: List[Endpoint]) -> None:
        try:
            self._header = encode_session_header(self.device, self.descriptor)
        except PacketError as e:
            logger.error(f"Session header rejected: {e}")
            self._connect_failed()
            return

        for endpoint in endpoints:
            sock = socket.socket(endpoint.family, socket.SOCK_STREAM)
            try:
                sock.setblocking(False)
                logger.debug(f"Connecting to {endpoint.address}")
                await self.loop.sock_connect(sock, endpoint.address)
                await self.loop.create_connection(lambda: self, sock=sock)
            except OSError as e:
                sock.close()
                logger.debug(f"Connect to {endpoint.address} failed: {e}")
                continue
            except asyncio.CancelledError:
                sock.close()
                raise
            return

        self._connect_failed()

    def _connect_failed(self) -> None:
        if self.state != SessionState.CONNECTING:
            return

        logger.info(f"Session to {self.device} could not be established")
        self.state = SessionState.CLOSED
        self._pending.clear()
        self._report_result(False)
        self._notify_closed()

    def _report_result(self, success: bool) -> None:
        on_result, self._on_result = self._on_result, None
        if on_result is not None:
            on_result(success)

    # asyncio.Protocol

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        if self.state != SessionState.CONNECTING:
            # Closed while the connection was being set up
            transport.abort()
            return

        self._transport = transport
        self.state = SessionState.OPEN
        logger.info(f"Session open: device={self.device} descriptor={self.descriptor}")

        transport.write(self._header)
        pending, self._pending = self._pending, []
        for data in pending:
            self._write(data)
        self._schedule_keepalive()

        self._report_result(True)

        if self._shutdown_requested and self.state == SessionState.OPEN:
            self._begin_shutdown()

    def data_received(self, data: bytes) -> None:
        if self._aborted or self.state == SessionState.CLOSED:
            return

        try:
            packets = self._decoder.feed(data)
        except PacketError as e:
            logger.error(f"Protocol error, closing session: {e}")
            self._decoder.reset()
            self.close()
            return

        for packet in packets:
            if self._aborted:
                break
            self._dispatch(packet)

    def eof_received(self) -> None:
        logger.info("Daemon closed the session")

    def connection_lost(self, exc: Optional[Exception]) -> None:
        if exc is not None and not self._aborted:
            logger.warning(f"Connection to daemon lost: {exc}")

        self._transport = None
        self.state = SessionState.CLOSED
        self._notify_closed()

    def _dispatch(self, packet: Packet) -> None:
        self.stats["packets_rx"] += 1

        if isinstance(packet, PacketData):
            self.stats["bytes_rx"] += len(packet.payload)
            logger.debug(f"RX data: {packet.payload.hex()}")
            if self.handlers.on_data is not None:
                self.handlers.on_data(packet)
            return

        if packet.ctrl_type == CtrlType.KEEP_ALIVE:
            logger.debug("RX keep-alive")
            return

        logger.debug(f"RX ctrl: {packet}")
        if self.handlers.on_ctrl is not None:
            self.handlers.on_ctrl(packet)

    # Send

    def send(self, packet: Packet) -> None:
        """
        Queue an outbound packet.

        Packets reach the daemon in submission order. Packets sent before the
        session is open are flushed right after the session header. Once
        shutdown() or close() has been requested, packets are dropped.

        Args:
            packet: Payload or control packet.

        Raises:
            PacketError: If the packet cannot be encoded.
        """
        if self._shutdown_requested or self.state in (SessionState.CLOSING, SessionState.CLOSED):
            self.stats["dropped_tx"] += 1
            logger.debug(f"Dropping packet in state {self.state.value}: {packet}")
            return

        data = packet.to_bytes()
        if self.state == SessionState.OPEN:
            self._write(data)
        else:
            self._pending.append(data)

    def _write(self, data: bytes) -> None:
        self._transport.write(data)
        self.stats["packets_tx"] += 1
        self.stats["bytes_tx"] += len(data)
        logger.debug(f"TX: {data.hex()}")

    def _schedule_keepalive(self) -> None:
        if self.keepalive_interval > 0:
            self._keepalive_handle = self.loop.call_later(
                self.keepalive_interval, self._send_keepalive
            )

    def _send_keepalive(self) -> None:
        self._keepalive_handle = None
        if self.state == SessionState.OPEN:
            self._write(PacketCtrl.keep_alive().to_bytes())
            self._schedule_keepalive()

    # Shutdown

    def shutdown(self) -> None:
        """
        Half-close the session.

        Queued packets are written, then the sending direction is closed.
        Inbound packets are still delivered until the daemon closes; if it
        has not done so after `linger` seconds the session is closed.
        """
        if self.state == SessionState.IDLE:
            self.close()
        elif self.state == SessionState.CONNECTING:
            self._shutdown_requested = True
        elif self.state == SessionState.OPEN:
            self._shutdown_requested = True
            self._begin_shutdown()

    def _begin_shutdown(self) -> None:
        self.state = SessionState.CLOSING
        self._cancel_timers()
        logger.debug("Session shutdown requested")

        if self._transport.can_write_eof():
            self._transport.write_eof()
        else:
            self._transport.close()

        if self.linger > 0:
            self._linger_handle = self.loop.call_later(self.linger, self._linger_expired)

    def _linger_expired(self) -> None:
        self._linger_handle = None
        logger.info(f"Daemon did not close the session within {self.linger}s, closing")
        self.close()

    def close(self) -> None:
        """
        Close the session immediately; unsent packets are dropped.

        Closing while connecting cancels the attempt and reports failure.
        Idempotent.
        """
        if self.state == SessionState.CLOSED or self._aborted:
            return

        if self.state in (SessionState.IDLE, SessionState.CONNECTING):
            if self._connect_task is not None and not self._connect_task.done():
                self._connect_task.cancel()
            self.state = SessionState.CONNECTING
            self._connect_failed()
            return

        logger.debug("Closing session")
        self._aborted = True
        self.state = SessionState.CLOSING
        self._cancel_timers()
        # connection_lost() follows from the loop
        self._transport.abort()

    def _cancel_timers(self) -> None:
        if self._keepalive_handle is not None:
            self._keepalive_handle.cancel()
            self._keepalive_handle = None
        if self._linger_handle is not None:
            self._linger_handle.cancel()
            self._linger_handle = None

    def _notify_closed(self) -> None:
        if self._closed_notified:
            return

        self._closed_notified = True
        self._cancel_timers()
        self.loop.call_soon(self._fire_closed)

    def _fire_closed(self) -> None:
        logger.info(f"Session closed: {self.stats}")
        try:
            if self.handlers.on_closed is not None:
                self.handlers.on_closed()
        finally:
            if not self._closed_future.done():
                self._closed_future.set_result(None)

    async def wait_closed(self) -> None:
        """Wait until on_closed has been delivered."""
        await asyncio.shield(self._closed_future)

    def __enter__(self) -> "HdlcdClient":
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.close()
