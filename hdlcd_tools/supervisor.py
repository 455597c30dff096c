"""
Session lifecycle shared by every tool.

supervise() resolves the daemon endpoint, opens the session with the tool's
descriptor, arms the signal handlers, lets the tool pump data once the
session is open, and returns after an orderly shutdown caused by any of:
daemon close, SIGINT/SIGTERM, connect failure or end of the tool's work.
"""

import asyncio
import logging
import sys
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from hdlcd_tools.client import HdlcdClient, SessionHandlers
from hdlcd_tools.config import ToolsConfig
from hdlcd_tools.descriptor import SessionDescriptor
from hdlcd_tools.destination import DestinationSpec
from hdlcd_tools.packets import Packet, PacketCtrl, PacketData
from hdlcd_tools.signals import SignalSupervisor
from hdlcd_tools.stopper import SystemStopper

logger = logging.getLogger(__name__)

CONNECT_FAILED_MESSAGE = "Failed to connect to the HDLC Daemon!"


@dataclass
class SessionContext:
    """Handles passed to a tool once its session is open."""

    loop: asyncio.AbstractEventLoop
    client: HdlcdClient
    stopper: SystemStopper


@dataclass
class ToolWiring:
    """
    What distinguishes one tool from another.

    Attributes:
        descriptor: Session descriptor sent to the daemon.
        on_data: Sink for inbound payload packets.
        on_ctrl: Sink for inbound control packets.
        on_connected: Invoked once the session is open; starts the tool's work.
        initial_packets: Packets queued before connecting.
    """

    descriptor: SessionDescriptor
    on_data: Optional[Callable[[PacketData], None]] = None
    on_ctrl: Optional[Callable[[PacketCtrl], None]] = None
    on_connected: Optional[Callable[[SessionContext], None]] = None
    initial_packets: Sequence[Packet] = ()


async def supervise(
    destination: DestinationSpec, wiring: ToolWiring, config: Optional[ToolsConfig] = None
) -> bool:
    """
    Run one session to completion.

    Args:
        destination: Device and daemon to attach to.
        wiring: Tool-specific descriptor and callbacks.
        config: Session timing; defaults apply if None.

    Returns:
        True if the session was opened, False if connecting failed.
    """
    if config is None:
        config = ToolsConfig()

    loop = asyncio.get_running_loop()
    connected = False
    interrupted = False
    failure: Optional[Exception] = None

    with SystemStopper() as stopper:
        signals = SignalSupervisor(loop)

        def on_signal() -> None:
            nonlocal interrupted
            interrupted = True
            stopper.stop()

        signals.async_wait(on_signal)
        stopper.register(signals.cancel)

        client = HdlcdClient(
            loop,
            destination.device,
            wiring.descriptor,
            SessionHandlers(on_data=wiring.on_data, on_ctrl=wiring.on_ctrl, on_closed=stopper.stop),
            keepalive_interval=config.session.keepalive_interval_s,
            linger=config.session.linger_s,
        )
        stopper.register(client.close)

        for packet in wiring.initial_packets:
            client.send(packet)

        def on_result(success: bool) -> None:
            nonlocal connected, failure
            if success:
                connected = True
                if wiring.on_connected is not None:
                    try:
                        wiring.on_connected(SessionContext(loop, client, stopper))
                    except Exception as e:
                        # Re-raised once the session is down
                        failure = e
                        stopper.stop()
                return

            if not interrupted:
                print(CONNECT_FAILED_MESSAGE, file=sys.stderr, flush=True)
            stopper.stop()

        logger.info(f"Connecting to {destination} with descriptor {wiring.descriptor}")
        client.async_resolve_and_connect(destination.host, destination.service, on_result)
        await client.wait_closed()

    if failure is not None:
        raise failure
    return connected
