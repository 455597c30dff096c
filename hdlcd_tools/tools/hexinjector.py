#!/usr/bin/env python3
"""
HDLCd payload injector.

Sends a single payload given as a hex dump on the command line, then
half-closes the session and exits once the daemon has closed it.
"""

import argparse
import sys
from typing import List, Optional

from hdlcd_tools.descriptor import SessionDescriptor, SessionFlags, SessionType
from hdlcd_tools.hexdump import HexPayloadError, parse_hex_payload
from hdlcd_tools.packets import PacketData
from hdlcd_tools.printers import NullDumper
from hdlcd_tools.supervisor import SessionContext, ToolWiring
from hdlcd_tools.tools.common import ToolUsageError, connect_tool_main

PROG = "hdlcd-hexinjector"
BANNER = "HDLCd payload injector (single packet as hexdump via command line)"
# Data TX only, control RX/TX
DESCRIPTOR = SessionDescriptor(SessionType.PAYLOAD, SessionFlags.NONE)


def make_wiring(args: argparse.Namespace) -> ToolWiring:
    if args.payload is None:
        raise ToolUsageError("you have to provide a payload to be transmitted")

    try:
        payload = parse_hex_payload(args.payload)
    except HexPayloadError as e:
        raise ToolUsageError(str(e)) from e

    def inject(context: SessionContext) -> None:
        context.client.send(PacketData.create(payload))
        context.client.shutdown()

    return ToolWiring(descriptor=DESCRIPTOR, on_data=NullDumper(), on_connected=inject)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for hdlcd-hexinjector."""
    return connect_tool_main(
        PROG,
        BANNER,
        "Inject a single hex payload into a device attached to the HDLC Daemon.",
        make_wiring,
        argv,
        payload=True,
    )


if __name__ == "__main__":
    sys.exit(main())
