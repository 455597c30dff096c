#!/usr/bin/env python3
"""
HDLCd frame dissector.

Prints the HDLC frames exchanged on a port, already dissected to text by
the daemon, in both directions.
"""

import argparse
import sys
from typing import List, Optional

from hdlcd_tools.descriptor import SessionDescriptor, SessionFlags, SessionType
from hdlcd_tools.packets import PacketData
from hdlcd_tools.printers import print_dissected_frame
from hdlcd_tools.supervisor import ToolWiring
from hdlcd_tools.tools.common import connect_tool_main

PROG = "hdlcd-dissector"
BANNER = "HDLCd frame dissector"
DESCRIPTOR = SessionDescriptor(
    SessionType.HDLC_DISSECTED, SessionFlags.DELIVER_SENT | SessionFlags.DELIVER_RCVD
)


def on_frame(packet: PacketData) -> None:
    print_dissected_frame(packet.was_sent, packet.payload)


def make_wiring(args: argparse.Namespace) -> ToolWiring:
    return ToolWiring(descriptor=DESCRIPTOR, on_data=on_frame)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for hdlcd-dissector."""
    return connect_tool_main(
        PROG,
        BANNER,
        "Print dissected HDLC frames of a port managed by the HDLC Daemon.",
        make_wiring,
        argv,
    )


if __name__ == "__main__":
    sys.exit(main())
