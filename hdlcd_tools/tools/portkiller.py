#!/usr/bin/env python3
"""
HDLCd port killer.

Asks the daemon to release a serial port, then waits for the daemon to
close the session.
"""

import argparse
import sys
from typing import List, Optional

from hdlcd_tools.descriptor import SessionDescriptor, SessionFlags, SessionType
from hdlcd_tools.packets import PacketCtrl
from hdlcd_tools.supervisor import ToolWiring
from hdlcd_tools.tools.common import positional_tool_main

PROG = "hdlcd-portkiller"
BANNER = "HDLCd port killer"
# 0x10: port status only, no data exchange
DESCRIPTOR = SessionDescriptor(SessionType.PORT_STATUS, SessionFlags.NONE)


def make_wiring(args: argparse.Namespace) -> ToolWiring:
    return ToolWiring(descriptor=DESCRIPTOR, initial_packets=[PacketCtrl.port_kill_request()])


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for hdlcd-portkiller."""
    return positional_tool_main(
        PROG,
        BANNER,
        "Release a serial port held by the HDLC Daemon.",
        make_wiring,
        argv,
    )


if __name__ == "__main__":
    sys.exit(main())
