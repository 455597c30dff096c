#!/usr/bin/env python3
"""
HDLCd port status monitor.

Prints a line for every port status notification sent by the daemon.
"""

import argparse
import sys
from typing import List, Optional

from hdlcd_tools.descriptor import SessionDescriptor, SessionFlags, SessionType
from hdlcd_tools.printers import print_port_status
from hdlcd_tools.supervisor import ToolWiring
from hdlcd_tools.tools.common import connect_tool_main

PROG = "hdlcd-monitor"
BANNER = "HDLCd port status monitor"
DESCRIPTOR = SessionDescriptor(SessionType.TRX_STATUS, SessionFlags.NONE)


def make_wiring(args: argparse.Namespace) -> ToolWiring:
    return ToolWiring(descriptor=DESCRIPTOR, on_ctrl=print_port_status)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for hdlcd-monitor."""
    return connect_tool_main(
        PROG,
        BANNER,
        "Monitor the status of a serial port managed by the HDLC Daemon.",
        make_wiring,
        argv,
    )


if __name__ == "__main__":
    sys.exit(main())
