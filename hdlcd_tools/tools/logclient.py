#!/usr/bin/env python3
"""
HDLCd log client.

Dumps every payload received from the device together with its UTC
arrival time.
"""

import argparse
import sys
from typing import List, Optional

from hdlcd_tools.descriptor import SessionDescriptor, SessionFlags, SessionType
from hdlcd_tools.printers import print_log_entry
from hdlcd_tools.supervisor import ToolWiring
from hdlcd_tools.tools.common import positional_tool_main

PROG = "hdlcd-logclient"
BANNER = "HDLCd Logclient to dump incoming payload packets together with UTC arrival time"
# 0x21: raw payload, read-only
DESCRIPTOR = SessionDescriptor(SessionType.PAYLOAD_RAW, SessionFlags.READ_ONLY)


def make_wiring(args: argparse.Namespace) -> ToolWiring:
    return ToolWiring(descriptor=DESCRIPTOR, on_data=lambda packet: print_log_entry(packet))


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for hdlcd-logclient."""
    return positional_tool_main(
        PROG,
        BANNER,
        "Log payloads received from a device attached to the HDLC Daemon.",
        make_wiring,
        argv,
    )


if __name__ == "__main__":
    sys.exit(main())
