#!/usr/bin/env python3
"""
HDLCd payload exchanger.

Reads hex payloads from stdin, one packet per line, and prints every
payload received from the device as a hex dump.
"""

import argparse
import sys
from typing import List, Optional

from hdlcd_tools.descriptor import SessionDescriptor, SessionFlags, SessionType
from hdlcd_tools.hexdump import HexPayloadError, parse_hex_payload
from hdlcd_tools.line_reader import LineReader
from hdlcd_tools.packets import PacketData
from hdlcd_tools.printers import print_packet_data
from hdlcd_tools.supervisor import SessionContext, ToolWiring
from hdlcd_tools.tools.common import connect_tool_main

PROG = "hdlcd-hexchanger"
BANNER = "HDLCd payload exchanger (hexdumps via STDIO)"
DESCRIPTOR = SessionDescriptor(SessionType.TRX_ALL, SessionFlags.DELIVER_RCVD)


def start_exchange(context: SessionContext, stream=None) -> LineReader:
    """
    Start forwarding stdin lines to the session.

    End of input half-closes the session so replies already in flight are
    still printed before the daemon closes it.
    """
    client = context.client

    def on_line(line: bytes) -> None:
        try:
            payload = parse_hex_payload(line.decode("ascii", errors="replace"))
        except HexPayloadError as e:
            print(f"{PROG}: {e}, line ignored", file=sys.stderr, flush=True)
            return
        if payload:
            client.send(PacketData.create(payload))

    reader = LineReader(context.loop, on_line, on_eof=client.shutdown, stream=stream)
    context.stopper.register(reader.close)
    reader.start()
    return reader


def make_wiring(args: argparse.Namespace) -> ToolWiring:
    return ToolWiring(
        descriptor=DESCRIPTOR,
        on_data=print_packet_data,
        on_connected=start_exchange,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for hdlcd-hexchanger."""
    return connect_tool_main(
        PROG,
        BANNER,
        "Exchange hex payloads with a device attached to the HDLC Daemon.",
        make_wiring,
        argv,
    )


if __name__ == "__main__":
    sys.exit(main())
