"""
HDLCd Tools - command-line clients for the HDLC Daemon.

Each tool opens one session to an HDLCd over TCP, attaches to one
daemon-managed serial device and does one job: exchange or inject hex
payloads, log received payloads, monitor port status, kill a port or print
dissected frames.
"""

__version__ = "1.0.0"
__author__ = "HDLCd Tools Contributors"

from hdlcd_tools.client import HdlcdClient, SessionHandlers, SessionState
from hdlcd_tools.descriptor import SessionDescriptor, SessionFlags, SessionType
from hdlcd_tools.destination import DestinationSpec, parse_destination

__all__ = [
    "DestinationSpec",
    "HdlcdClient",
    "SessionDescriptor",
    "SessionFlags",
    "SessionHandlers",
    "SessionState",
    "SessionType",
    "parse_destination",
    "__version__",
]
