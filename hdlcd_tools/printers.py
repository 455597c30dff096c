"""
Sinks for received packets.

Each printer writes one record per call to stdout and flushes, so output
piped into another program arrives record by record.
"""

import sys
from datetime import datetime
from enum import Enum
from typing import Optional, TextIO

from hdlcd_tools.hexdump import format_log_entry, format_packet_data, format_port_status
from hdlcd_tools.packets import PacketCtrl, PacketData


class Direction(Enum):
    """Buffer direction as seen by the daemon."""

    RX = "rx"
    TX = "tx"


def _emit(text: str, out: Optional[TextIO]) -> None:
    out = out if out is not None else sys.stdout
    out.write(text + "\n")
    out.flush()


def print_packet_data(packet: PacketData, out: Optional[TextIO] = None) -> None:
    """Print a payload packet as a hex dump."""
    _emit(format_packet_data(packet), out)


def print_log_entry(
    packet: PacketData, timestamp: Optional[datetime] = None, out: Optional[TextIO] = None
) -> None:
    """Print a payload with its UTC arrival time."""
    _emit(format_log_entry(packet.payload, timestamp), out)


def print_port_status(packet: PacketCtrl, out: Optional[TextIO] = None) -> None:
    """Print a control packet as a port status line."""
    _emit(format_port_status(packet), out)


def print_dissected_frame(was_sent: bool, buffer: bytes, out: Optional[TextIO] = None) -> None:
    """
    Print an HDLC frame already dissected to text by the daemon.

    Args:
        was_sent: Frame was sent by the daemon (else received from the device).
        buffer: ASCII rendition of the frame.
        out: Output stream (default: sys.stdout).
    """
    prefix = "<<< Sent " if was_sent else ">>> Rcvd "
    _emit(prefix + buffer.decode("ascii", errors="replace"), out)


class NullDumper:
    """Buffer sink that discards everything."""

    def buffer_received(self, direction: Direction, buffer: bytes) -> None:
        pass

    def __call__(self, packet: PacketData) -> None:
        direction = Direction.TX if packet.was_sent else Direction.RX
        self.buffer_received(direction, packet.payload)
