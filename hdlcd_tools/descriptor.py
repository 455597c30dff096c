"""
HDLCd session descriptor.

The descriptor is the single octet sent in the session header. Its high
nibble selects the session type (which flows the client subscribes to),
its low nibble carries delivery flags.

    0x00  payload, no flags                  (hexinjector)
    0x04  payload, deliver received          (hexchanger)
    0x10  port status only                   (monitor, portkiller)
    0x21  raw payload, read-only             (logclient)
"""

from dataclasses import dataclass
from enum import IntEnum, IntFlag

TYPE_MASK = 0xF0
FLAGS_MASK = 0x0F


class SessionType(IntEnum):
    """Session types (high nibble of the descriptor)."""

    PAYLOAD = 0x00
    PORT_STATUS = 0x10
    PAYLOAD_RAW = 0x20
    HDLC_RAW = 0x30
    HDLC_DISSECTED = 0x40

    # Aliases used by the tools
    TRX_ALL = 0x00
    TRX_STATUS = 0x10


class SessionFlags(IntFlag):
    """Session delivery flags (low nibble of the descriptor)."""

    NONE = 0x00
    READ_ONLY = 0x01
    DELIVER_SENT = 0x02
    DELIVER_RCVD = 0x04
    DELIVER_INVALIDS = 0x08


@dataclass(frozen=True)
class SessionDescriptor:
    """
    Session type plus delivery flags.

    Attributes:
        session_type: Flows to subscribe to.
        flags: Delivery options.
    """

    session_type: SessionType
    flags: SessionFlags = SessionFlags.NONE

    def to_byte(self) -> int:
        """Wire representation of the descriptor."""
        return (int(self.session_type) & TYPE_MASK) | (int(self.flags) & FLAGS_MASK)

    def __str__(self) -> str:
        return f"{self.session_type.name} flags=0x{int(self.flags):X} (0x{self.to_byte():02X})"
