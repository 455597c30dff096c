"""
HDLCd access protocol packets.

Session header (client -> daemon, once, right after TCP connect):
    [version=0x00][descriptor][name_len][device name...]

Packets (both directions), first byte is the packet type:
    Data:    [0x00|reliable|invalid|was_sent][len_hi][len_lo][payload...]
    Control: [0x10][ctrl]   ctrl = [type4..7|alive|locked_by_others|locked_by_self]
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import List, Union

from hdlcd_tools.descriptor import SessionDescriptor

PROTOCOL_VERSION = 0x00
MAX_DEVICE_NAME = 0xFF
MAX_PAYLOAD_SIZE = 0xFFFF  # 16-bit length field

# Packet type byte
PACKET_TYPE_MASK = 0xF0
PACKET_TYPE_DATA = 0x00
PACKET_TYPE_CTRL = 0x10

# Data packet flags
DATA_RELIABLE = 0x04
DATA_INVALID = 0x02
DATA_WAS_SENT = 0x01

# Control byte
CTRL_TYPE_MASK = 0xF0
STATUS_ALIVE = 0x04
STATUS_LOCKED_BY_OTHERS = 0x02
STATUS_LOCKED_BY_SELF = 0x01

DATA_HEADER_SIZE = 3
CTRL_PACKET_SIZE = 2


class CtrlType(IntEnum):
    """Control packet types (high nibble of the control byte)."""

    PORT_STATUS = 0x00
    ECHO = 0x10
    KEEP_ALIVE = 0x20
    PORT_KILL = 0x30


class PacketError(ValueError):
    """Malformed access protocol packet."""

    pass


def encode_session_header(device: str, descriptor: SessionDescriptor) -> bytes:
    """
    Build the session header sent after TCP connect.

    Args:
        device: Serial device name as known to the daemon.
        descriptor: Session descriptor.

    Returns:
        Encoded session header.

    Raises:
        PacketError: If the device name does not fit the length byte.
    """
    name = device.encode("utf-8")
    if len(name) > MAX_DEVICE_NAME:
        raise PacketError(f"Device name too long: {len(name)} bytes (max {MAX_DEVICE_NAME})")

    return bytes([PROTOCOL_VERSION, descriptor.to_byte(), len(name)]) + name


@dataclass(frozen=True)
class PacketData:
    """
    Payload packet.

    Attributes:
        payload: Payload bytes.
        reliable: Payload travels over the reliable HDLC channel.
        invalid: Daemon flagged the frame as invalid (CRC/format).
        was_sent: Payload was sent by the daemon (False: received from the device).
    """

    payload: bytes
    reliable: bool = False
    invalid: bool = False
    was_sent: bool = False

    @classmethod
    def create(cls, payload: bytes, reliable: bool = True, was_sent: bool = True) -> "PacketData":
        """Create an outbound payload packet."""
        return cls(payload=bytes(payload), reliable=reliable, was_sent=was_sent)

    def to_bytes(self) -> bytes:
        """
        Serialize the packet.

        Raises:
            PacketError: If the payload exceeds the 16-bit length field.
        """
        if len(self.payload) > MAX_PAYLOAD_SIZE:
            raise PacketError(
                f"Payload too long: {len(self.payload)} bytes (max {MAX_PAYLOAD_SIZE})"
            )

        type_byte = PACKET_TYPE_DATA
        if self.reliable:
            type_byte |= DATA_RELIABLE
        if self.invalid:
            type_byte |= DATA_INVALID
        if self.was_sent:
            type_byte |= DATA_WAS_SENT

        return bytes([type_byte]) + len(self.payload).to_bytes(2, "big") + self.payload


@dataclass(frozen=True)
class PacketCtrl:
    """
    Control packet.

    Attributes:
        ctrl_type: Control packet type.
        alive: Serial port is alive (port status only).
        locked_by_others: Port is locked by another session (port status only).
        locked_by_self: Port is locked by this session (port status only).
    """

    ctrl_type: CtrlType
    alive: bool = False
    locked_by_others: bool = False
    locked_by_self: bool = False

    @classmethod
    def port_status_request(cls, lock: bool = False) -> "PacketCtrl":
        """Request the port status; optionally ask for the port lock."""
        return cls(ctrl_type=CtrlType.PORT_STATUS, locked_by_self=lock)

    @classmethod
    def port_kill_request(cls) -> "PacketCtrl":
        """Ask the daemon to release the serial port."""
        return cls(ctrl_type=CtrlType.PORT_KILL)

    @classmethod
    def keep_alive(cls) -> "PacketCtrl":
        return cls(ctrl_type=CtrlType.KEEP_ALIVE)

    @property
    def is_port_status(self) -> bool:
        return self.ctrl_type == CtrlType.PORT_STATUS

    def to_bytes(self) -> bytes:
        """Serialize the packet."""
        ctrl = int(self.ctrl_type)
        if self.ctrl_type == CtrlType.PORT_STATUS:
            if self.alive:
                ctrl |= STATUS_ALIVE
            if self.locked_by_others:
                ctrl |= STATUS_LOCKED_BY_OTHERS
            if self.locked_by_self:
                ctrl |= STATUS_LOCKED_BY_SELF

        return bytes([PACKET_TYPE_CTRL, ctrl])

    @classmethod
    def from_byte(cls, ctrl: int) -> "PacketCtrl":
        """
        Parse a control byte.

        Raises:
            PacketError: If the control type is unknown.
        """
        try:
            ctrl_type = CtrlType(ctrl & CTRL_TYPE_MASK)
        except ValueError:
            raise PacketError(f"Unknown control type in byte 0x{ctrl:02X}") from None

        if ctrl_type != CtrlType.PORT_STATUS:
            return cls(ctrl_type=ctrl_type)

        return cls(
            ctrl_type=ctrl_type,
            alive=bool(ctrl & STATUS_ALIVE),
            locked_by_others=bool(ctrl & STATUS_LOCKED_BY_OTHERS),
            locked_by_self=bool(ctrl & STATUS_LOCKED_BY_SELF),
        )


Packet = Union[PacketData, PacketCtrl]


class PacketDecoder:
    """
    Stateful packet decoder for incremental decoding.

    Bytes are fed as they arrive from the socket; complete packets are
    returned in arrival order and partial packets are kept for the next feed.
    """

    def __init__(self) -> None:
        """Initialize decoder state."""
        self.buffer = bytearray()

    def feed(self, data: bytes) -> List[Packet]:
        """
        Feed data to decoder and return complete packets.

        Args:
            data: Raw bytes from the socket.

        Returns:
            List of complete packets (if any).

        Raises:
            PacketError: If an unknown packet type is encountered. The decoder
                cannot resynchronize after that and must be reset.
        """
        self.buffer.extend(data)
        packets: List[Packet] = []

        while self.buffer:
            packet_type = self.buffer[0] & PACKET_TYPE_MASK

            if packet_type == PACKET_TYPE_DATA:
                if len(self.buffer) < DATA_HEADER_SIZE:
                    break
                length = int.from_bytes(self.buffer[1:3], "big")
                end = DATA_HEADER_SIZE + length
                if len(self.buffer) < end:
                    break

                type_byte = self.buffer[0]
                packets.append(
                    PacketData(
                        payload=bytes(self.buffer[DATA_HEADER_SIZE:end]),
                        reliable=bool(type_byte & DATA_RELIABLE),
                        invalid=bool(type_byte & DATA_INVALID),
                        was_sent=bool(type_byte & DATA_WAS_SENT),
                    )
                )
                del self.buffer[:end]

            elif packet_type == PACKET_TYPE_CTRL:
                if len(self.buffer) < CTRL_PACKET_SIZE:
                    break
                packets.append(PacketCtrl.from_byte(self.buffer[1]))
                del self.buffer[:CTRL_PACKET_SIZE]

            else:
                raise PacketError(f"Unknown packet type byte 0x{self.buffer[0]:02X}")

        return packets

    def reset(self) -> None:
        """Reset decoder state (discard incomplete packet)."""
        self.buffer = bytearray()
