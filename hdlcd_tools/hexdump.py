"""
Hex payload parsing and hex dump rendering.

Payloads are written as whitespace-separated hexadecimal byte tokens, for
example "de ad be ef" or "0x48 0x65". Dumps use the same token format so a
printed payload can be pasted back into a tool.
"""

from datetime import datetime, timezone
from typing import Optional

from hdlcd_tools.packets import MAX_PAYLOAD_SIZE, PacketCtrl, PacketData

HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


class HexPayloadError(ValueError):
    """Payload text is not a sequence of hex byte tokens."""

    def __init__(self, message: str, token: Optional[str] = None, position: Optional[int] = None):
        self.token = token
        self.position = position
        super().__init__(message)


def parse_hex_payload(text: str, max_size: int = MAX_PAYLOAD_SIZE) -> bytes:
    """
    Parse whitespace-separated hex byte tokens.

    Args:
        text: Payload text, e.g. "48 65 6c 6c 6f".
        max_size: Maximum number of bytes accepted.

    Returns:
        Decoded payload.

    Raises:
        HexPayloadError: On a token that is not a hex byte, or a payload
            longer than max_size.
    """
    tokens = text.split()
    if len(tokens) > max_size:
        raise HexPayloadError(f"Payload too long: {len(tokens)} bytes (max {max_size})")

    payload = bytearray()
    for position, token in enumerate(tokens, start=1):
        digits = token[2:] if token[:2].lower() == "0x" else token
        # int() alone would also accept '+', '-' and '_'
        if not digits or not set(digits) <= HEX_DIGITS or int(digits, 16) > 0xFF:
            raise HexPayloadError(
                f"Invalid hex byte '{token}' at position {position}", token, position
            )
        payload.append(int(digits, 16))

    return bytes(payload)


def format_hex_dump(data: bytes, width: int = 16) -> str:
    """
    Render bytes as rows of hex tokens.

    Args:
        data: Bytes to render.
        width: Tokens per row.

    Returns:
        Multi-line dump, empty string for empty data.
    """
    rows = []
    for offset in range(0, len(data), width):
        rows.append(data[offset : offset + width].hex(" "))
    return "\n".join(rows)


def format_packet_data(packet: PacketData) -> str:
    """Header line plus hex dump for a payload packet."""
    direction = "<<< Sent" if packet.was_sent else ">>> Rcvd"
    channel = "reliable" if packet.reliable else "unreliable"
    header = f"{direction} {len(packet.payload)} bytes ({channel}"
    if packet.invalid:
        header += ", invalid"
    header += "):"

    dump = format_hex_dump(packet.payload)
    return f"{header}\n{dump}" if dump else header


def format_log_entry(payload: bytes, timestamp: Optional[datetime] = None) -> str:
    """
    Single log line: UTC arrival time followed by the payload tokens.

    Args:
        payload: Received payload.
        timestamp: Arrival time; defaults to now.
    """
    if timestamp is None:
        timestamp = datetime.now(timezone.utc)
    else:
        timestamp = timestamp.astimezone(timezone.utc)

    stamp = timestamp.strftime("%Y-%m-%dT%H:%M:%S.%fZ")
    return f"{stamp} {payload.hex(' ')}".rstrip()


def format_port_status(ctrl: PacketCtrl) -> str:
    """Human-readable description of a control packet."""
    if not ctrl.is_port_status:
        return f"Control packet: {ctrl.ctrl_type.name}"

    if ctrl.locked_by_self:
        lock = "locked by this session"
    elif ctrl.locked_by_others:
        lock = "locked by another session"
    else:
        lock = "unlocked"

    state = "alive" if ctrl.alive else "not alive"
    return f"Port status: {state}, {lock}"
