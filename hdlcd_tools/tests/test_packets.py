"""
Unit tests for the session descriptor and access protocol packets.
"""

import pytest

from hdlcd_tools.descriptor import SessionDescriptor, SessionFlags, SessionType
from hdlcd_tools.packets import (
    CtrlType,
    PacketCtrl,
    PacketData,
    PacketDecoder,
    PacketError,
    encode_session_header,
)


class TestSessionDescriptor:
    """Test descriptor byte values used by the tools."""

    def test_injector_descriptor(self):
        """Payload session without flags is 0x00."""
        assert SessionDescriptor(SessionType.PAYLOAD).to_byte() == 0x00

    def test_portkiller_descriptor(self):
        """Port status session is 0x10."""
        assert SessionDescriptor(SessionType.PORT_STATUS).to_byte() == 0x10

    def test_logclient_descriptor(self):
        """Raw payload, read-only is 0x21."""
        descriptor = SessionDescriptor(SessionType.PAYLOAD_RAW, SessionFlags.READ_ONLY)
        assert descriptor.to_byte() == 0x21

    def test_exchanger_descriptor(self):
        """TRX_ALL with DELIVER_RCVD."""
        descriptor = SessionDescriptor(SessionType.TRX_ALL, SessionFlags.DELIVER_RCVD)
        assert descriptor.to_byte() == 0x04

    def test_aliases(self):
        """TRX aliases map onto the same types."""
        assert SessionType.TRX_ALL is SessionType.PAYLOAD
        assert SessionType.TRX_STATUS is SessionType.PORT_STATUS


class TestSessionHeader:
    """Test session header encoding."""

    def test_header(self):
        """Test version, descriptor, length and name."""
        header = encode_session_header(
            "/dev/ttyUSB0", SessionDescriptor(SessionType.PAYLOAD_RAW, SessionFlags.READ_ONLY)
        )

        assert header == b"\x00\x21\x0c/dev/ttyUSB0"

    def test_header_name_too_long(self):
        """Test device names beyond 255 bytes are rejected."""
        with pytest.raises(PacketError, match="too long"):
            encode_session_header("x" * 256, SessionDescriptor(SessionType.PAYLOAD))


class TestPacketData:
    """Test payload packet encoding."""

    def test_to_bytes(self):
        """Test type byte, big-endian length and payload."""
        packet = PacketData(payload=b"\xde\xad\xbe\xef", reliable=True, was_sent=True)

        assert packet.to_bytes() == b"\x05\x00\x04\xde\xad\xbe\xef"

    def test_flags(self):
        """Test each flag bit."""
        assert PacketData(b"").to_bytes() == b"\x00\x00\x00"
        assert PacketData(b"", invalid=True).to_bytes()[0] == 0x02
        assert PacketData(b"", reliable=True).to_bytes()[0] == 0x04

    def test_create_defaults(self):
        """Outbound packets are reliable and flagged as sent."""
        packet = PacketData.create(bytearray(b"\x01"))

        assert packet.payload == b"\x01"
        assert packet.reliable is True
        assert packet.was_sent is True

    def test_payload_too_long(self):
        """Test the 16-bit length limit."""
        with pytest.raises(PacketError, match="too long"):
            PacketData(b"\x00" * 0x10000).to_bytes()


class TestPacketCtrl:
    """Test control packet encoding."""

    def test_port_kill_request(self):
        """Test port-kill request bytes."""
        assert PacketCtrl.port_kill_request().to_bytes() == b"\x10\x30"

    def test_keep_alive(self):
        """Test keep-alive bytes."""
        assert PacketCtrl.keep_alive().to_bytes() == b"\x10\x20"

    def test_port_status_request_with_lock(self):
        """Test lock request bit."""
        assert PacketCtrl.port_status_request(lock=True).to_bytes() == b"\x10\x01"

    def test_port_status_from_byte(self):
        """Test port status bits."""
        ctrl = PacketCtrl.from_byte(0x06)

        assert ctrl.is_port_status
        assert ctrl.alive is True
        assert ctrl.locked_by_others is True
        assert ctrl.locked_by_self is False

    def test_unknown_ctrl_type(self):
        """Test unknown control type."""
        with pytest.raises(PacketError, match="Unknown control type"):
            PacketCtrl.from_byte(0x70)


class TestPacketDecoder:
    """Test incremental packet decoding."""

    def test_mixed_stream(self):
        """Test data and control packets in one chunk keep their order."""
        decoder = PacketDecoder()
        stream = b"\x04\x00\x02\x48\x69" + b"\x10\x04" + b"\x01\x00\x00"

        packets = decoder.feed(stream)

        assert packets == [
            PacketData(payload=b"Hi", reliable=True),
            PacketCtrl(ctrl_type=CtrlType.PORT_STATUS, alive=True),
            PacketData(payload=b"", was_sent=True),
        ]

    def test_byte_by_byte(self):
        """Test a packet split across many feeds."""
        decoder = PacketDecoder()
        encoded = PacketData(payload=b"\x01\x02\x03").to_bytes()

        packets = []
        for byte in encoded:
            packets.extend(decoder.feed(bytes([byte])))

        assert packets == [PacketData(payload=b"\x01\x02\x03")]

    def test_partial_packet_kept(self):
        """Test incomplete packets stay buffered."""
        decoder = PacketDecoder()

        assert decoder.feed(b"\x00\x00\x05\x01\x02") == []
        assert decoder.feed(b"\x03\x04\x05") == [PacketData(payload=b"\x01\x02\x03\x04\x05")]

    def test_unknown_packet_type(self):
        """Test unknown type bytes raise."""
        with pytest.raises(PacketError, match="Unknown packet type"):
            PacketDecoder().feed(b"\x20\x00")

    def test_reset(self):
        """Test reset discards a partial packet."""
        decoder = PacketDecoder()
        decoder.feed(b"\x00\x00\x05\x01")
        decoder.reset()

        assert decoder.feed(b"\x10\x30") == [PacketCtrl.port_kill_request()]
