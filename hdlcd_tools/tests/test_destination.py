"""
Unit tests for destination specifier parsing.
"""

import pytest

from hdlcd_tools.destination import DestinationSpec, MalformedDestinationError, parse_destination


class TestParseDestination:
    """Test <device>@<host>:<port> parsing."""

    def test_posix_device(self):
        """Test POSIX serial device path."""
        spec = parse_destination("/dev/ttyUSB0@localhost:5001")

        assert spec == DestinationSpec(device="/dev/ttyUSB0", host="localhost", service="5001")

    def test_windows_device(self):
        """Test Windows device path with dots and slashes."""
        spec = parse_destination("//./COM1@example.com:5001")

        assert spec.device == "//./COM1"
        assert spec.host == "example.com"
        assert spec.service == "5001"

    def test_backslash_device(self):
        """Test device field is opaque."""
        spec = parse_destination(r"\\.\COM3@10.0.0.1:http")

        assert spec.device == r"\\.\COM3"
        assert spec.service == "http"

    def test_concatenation_inverse(self):
        """Test parse is a right-inverse of the concatenation."""
        for device, host, port in [
            ("/dev/ttyACM1", "127.0.0.1", "1"),
            ("COM7", "daemon.local", "65535"),
            ("ttyS0", "h", "p"),
        ]:
            spec = parse_destination(f"{device}@{host}:{port}")
            assert (spec.device, spec.host, spec.service) == (device, host, port)
            assert str(spec) == f"{device}@{host}:{port}"

    def test_first_separators_win(self):
        """Test device ends at the first '@' and host at the first ':' after it."""
        spec = parse_destination("dev@host:50:01")

        assert spec.host == "host"
        assert spec.service == "50:01"

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "foo:bar",
            "/dev/ttyUSB0@localhost",
            "/dev/ttyUSB0localhost:5001",
            "@localhost:5001",
            "/dev/ttyUSB0@:5001",
            "/dev/ttyUSB0@localhost:",
            "@:",
            "/dev/ttyUSB0@localhost:5001\n",
            "/dev/tty\nUSB0@localhost:5001",
        ],
    )
    def test_malformed(self, text):
        """Test missing separators, empty fields or line breaks are rejected."""
        with pytest.raises(MalformedDestinationError, match="malformed destination"):
            parse_destination(text)

    def test_malformed_is_value_error(self):
        """Test error type integrates with ValueError handling."""
        with pytest.raises(ValueError):
            parse_destination("foo:bar")
