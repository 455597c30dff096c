"""
Destination specifier parsing.

A destination selects one daemon-managed serial device:
    <device>@<host>:<port>

The device field is opaque (POSIX path, Windows device path, ...), the host
is handed to name resolution verbatim and the port is a number or a
service name.
"""

import re
from dataclasses import dataclass

# Non-greedy: device ends at the first '@', host at the first ':' after it
_DESTINATION_RE = re.compile(r"(.*?)@(.*?):(.*?)")


class MalformedDestinationError(ValueError):
    """Destination specifier does not match <device>@<host>:<port>."""

    def __init__(self, text: str):
        self.text = text
        super().__init__(
            f"malformed destination '{text}', expected <device>@<host>:<port>"
        )


@dataclass(frozen=True)
class DestinationSpec:
    """
    Parsed destination specifier.

    Attributes:
        device: Serial device name as known to the daemon.
        host: Daemon host name or address.
        service: Daemon TCP port number or service name.
    """

    device: str
    host: str
    service: str

    def __str__(self) -> str:
        return f"{self.device}@{self.host}:{self.service}"


def parse_destination(text: str) -> DestinationSpec:
    """
    Parse a destination specifier.

    Args:
        text: Specifier such as '/dev/ttyUSB0@localhost:5001'.

    Returns:
        Parsed destination.

    Raises:
        MalformedDestinationError: If a separator is missing or a field is empty.
    """
    match = _DESTINATION_RE.fullmatch(text)
    if match is None:
        raise MalformedDestinationError(text)

    device, host, service = match.groups()
    if not device or not host or not service:
        raise MalformedDestinationError(text)

    return DestinationSpec(device=device, host=host, service=service)
