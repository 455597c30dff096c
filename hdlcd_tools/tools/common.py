"""
Command-line plumbing shared by the tool frontends.

Two argument styles exist:
    <tool> [-h] [-v] -c <device>@<host>:<port> [-p "<hex bytes>"]
    <tool> [-h] [-v] <host> <port> <usb-device>
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Callable, List, Optional

from hdlcd_tools import __version__
from hdlcd_tools.config import LoggingConfig, ToolsConfig, configure_logging, load_config
from hdlcd_tools.destination import DestinationSpec, MalformedDestinationError, parse_destination
from hdlcd_tools.supervisor import ToolWiring, supervise

CONNECT_HELP = (
    "connect to a single device via the HDLCd, "
    "syntax: SerialPort@IPAddess:PortNbr "
    "(linux: /dev/ttyUSB0@localhost:5001, windows: //./COM1@example.com:5001)"
)
EPILOG = (
    f"hdlcd-tools {__version__} is Copyright (C) 2016, and GNU GPL'd, by Florian Evers.\n"
    "Bug reports, feedback, admiration, abuse, etc, to: https://github.com/Strunzdesign/hdlcd-tools"
)


class ToolUsageError(Exception):
    """Invalid command-line usage detected by a tool."""

    pass


class ToolArgumentParser(argparse.ArgumentParser):
    """Reports usage errors as one line plus a --help hint, exit code 1."""

    def error(self, message: str) -> None:
        self.exit(1, f"{self.prog}: {message}\n{self.prog}: Use --help for more information.\n")


def _add_common_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-h", "--help", action="store_true", help="produce this help message")
    parser.add_argument("-v", "--version", action="store_true", help="show version information")
    parser.add_argument("--config", type=Path, metavar="FILE", help="TOML configuration file")
    parser.add_argument(
        "--log-level",
        metavar="LEVEL",
        help="log level on stderr (DEBUG, INFO, WARNING, ERROR)",
    )


def build_connect_parser(prog: str, description: str, payload: bool = False) -> ToolArgumentParser:
    """Parser for the --connect style tools."""
    parser = ToolArgumentParser(
        prog=prog,
        description=description,
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=False,
    )
    _add_common_options(parser)
    parser.add_argument("-c", "--connect", metavar="DESTINATION", help=CONNECT_HELP)
    if payload:
        parser.add_argument(
            "-p", "--payload", metavar="HEX", help="quoted payload to be sent as hex dump"
        )
    return parser


def build_positional_parser(prog: str, description: str) -> ToolArgumentParser:
    """Parser for the <host> <port> <usb-device> style tools."""
    parser = ToolArgumentParser(
        prog=prog,
        description=description,
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=False,
    )
    _add_common_options(parser)
    parser.add_argument(
        "arguments", nargs="*", metavar="ARG", help="<host> <port> <usb-device>"
    )
    return parser


def usage_error(prog: str, message: str) -> int:
    """Print a usage error with the --help hint; returns the exit code."""
    print(f"{prog}: {message}", file=sys.stderr)
    print(f"{prog}: Use --help for more information.", file=sys.stderr)
    return 1


def version_line(banner: str) -> str:
    return f"{banner} version {__version__}"


def _load_tool_config(prog: str, args: argparse.Namespace) -> Optional[ToolsConfig]:
    try:
        config = load_config(args.config)
        if args.log_level:
            config.logging = LoggingConfig(level=args.log_level)
    except (OSError, ValueError) as e:
        print(f"{prog}: invalid configuration: {e}", file=sys.stderr)
        return None
    return config


def run_session(
    prog: str,
    destination: DestinationSpec,
    wiring: ToolWiring,
    args: argparse.Namespace,
) -> int:
    """
    Load configuration, then run the session on a fresh event loop.

    Returns:
        Exit code.
    """
    config = _load_tool_config(prog, args)
    if config is None:
        return 1

    configure_logging(config.logging.level)
    asyncio.run(supervise(destination, wiring, config))
    return 0


def connect_tool_main(
    prog: str,
    banner: str,
    description: str,
    make_wiring: Callable[[argparse.Namespace], ToolWiring],
    argv: Optional[List[str]] = None,
    payload: bool = False,
) -> int:
    """
    Entry point body of a --connect style tool.

    Args:
        prog: Program name used in messages.
        banner: One-line tool description for --version.
        description: Help text.
        make_wiring: Builds the tool wiring from parsed arguments; may raise
            ToolUsageError.
        argv: Arguments (default: sys.argv[1:]).
        payload: Accept --payload.

    Returns:
        Exit code.
    """
    parser = build_connect_parser(prog, description, payload)
    args = parser.parse_args(argv)

    if args.version:
        print(version_line(banner), file=sys.stderr)
        return 1

    if args.help:
        parser.print_help()
        return 1

    if args.connect is None:
        return usage_error(prog, "you have to specify one device to connect to")

    try:
        destination = parse_destination(args.connect)
    except MalformedDestinationError as e:
        print(f"{prog}: {e}", file=sys.stderr)
        return 1

    try:
        wiring = make_wiring(args)
    except ToolUsageError as e:
        return usage_error(prog, str(e))

    try:
        return run_session(prog, destination, wiring, args)
    except Exception as e:
        print(f"Exception: {e}", file=sys.stderr)
        return 0


def positional_tool_main(
    prog: str,
    banner: str,
    description: str,
    make_wiring: Callable[[argparse.Namespace], ToolWiring],
    argv: Optional[List[str]] = None,
) -> int:
    """
    Entry point body of a <host> <port> <usb-device> style tool.

    The banner is always printed to stderr first.

    Returns:
        Exit code.
    """
    print(version_line(banner), file=sys.stderr)

    parser = build_positional_parser(prog, description)
    args = parser.parse_args(argv)

    if args.version:
        return 1

    if args.help:
        parser.print_help()
        return 1

    if len(args.arguments) != 3 or not all(args.arguments):
        print(f"Usage: {prog} <host> <port> <usb-device>", file=sys.stderr)
        return 1

    host, service, device = args.arguments
    destination = DestinationSpec(device=device, host=host, service=service)

    try:
        wiring = make_wiring(args)
    except ToolUsageError as e:
        return usage_error(prog, str(e))

    try:
        return run_session(prog, destination, wiring, args)
    except Exception as e:
        print(f"Exception: {e}", file=sys.stderr)
        return 0
