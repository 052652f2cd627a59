"""Command-line interface for cmdbridge.

    cmdbridge [-c CONFIG] [-v] [--address HOST:PORT] COMMAND [ARGS...]

Resolves COMMAND on PATH once, then serves WebSocket connections until
interrupted, spawning COMMAND with ARGS for each one.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

logger = logging.getLogger(__name__)


def parse_address(value: str) -> tuple[str, int]:
    """Parse ``HOST:PORT`` (HOST may be empty or a bracketed IPv6 address)."""
    host, sep, port = value.rpartition(":")
    if not sep:
        raise argparse.ArgumentTypeError(f"missing port in address {value!r}")
    try:
        port_number = int(port)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid port in address {value!r}") from None
    if not 0 <= port_number <= 65535:
        raise argparse.ArgumentTypeError(f"port out of range in address {value!r}")
    return host.strip("[]"), port_number


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="cmdbridge",
        description="Drive a command-line program over a WebSocket",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file (default: config/cmdbridge.yaml)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--address",
        type=parse_address,
        default=None,
        help="HTTP service address, HOST:PORT (default: 127.0.0.1:8080)",
    )
    parser.add_argument(
        "command",
        nargs=argparse.REMAINDER,
        help="Program to run for each connection, followed by its arguments",
    )

    args = parser.parse_args(argv)
    # REMAINDER keeps the "--" that ends our own options.
    if args.command[:1] == ["--"]:
        args.command = args.command[1:]
    if not args.command:
        parser.error("must specify at least one argument")
    return args


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the cmdbridge CLI."""
    args = parse_args(argv)

    from cmdbridge.config.settings import load_settings
    from cmdbridge.domain.models import CommandSpec
    from cmdbridge.endpoint.server import BridgeServer
    from cmdbridge.utils.logging import setup_logging

    settings = load_settings(args.config)

    if args.verbose:
        settings.logging.level = "DEBUG"
    if args.address is not None:
        settings.server.host, settings.server.port = args.address

    setup_logging(settings.logging)

    try:
        command = CommandSpec.resolve(args.command)
    except ValueError as e:
        logger.error("%s", e)
        sys.exit(1)

    server = BridgeServer(command, settings.server, settings.bridge)
    try:
        asyncio.run(server.serve_forever())
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")


if __name__ == "__main__":
    main()
