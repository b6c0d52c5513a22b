#!/usr/bin/env python3
"""TCP round-trip latency probe."""

import argparse
import configparser
import logging
import sys
from enum import IntEnum
from pathlib import Path

from client.runner import run_client
from common.config import ConfigurationError, ProbeConfig, Role, parse_address
from common.duration import parse_duration
from common.logs import init_logging, single_line_error, to_log_level
from common.protocol import (
    DEFAULT_BIND_HOST,
    DEFAULT_PORT,
)
from server.runner import run_server

logger = logging.getLogger(__name__)


class ExitCode(IntEnum):
    """Process exit codes."""

    SUCCESS = 0  # Normal exit or interrupted by the user
    RUNTIME_ERROR = 1  # e.g. cannot bind the listening port
    USAGE_ERROR = 2  # Bad arguments or configuration


def _duration_arg(text: str) -> float:
    try:
        return parse_duration(text)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def _log_level_arg(text: str) -> int:
    try:
        return to_log_level(text)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def _count_arg(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid count: {text}")
    if value < 0:
        raise argparse.ArgumentTypeError(f"count must not be negative: {text}")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Measure TCP round-trip latency between a client and an echo server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Durations: 5 = 5 seconds, 1s = 1 second, 100ms500us, 1m30s

Examples:
  %(prog)s -s                          Serve on 0.0.0.0:5150
  %(prog)s -s 127.0.0.1 -p 6000        Serve on 127.0.0.1:6000
  %(prog)s -c host -T 10s              Probe host:5150, report every 10s
  %(prog)s -c host:6000 -i 100ms -H    Probe every 100ms, human readable reports
""",
    )

    mode = parser.add_mutually_exclusive_group(required=True)
    mode.add_argument(
        "-s",
        "--server",
        nargs="?",
        const=DEFAULT_BIND_HOST,
        metavar="ADDR",
        help=f"Server mode, optional bind address (default: {DEFAULT_BIND_HOST})",
    )
    mode.add_argument(
        "-c", "--client", metavar="ADDR", help="Client mode, address of the server to probe"
    )

    parser.add_argument(
        "-p",
        "--port",
        type=int,
        default=DEFAULT_PORT,
        help=f"Port, used when the address has none; a port in ADDR takes precedence (default: {DEFAULT_PORT})",
    )
    parser.add_argument(
        "-t",
        "--timeout-socket",
        type=_duration_arg,
        default="15s",
        help="Connect, read and write timeout (default: 15s)",
    )
    parser.add_argument(
        "-T", "--ticker-interval", type=_duration_arg, help="Client stats report interval"
    )
    parser.add_argument(
        "-i", "--interval", type=_duration_arg, help="Delay between probes (default: none)"
    )
    parser.add_argument(
        "--info-threshold",
        type=_duration_arg,
        default="1s",
        help="Log echoes slower than this at INFO (default: 1s)",
    )
    parser.add_argument(
        "--warn-threshold",
        type=_duration_arg,
        default="15s",
        help="Log echoes slower than this at WARNING (default: 15s)",
    )
    parser.add_argument(
        "-b",
        "--break-time",
        type=_duration_arg,
        default="5s",
        help="Delay before each reconnect attempt (default: 5s)",
    )
    parser.add_argument(
        "-H",
        "--human-time",
        action="store_true",
        help="Human readable durations in stats reports",
    )
    parser.add_argument(
        "-n",
        "--count",
        type=_count_arg,
        help="Client stops after this many echoes (default: run forever)",
    )

    logging_group = parser.add_mutually_exclusive_group()
    logging_group.add_argument(
        "-L",
        "--log-level",
        type=_log_level_arg,
        default="info",
        help="off, error, warn, info, debug or trace (default: info)",
    )
    logging_group.add_argument(
        "-C", "--log-config", type=Path, help="logging.config file to use instead of -L"
    )
    return parser


def build_config(args: argparse.Namespace) -> ProbeConfig:
    """Resolve parsed arguments into a validated ProbeConfig.

    Raises ConfigurationError on invalid settings.
    """
    if args.server is not None:
        role = Role.SERVER
        host, port = parse_address(args.server, args.port)
    else:
        role = Role.CLIENT
        host, port = parse_address(args.client, args.port)

    return ProbeConfig(
        role=role,
        host=host,
        port=port,
        timeout_socket_s=args.timeout_socket,
        interval_s=args.interval,
        ticker_interval_s=args.ticker_interval,
        info_threshold_s=args.info_threshold,
        warn_threshold_s=args.warn_threshold,
        reconnect_backoff_s=args.break_time,
        human_time=args.human_time,
        count=args.count or None,
    ).validate()


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = build_config(args)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return ExitCode.USAGE_ERROR

    try:
        init_logging(args.log_level, args.log_config)
    except (OSError, ValueError, KeyError, RuntimeError, configparser.Error) as e:
        print(f"Error: initializing log configuration: {single_line_error(e)}", file=sys.stderr)
        return ExitCode.USAGE_ERROR

    logger.debug(f"Configuration: {config}")

    if config.role is Role.SERVER:
        return run_server(config)
    return run_client(config)


if __name__ == "__main__":
    sys.exit(main())
