"""Common modules for tcpecho.

This package contains shared code used by both client and server:
- protocol: Defaults, timing constants, Transport Protocol
- config: Role, ProbeConfig, ConfigurationError, parse_address
- message: Probe wire format encoding/decoding
- io: Probe send/receive helpers
- sockets: TCP socket setup
- duration: Duration string parsing
- humanize: Human readable numbers and durations
- logs: Logging setup and single-line error rendering
- report: Reporting abstractions
"""

from common.config import ConfigurationError, ProbeConfig, Role, parse_address
from common.message import Probe, ProtocolError
from common.protocol import (
    DEFAULT_INFO_THRESHOLD_S,
    DEFAULT_PORT,
    DEFAULT_RECONNECT_BACKOFF_S,
    DEFAULT_SOCKET_TIMEOUT_S,
    DEFAULT_WARN_THRESHOLD_S,
    TRACE,
    Transport,
)

__all__ = [
    # Protocol
    "Transport",
    "TRACE",
    "DEFAULT_PORT",
    "DEFAULT_SOCKET_TIMEOUT_S",
    "DEFAULT_INFO_THRESHOLD_S",
    "DEFAULT_WARN_THRESHOLD_S",
    "DEFAULT_RECONNECT_BACKOFF_S",
    # Config
    "ProbeConfig",
    "Role",
    "parse_address",
    # Wire
    "Probe",
    # Exceptions
    "ConfigurationError",
    "ProtocolError",
]
