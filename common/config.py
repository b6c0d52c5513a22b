"""Resolved configuration for tcpecho.

Contains:
- Role: Enum for client/server role
- ConfigurationError: Exception for invalid settings
- ProbeConfig: Immutable settings consumed by client and server
- parse_address: Split "host", "host:port" or "[v6]:port"
"""

from dataclasses import dataclass
from enum import Enum

from common.protocol import (
    DEFAULT_BIND_HOST,
    DEFAULT_INFO_THRESHOLD_S,
    DEFAULT_PORT,
    DEFAULT_RECONNECT_BACKOFF_S,
    DEFAULT_SOCKET_TIMEOUT_S,
    DEFAULT_WARN_THRESHOLD_S,
)


class Role(Enum):
    """Role in the client/server protocol."""

    CLIENT = "client"
    SERVER = "server"


class ConfigurationError(Exception):
    """Raised when resolved settings are invalid."""

    pass


def parse_address(value: str, default_port: int = DEFAULT_PORT) -> tuple[str, int]:
    """Parse an address string into (host, port).

    Accepts "host", "host:port", "[v6addr]" and "[v6addr]:port". A bare IPv6
    address without brackets is taken as a host with the default port.

    Raises ConfigurationError on an empty host or an invalid port.
    """
    value = value.strip()
    host, port_str = value, ""

    if value.startswith("["):
        end = value.find("]")
        if end < 0:
            raise ConfigurationError(f"Unterminated IPv6 address: {value}")
        host = value[1:end]
        rest = value[end + 1 :]
        if rest:
            if not rest.startswith(":"):
                raise ConfigurationError(f"Unexpected text after IPv6 address: {value}")
            port_str = rest[1:]
    elif value.count(":") == 1:
        host, port_str = value.split(":")

    if not host:
        raise ConfigurationError(f"Missing host in address: {value!r}")

    if not port_str:
        return host, default_port

    try:
        port = int(port_str)
    except ValueError:
        raise ConfigurationError(f"Invalid port {port_str!r} in address {value}")
    return host, port


@dataclass(frozen=True)
class ProbeConfig:
    """Settings for one tcpecho process, resolved before the core runs.

    Durations are in seconds. Optional durations are None when disabled.
    """

    role: Role
    host: str = DEFAULT_BIND_HOST
    port: int = DEFAULT_PORT
    timeout_socket_s: float = DEFAULT_SOCKET_TIMEOUT_S
    interval_s: float | None = None  # Delay between probes
    ticker_interval_s: float | None = None  # Client stats report period
    info_threshold_s: float = DEFAULT_INFO_THRESHOLD_S
    warn_threshold_s: float = DEFAULT_WARN_THRESHOLD_S
    reconnect_backoff_s: float = DEFAULT_RECONNECT_BACKOFF_S
    human_time: bool = False  # Human readable tick reports
    count: int | None = None  # Client stops after this many echoes

    @property
    def address(self) -> str:
        if ":" in self.host:
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"

    def validate(self) -> "ProbeConfig":
        """Check invariants. Returns self so calls can be chained.

        Raises ConfigurationError on the first invalid setting.
        """
        if not 1 <= self.port <= 65535:
            raise ConfigurationError(f"Port must be in 1..65535, got {self.port}")
        try:
            self.host.encode("idna")
        except UnicodeError:
            raise ConfigurationError(f"Invalid host name: {self.host!r}")
        if self.timeout_socket_s <= 0:
            raise ConfigurationError(
                f"Socket timeout must be positive, got {self.timeout_socket_s}s"
            )
        if self.interval_s is not None and self.interval_s < 0:
            raise ConfigurationError(f"Interval must not be negative, got {self.interval_s}s")
        if self.ticker_interval_s is not None:
            if self.role is Role.SERVER:
                raise ConfigurationError("Ticker interval is only supported in client mode")
            if self.ticker_interval_s <= 0:
                raise ConfigurationError(
                    f"Ticker interval must be positive, got {self.ticker_interval_s}s"
                )
        if self.info_threshold_s < 0 or self.warn_threshold_s < 0:
            raise ConfigurationError("Latency thresholds must not be negative")
        if self.reconnect_backoff_s < 0:
            raise ConfigurationError(
                f"Reconnect backoff must not be negative, got {self.reconnect_backoff_s}s"
            )
        if self.count is not None and self.count < 0:
            raise ConfigurationError(f"Count must not be negative, got {self.count}")
        return self
