"""Protocol definitions for tcpecho.

Contains:
- Transport Protocol for type checking
- Default ports and timing constants
- Logging configuration
"""

import logging
import os
from typing import Protocol

# TRACE logging level (below DEBUG)
TRACE = 5
logging.addLevelName(TRACE, "TRACE")

# Progress logging interval (configurable via envvar)
LOG_PROGRESS_INTERVAL = int(os.environ.get("TCPECHO_LOG_INTERVAL", "100"))


class Transport(Protocol):
    """Protocol for the socket operations needed by the probe exchange."""

    def recv(self, size: int, /) -> bytes: ...
    def sendall(self, data: bytes, /) -> None: ...


DEFAULT_PORT = 5150
DEFAULT_BIND_HOST = "0.0.0.0"

# Default timing constants
DEFAULT_SOCKET_TIMEOUT_S = 15.0  # Connect, read and write timeout
DEFAULT_INFO_THRESHOLD_S = 1.0  # Echo slower than this logs at INFO
DEFAULT_WARN_THRESHOLD_S = 15.0  # Echo slower than this logs at WARNING
DEFAULT_RECONNECT_BACKOFF_S = 5.0  # Fixed delay before each reconnect
