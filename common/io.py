"""Socket I/O helpers for tcpecho.

Contains:
- send_probe: Encode and write a probe
- recv_probe: Read and decode a probe, checking its direction
"""

import logging

from common.message import Probe, ProtocolError, decode, encode
from common.protocol import TRACE, Transport

logger = logging.getLogger(__name__)


def send_probe(sock: Transport, probe: Probe) -> int:
    """Send a probe. Returns bytes written.

    Raises OSError if the write fails or times out.
    """
    data = encode(probe)
    sock.sendall(data)
    logger.log(TRACE, f"Sent probe {probe}")
    return len(data)


def recv_probe(sock: Transport, expect_response: bool) -> Probe:
    """Receive one probe.

    The server expects requests (no response_time) and the client expects
    echoes (response_time set). A probe in the wrong direction is malformed.

    Raises:
        ProtocolError: On truncated, malformed or misdirected probe data.
        OSError: On socket failures other than timeouts.
    """
    probe = decode(sock)
    if expect_response and probe.response_time is None:
        raise ProtocolError("Expected echoed probe with response_time, got request")
    if not expect_response and probe.response_time is not None:
        raise ProtocolError("Expected request probe, got echo with response_time")
    logger.log(TRACE, f"Received probe {probe}")
    return probe
