"""TCP socket setup for tcpecho.

Contains:
- configure_socket: Apply timeouts and TCP_NODELAY to a connected socket
- open_client_socket: Connect to a server with a timeout
- open_listener: Bind and listen for the server role
"""

import logging
import socket

logger = logging.getLogger(__name__)

LISTEN_BACKLOG = 16


def set_nodelay(sock: socket.socket) -> bool:
    """Disable Nagle coalescing. Returns False if the option could not be set.

    A failure here is reported but not fatal: the connection still carries
    probes, only with possibly higher latency.
    """
    try:
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
    except OSError as e:
        logger.warning(f"Unable to set TCP_NODELAY: {e}")
        return False
    return True


def configure_socket(sock: socket.socket, timeout_s: float) -> None:
    """Apply read/write timeout and low-latency options to a connected socket.

    Raises OSError if the timeout cannot be applied.
    """
    sock.settimeout(timeout_s)
    set_nodelay(sock)


def open_client_socket(host: str, port: int, timeout_s: float) -> socket.socket:
    """Connect to host:port within timeout_s and configure the socket.

    Raises OSError (ConnectionRefusedError, TimeoutError, socket.gaierror, ...)
    on failure.
    """
    sock = socket.create_connection((host, port), timeout=timeout_s)
    try:
        configure_socket(sock, timeout_s)
    except OSError:
        sock.close()
        raise
    logger.debug(f"Client socket: local={sock.getsockname()}, timeout={timeout_s}s")
    return sock


def open_listener(host: str, port: int) -> socket.socket:
    """Bind a listening socket on host:port.

    Raises OSError if the address cannot be bound.
    """
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    sock = socket.socket(family, socket.SOCK_STREAM)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((host, port))
        sock.listen(LISTEN_BACKLOG)
    except OSError:
        sock.close()
        raise
    return sock
