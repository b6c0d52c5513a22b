"""Server package for tcpecho.

Contains the listener and per-connection echo workers:
- runner: EchoServer, handle_connection, run_server
"""

from server.runner import EchoServer, handle_connection, run_server

__all__ = [
    "EchoServer",
    "handle_connection",
    "run_server",
]
