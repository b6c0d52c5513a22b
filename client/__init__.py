"""Client package for tcpecho.

Contains the reconnecting measurement client:
- runner: ClientState, ReconnectSupervisor, run_client
"""

from client.runner import ClientState, ReconnectSupervisor, run_client

__all__ = [
    "ClientState",
    "ReconnectSupervisor",
    "run_client",
]
