"""pytest configuration and fixtures for tcpecho tests.

Provides:
- MockSocket: In-memory socket that hands out received data in small chunks
- socket_pair: Connected local socket pair with timeouts
- echo_server: EchoServer on 127.0.0.1 with an ephemeral port
- Markers for unit vs integration tests
"""

import socket
import threading
from collections.abc import Generator

import pytest

from common.config import ProbeConfig, Role
from server.runner import EchoServer


class MockSocket:
    """Mock socket for unit testing the probe codec.

    recv() returns at most chunk_size bytes per call to exercise short
    reads, then b"" once the data is exhausted (peer closed). Setting
    timeout_at_end makes the end of data raise TimeoutError instead.
    Everything passed to sendall() is collected in `sent`.
    """

    def __init__(self, data: bytes = b"", chunk_size: int = 3, timeout_at_end: bool = False) -> None:
        self._data = bytearray(data)
        self._chunk_size = chunk_size
        self._timeout_at_end = timeout_at_end
        self._lock = threading.Lock()
        self.sent = bytearray()

    def recv(self, size: int, /) -> bytes:
        with self._lock:
            if not self._data:
                if self._timeout_at_end:
                    raise TimeoutError("timed out")
                return b""
            n = min(size, self._chunk_size, len(self._data))
            chunk = bytes(self._data[:n])
            del self._data[:n]
            return chunk

    def sendall(self, data: bytes, /) -> None:
        with self._lock:
            self.sent += data

    @property
    def remaining(self) -> int:
        with self._lock:
            return len(self._data)


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: mark test as unit test")
    config.addinivalue_line("markers", "integration: mark test as integration test (loopback sockets)")


@pytest.fixture
def socket_pair() -> Generator[tuple[socket.socket, socket.socket], None, None]:
    """Yield a connected (client_end, server_end) socket pair with 2s timeouts."""
    a, b = socket.socketpair()
    a.settimeout(2.0)
    b.settimeout(2.0)
    try:
        yield a, b
    finally:
        a.close()
        b.close()


@pytest.fixture
def server_config() -> ProbeConfig:
    return ProbeConfig(role=Role.SERVER, host="127.0.0.1", port=0, timeout_socket_s=2.0)


@pytest.fixture
def echo_server(server_config: ProbeConfig) -> Generator[EchoServer, None, None]:
    """Run an EchoServer on 127.0.0.1:<ephemeral> in a background thread."""
    server = EchoServer(server_config)
    server.bind()
    thread = threading.Thread(target=server.serve_forever, name="test-accept", daemon=True)
    thread.start()
    try:
        yield server
    finally:
        server.shutdown(timeout_s=2.0)
        thread.join(timeout=2.0)
