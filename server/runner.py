"""Server runner for tcpecho.

Contains:
- handle_connection: Per-connection worker that echoes probes until failure
- EchoServer: Listener that accepts connections and spawns one thread each
- run_server: Bind, serve until interrupted, return an exit code
"""

import logging
import socket
import threading

from common.config import ProbeConfig
from common.logs import single_line_error
from common.message import ProtocolError
from common.sockets import configure_socket, open_listener
from session.exchange import serve_echoes

logger = logging.getLogger(__name__)

# Accept timeout - allows quick response to shutdown()
ACCEPT_POLL_S = 0.5


def handle_connection(sock: socket.socket, config: ProbeConfig, peer: str) -> None:
    """Serve one accepted connection until it fails, then close it.

    Every failure is reported as exactly one warning line and stays local
    to this connection.
    """
    try:
        configure_socket(sock, config.timeout_socket_s)
        logger.info(f"Connection from: {peer}")
        serve_echoes(sock, config, peer)
    except (OSError, ProtocolError) as e:
        logger.warning(f"client thread error: with client {peer}: {single_line_error(e)}")
    finally:
        sock.close()


class EchoServer:
    """Accept loop running one handler thread per connection.

    Handlers share no state with each other or with the listener.
    """

    def __init__(self, config: ProbeConfig) -> None:
        self._config = config
        self._listener: socket.socket | None = None
        self._shutdown_requested = threading.Event()
        self._stopped = threading.Event()
        self._stopped.set()
        self.connections = 0

    @property
    def server_address(self) -> tuple[str, int]:
        """Bound (host, port); useful when binding port 0."""
        if self._listener is None:
            raise RuntimeError("server is not bound")
        host, port = self._listener.getsockname()[:2]
        return host, port

    def bind(self) -> None:
        """Bind the listening socket.

        Raises OSError if the address cannot be bound.
        """
        self._listener = open_listener(self._config.host, self._config.port)
        self._listener.settimeout(ACCEPT_POLL_S)
        host, port = self.server_address
        logger.info(f"server listening to {host}:{port}")

    def serve_forever(self) -> None:
        """Accept connections until shutdown() is called."""
        self._stopped.clear()
        try:
            if self._shutdown_requested.is_set():
                return
            if self._listener is None:
                self.bind()
            listener = self._listener
            assert listener is not None

            while not self._shutdown_requested.is_set():
                try:
                    sock, addr = listener.accept()
                except TimeoutError:
                    continue
                except OSError as e:
                    if self._shutdown_requested.is_set():
                        break
                    logger.error(f"accept failed: {single_line_error(e)}")
                    continue
                self._spawn(sock, addr)
        finally:
            self._stopped.set()

    def _spawn(self, sock: socket.socket, addr: tuple) -> None:
        self.connections += 1
        peer = f"{addr[0]}:{addr[1]}"
        thread = threading.Thread(
            target=handle_connection,
            args=(sock, self._config, peer),
            name=f"serv_{self.connections}",
            daemon=True,
        )
        thread.start()

    def shutdown(self, timeout_s: float | None = None) -> None:
        """Stop accepting, wait for the accept loop to exit and close the listener.

        Connections already handed to worker threads keep running until
        their peers go away.
        """
        self._shutdown_requested.set()
        self._stopped.wait(timeout_s)
        if self._listener is not None:
            self._listener.close()
            self._listener = None
        logger.info("Server shutdown complete")


def run_server(config: ProbeConfig) -> int:
    """Run the server until interrupted. Returns 0, or 1 if binding fails."""
    server = EchoServer(config)
    try:
        server.bind()
    except (OSError, UnicodeError) as e:
        logger.error(f"Unable to bind {config.address}: {single_line_error(e)}")
        return 1

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Signal received - shutting down")
    finally:
        server.shutdown(timeout_s=ACCEPT_POLL_S * 2)
    return 0
