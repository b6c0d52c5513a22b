"""Tests for the client reconnect supervisor."""

import logging
import socket
import threading

import pytest

from client.runner import ClientState, ReconnectSupervisor, run_client
from common.config import ProbeConfig, Role
from common.io import recv_probe, send_probe
from common.message import ProtocolError, now_ms
from server.runner import EchoServer
from session.exchange import serve_echoes
from session.stats import EchoStats


class FlakyConnector:
    """Refuses the first `refusals` connects, then hands out socket pair ends.

    The other end of every pair is served by serve_echoes in a thread,
    optionally closed after `echoes_per_connection` probes.
    """

    def __init__(self, refusals: int, echoes_per_connection: int | None = None) -> None:
        self.refusals = refusals
        self.echoes_per_connection = echoes_per_connection
        self.attempts = 0
        self._threads: list[threading.Thread] = []
        self._sockets: list[socket.socket] = []

    def __call__(self, host: str, port: int, timeout_s: float) -> socket.socket:
        self.attempts += 1
        if self.attempts <= self.refusals:
            raise ConnectionRefusedError(111, "Connection refused")

        client_end, server_end = socket.socketpair()
        client_end.settimeout(timeout_s)
        server_end.settimeout(timeout_s)
        self._sockets += [client_end, server_end]
        thread = threading.Thread(target=self._serve, args=(server_end,), daemon=True)
        thread.start()
        self._threads.append(thread)
        return client_end

    def _serve(self, sock: socket.socket) -> None:
        config = ProbeConfig(role=Role.SERVER)
        try:
            if self.echoes_per_connection is None:
                serve_echoes(sock, config)
            else:
                _echo_n(sock, self.echoes_per_connection)
        except (OSError, ProtocolError):
            pass
        finally:
            sock.close()

    def close(self) -> None:
        for s in self._sockets:
            s.close()
        for t in self._threads:
            t.join(timeout=2.0)


def _echo_n(sock: socket.socket, n: int) -> None:
    for _ in range(n):
        probe = recv_probe(sock, expect_response=False)
        probe.response_time = now_ms()
        send_probe(sock, probe)


def _config(**overrides: object) -> ProbeConfig:
    values: dict = {
        "role": Role.CLIENT,
        "host": "127.0.0.1",
        "port": 5150,
        "timeout_socket_s": 2.0,
        "reconnect_backoff_s": 3.0,
    }
    values.update(overrides)
    return ProbeConfig(**values)


@pytest.mark.unit
class TestReconnectSupervisor:
    """State machine behavior with injected connect and sleep."""

    def test_two_refusals_then_measures(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.INFO, logger="client.runner")
        connector = FlakyConnector(refusals=2)
        sleeps: list[float] = []
        stats = EchoStats()
        supervisor = ReconnectSupervisor(_config(count=5), stats, connect=connector, sleep=sleeps.append)

        try:
            supervisor.run()
        finally:
            connector.close()

        assert sleeps == [3.0, 3.0]
        assert supervisor.backoffs == 2
        assert connector.attempts == 3
        assert supervisor.connects == 1
        assert supervisor.state is ClientState.STOPPED
        assert stats.snapshot().echo_count == 5

        backoff_lines = [r for r in caplog.records if "Will attempt to reconnect" in r.getMessage()]
        assert len(backoff_lines) == 2
        assert "3 seconds" in backoff_lines[0].getMessage()
        errors = [r for r in caplog.records if "Unable to build client stream" in r.getMessage()]
        assert len(errors) == 2
        assert all("\n" not in r.getMessage() for r in errors)

    def test_state_transitions(self) -> None:
        connector = FlakyConnector(refusals=1)
        sleeps: list[float] = []
        supervisor = ReconnectSupervisor(
            _config(count=1), EchoStats(), connect=connector, sleep=sleeps.append
        )

        try:
            assert supervisor.state is ClientState.CONNECTING
            assert supervisor.step() is ClientState.BACKING_OFF
            assert sleeps == []
            assert supervisor.step() is ClientState.CONNECTING
            assert sleeps == [3.0]
            assert supervisor.step() is ClientState.MEASURING
            assert supervisor.step() is ClientState.STOPPED
            assert supervisor.step() is ClientState.STOPPED
        finally:
            connector.close()

    def test_reconnects_after_connection_loss(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.INFO, logger="client.runner")
        # Each connection dies after 2 echoes; 5 echoes need 3 connections
        connector = FlakyConnector(refusals=0, echoes_per_connection=2)
        sleeps: list[float] = []
        stats = EchoStats()
        supervisor = ReconnectSupervisor(_config(count=5), stats, connect=connector, sleep=sleeps.append)

        try:
            supervisor.run()
        finally:
            connector.close()

        assert supervisor.rounds == 5
        assert supervisor.connects == 3
        assert sleeps == [3.0, 3.0]
        assert stats.snapshot().echo_count == 5
        lost = [r for r in caplog.records if "Error after connection" in r.getMessage()]
        assert len(lost) == 2
        assert all(r.levelno == logging.ERROR for r in lost)

    def test_invalid_host_name_backs_off(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.ERROR, logger="client.runner")
        sleeps: list[float] = []
        config = _config(host="a" * 70 + ".example")
        supervisor = ReconnectSupervisor(config, EchoStats(), sleep=sleeps.append)

        assert supervisor.step() is ClientState.BACKING_OFF
        assert supervisor.step() is ClientState.CONNECTING
        assert sleeps == [3.0]
        errors = [r for r in caplog.records if "Unable to build client stream" in r.getMessage()]
        assert len(errors) == 1
        assert "\n" not in errors[0].getMessage()

    def test_unexpected_errors_propagate(self) -> None:
        def broken_connect(host: str, port: int, timeout_s: float) -> socket.socket:
            raise RuntimeError("bug")

        supervisor = ReconnectSupervisor(_config(), EchoStats(), connect=broken_connect, sleep=lambda s: None)
        with pytest.raises(RuntimeError):
            supervisor.run()


@pytest.mark.integration
class TestRunClient:
    """run_client against a real loopback EchoServer."""

    def test_count_against_server(self, echo_server: EchoServer) -> None:
        host, port = echo_server.server_address
        config = _config(host=host, port=port, count=5, ticker_interval_s=0.05)
        assert run_client(config) == 0
        # The ticker is stopped once the supervisor finishes
        assert not any(t.name == "ticker" and t.is_alive() for t in threading.enumerate())

    def test_refused_then_accepted(self) -> None:
        """Real sockets: nothing listens until the second backoff."""
        probe = socket.socket()
        probe.bind(("127.0.0.1", 0))
        port = probe.getsockname()[1]
        probe.close()

        server = EchoServer(ProbeConfig(role=Role.SERVER, host="127.0.0.1", port=port, timeout_socket_s=2.0))
        sleeps: list[float] = []
        accept_thread: list[threading.Thread] = []

        def sleep(seconds: float) -> None:
            sleeps.append(seconds)
            if len(sleeps) == 2:
                server.bind()
                t = threading.Thread(target=server.serve_forever, daemon=True)
                t.start()
                accept_thread.append(t)

        stats = EchoStats()
        supervisor = ReconnectSupervisor(_config(port=port, count=5), stats, sleep=sleep)
        try:
            supervisor.run()
        finally:
            server.shutdown(timeout_s=2.0)
            for t in accept_thread:
                t.join(timeout=2.0)

        assert sleeps == [3.0, 3.0]
        assert supervisor.connects == 1
        assert stats.snapshot().echo_count == 5
