"""Client runner for tcpecho.

Contains:
- ClientState: States of the reconnect state machine
- ReconnectSupervisor: Connect, measure, back off and retry forever
- run_client: Wire stats, ticker and supervisor together, return an exit code
"""

import logging
import socket
import time
from collections.abc import Callable
from enum import Enum

from common.config import ProbeConfig
from common.logs import single_line_error
from common.message import ProtocolError
from common.sockets import open_client_socket
from session.exchange import RoundTripLoop
from session.stats import EchoStats
from session.ticker import StopSignal, Ticker

logger = logging.getLogger(__name__)

ConnectFn = Callable[[str, int, float], socket.socket]
SleepFn = Callable[[float], None]


class ClientState(Enum):
    """States of the reconnect supervisor."""

    CONNECTING = "connecting"
    MEASURING = "measuring"
    BACKING_OFF = "backing_off"
    STOPPED = "stopped"


class ReconnectSupervisor:
    """Keeps a measuring connection to the server alive.

    CONNECTING -> MEASURING on connect, -> BACKING_OFF on failure.
    MEASURING -> BACKING_OFF when the round-trip loop fails, -> STOPPED when
    it returns cleanly (configured echo count reached).
    BACKING_OFF -> CONNECTING after a fixed reconnect_backoff_s sleep.

    There is no retry limit and no growth of the backoff.
    """

    def __init__(
        self,
        config: ProbeConfig,
        stats: EchoStats,
        connect: ConnectFn = open_client_socket,
        sleep: SleepFn = time.sleep,
    ) -> None:
        self._config = config
        self._stats = stats
        self._connect = connect
        self._sleep = sleep
        self.state = ClientState.CONNECTING
        self.connects = 0
        self.backoffs = 0
        self.rounds = 0
        self._sock: socket.socket | None = None

    @property
    def _remaining(self) -> int | None:
        if not self._config.count:
            return None
        return max(0, self._config.count - self.rounds)

    def _do_connect(self) -> ClientState:
        address = self._config.address
        logger.info(f"client trying to connect to {address}")
        try:
            self._sock = self._connect(
                self._config.host, self._config.port, self._config.timeout_socket_s
            )
        except (OSError, UnicodeError) as e:
            logger.error(f"Unable to build client stream: {address}: {single_line_error(e)}")
            return ClientState.BACKING_OFF

        self.connects += 1
        logger.info(f"client connected to {address}")
        return ClientState.MEASURING

    def _do_measure(self) -> ClientState:
        assert self._sock is not None
        loop = RoundTripLoop(self._sock, self._config, self._stats, peer=self._config.address)
        try:
            loop.run(limit=self._remaining)
        except (OSError, ProtocolError) as e:
            logger.error(f"Error after connection: {self._config.address}: {single_line_error(e)}")
            return ClientState.BACKING_OFF
        finally:
            self.rounds += loop.rounds
            self._sock.close()
            self._sock = None

        logger.info(f"client completed {self.rounds} echoes with {self._config.address}")
        return ClientState.STOPPED

    def _do_backoff(self) -> ClientState:
        self.backoffs += 1
        logger.info(
            f"Will attempt to reconnect after a short break of "
            f"{self._config.reconnect_backoff_s:g} seconds"
        )
        self._sleep(self._config.reconnect_backoff_s)
        return ClientState.CONNECTING

    def step(self) -> ClientState:
        """Run the current state once and move to the next."""
        match self.state:
            case ClientState.CONNECTING:
                self.state = self._do_connect()
            case ClientState.MEASURING:
                self.state = self._do_measure()
            case ClientState.BACKING_OFF:
                self.state = self._do_backoff()
            case ClientState.STOPPED:
                pass
        return self.state

    def run(self) -> None:
        """Step until STOPPED. Without an echo count this never returns."""
        try:
            while self.state is not ClientState.STOPPED:
                self.step()
        finally:
            if self._sock is not None:
                self._sock.close()
                self._sock = None


def run_client(config: ProbeConfig) -> int:
    """Run the client until interrupted or the echo count is reached. Returns 0."""
    stats = EchoStats()
    stop = StopSignal()
    ticker: Ticker | None = None

    if config.ticker_interval_s:
        ticker = Ticker(stats, config.ticker_interval_s, stop, human_time=config.human_time)
        ticker.start()

    try:
        ReconnectSupervisor(config, stats).run()
    except KeyboardInterrupt:
        logger.info("Signal received - shutting down")
    finally:
        stop.set()
        if ticker is not None:
            ticker.join(timeout_s=1.0)
    return 0
