"""Probe exchange loops for tcpecho.

Contains:
- serve_echoes: Server-side loop stamping and echoing each probe
- classify_echo: Map a round-trip time to a threshold log level
- RoundTripLoop: Client-side loop measuring round-trip times
"""

import logging
import time

from common.config import ProbeConfig
from common.duration import seconds_to_ns
from common.humanize import duration_to_ms
from common.io import recv_probe, send_probe
from common.message import Probe, now_ms
from common.protocol import LOG_PROGRESS_INTERVAL, Transport
from session.stats import EchoStats

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Server exchange
# -----------------------------------------------------------------------------


def serve_echoes(sock: Transport, config: ProbeConfig, peer: str = "?") -> None:
    """Echo probes until the connection fails.

    Each probe gets response_time set to now before it is written back.
    Never returns normally: a closed, timed out or misbehaving peer ends
    the loop with an exception.

    Raises:
        ProtocolError: On truncated or malformed probe data (including EOF).
        OSError: On socket failures.
    """
    echoed = 0
    while True:
        probe = recv_probe(sock, expect_response=False)
        probe.response_time = now_ms()
        send_probe(sock, probe)
        echoed += 1

        if (echoed % LOG_PROGRESS_INTERVAL) == 0:
            logger.debug(f"Server: echoed {echoed} probes for {peer}")

        if config.interval_s:
            time.sleep(config.interval_s)


# -----------------------------------------------------------------------------
# Client exchange
# -----------------------------------------------------------------------------


def classify_echo(elapsed_ns: int, info_threshold_ns: int, warn_threshold_ns: int) -> int | None:
    """Return the log level for a round trip, or None if under both thresholds.

    Comparisons are strict: a round trip exactly at a threshold does not
    cross it.
    """
    if elapsed_ns > warn_threshold_ns:
        return logging.WARNING
    if elapsed_ns > info_threshold_ns:
        return logging.INFO
    return None


class RoundTripLoop:
    """Sends one probe at a time on a connected socket and times its echo.

    Only one probe is ever outstanding. Elapsed time is measured from a
    locally retained nanosecond clock, not from the millisecond stamps
    carried on the wire.
    """

    def __init__(
        self,
        sock: Transport,
        config: ProbeConfig,
        stats: EchoStats,
        peer: str = "?",
    ) -> None:
        self._sock = sock
        self._config = config
        self._stats = stats
        self._peer = peer
        self._info_ns = seconds_to_ns(config.info_threshold_s)
        self._warn_ns = seconds_to_ns(config.warn_threshold_s)
        self.rounds = 0

    def round_trip(self) -> int:
        """Run one probe round. Returns elapsed nanoseconds.

        Raises:
            ProtocolError: On truncated, malformed or misdirected echoes.
            OSError: On write or read failures.
        """
        probe = Probe.new()
        start_ns = time.monotonic_ns()
        send_probe(self._sock, probe)
        recv_probe(self._sock, expect_response=True)
        elapsed_ns = time.monotonic_ns() - start_ns

        self._stats.update(elapsed_ns)
        self.rounds += 1
        logger.debug(f"echo {duration_to_ms(elapsed_ns)}")

        level = classify_echo(elapsed_ns, self._info_ns, self._warn_ns)
        if level == logging.WARNING:
            logger.warning(f"broke threshold - echo time: {duration_to_ms(elapsed_ns)} from {self._peer}")
        elif level == logging.INFO:
            logger.info(f"broke info threshold - echo time: {duration_to_ms(elapsed_ns)} from {self._peer}")

        if (self.rounds % LOG_PROGRESS_INTERVAL) == 0:
            logger.debug(f"Client: progress {self.rounds} echoes from {self._peer}")

        return elapsed_ns

    def run(self, limit: int | None = None) -> None:
        """Loop round trips until failure, or until limit rounds complete.

        Returns normally only when limit is reached. Failures propagate so
        the caller can reconnect.
        """
        done = 0
        while limit is None or done < limit:
            self.round_trip()
            done += 1
            if self._config.interval_s and (limit is None or done < limit):
                time.sleep(self._config.interval_s)
