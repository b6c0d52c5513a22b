"""Periodic stats reporter for tcpecho.

Contains:
- StopSignal: Set-once stop flag that wakes waiters immediately
- Ticker: Thread that drains EchoStats every interval and logs a report
"""

import logging
import threading

from session.report import TickReport
from session.stats import EchoStats

logger = logging.getLogger(__name__)

TICKER_THREAD_NAME = "ticker"


class StopSignal:
    """Stop flag paired with a condition variable.

    Once set it stays set. set() notifies every waiter, so a wait() blocked
    on a long timeout returns as soon as the signal is raised.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._stopped = False

    def set(self) -> None:
        with self._cond:
            self._stopped = True
            self._cond.notify_all()

    def is_set(self) -> bool:
        with self._cond:
            return self._stopped

    def wait(self, timeout_s: float | None = None) -> bool:
        """Block until set or timeout_s elapses. Returns True if set."""
        with self._cond:
            return self._cond.wait_for(lambda: self._stopped, timeout=timeout_s)


class Ticker:
    """Logs a TickReport every interval_s seconds until stopped.

    The stats are reset by each tick. Stopping never emits a final report.
    """

    def __init__(
        self,
        stats: EchoStats,
        interval_s: float,
        stop: StopSignal,
        human_time: bool = False,
    ) -> None:
        if interval_s <= 0:
            raise ValueError(f"ticker interval must be positive, got {interval_s}s")
        self._stats = stats
        self._interval_s = interval_s
        self._stop = stop
        self._human_time = human_time
        self.ticks = 0
        self._thread = threading.Thread(
            target=self.run, name=TICKER_THREAD_NAME, daemon=True
        )

    def start(self) -> None:
        self._thread.start()

    def stop(self, timeout_s: float | None = None) -> None:
        """Raise the stop signal and wait for the thread to exit."""
        self._stop.set()
        if self._thread.is_alive():
            self._thread.join(timeout_s)

    def join(self, timeout_s: float | None = None) -> None:
        self._thread.join(timeout_s)

    def is_alive(self) -> bool:
        return self._thread.is_alive()

    def tick(self) -> TickReport:
        """Drain the stats and log one report."""
        report = TickReport(
            snapshot=self._stats.snapshot(),
            interval_s=self._interval_s,
            human_time=self._human_time,
        )
        self.ticks += 1
        logger.info(report.render())
        return report

    def run(self) -> None:
        logger.info("stat ticker started")
        while True:
            if self._stop.wait(self._interval_s):
                logger.info("stat ticker stopped")
                break
            self.tick()
