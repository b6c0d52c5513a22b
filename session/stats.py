"""Echo statistics accumulator for tcpecho.

Contains:
- StatsSnapshot: Immutable view of the counters at snapshot time
- EchoStats: Lock-guarded counters shared by the round-trip loop and the ticker
"""

import threading
from dataclasses import dataclass


@dataclass(frozen=True)
class StatsSnapshot:
    """Echo counters taken and reset in one step.

    Attributes:
        echo_count: Number of completed round trips.
        total_ns: Sum of round-trip times in nanoseconds.
        max_ns: Largest single round-trip time in nanoseconds.
    """

    echo_count: int = 0
    total_ns: int = 0
    max_ns: int = 0

    @property
    def has_data(self) -> bool:
        return self.echo_count > 0

    @property
    def average_ns(self) -> int:
        """Mean round-trip time in nanoseconds, or 0 with no echoes."""
        if self.echo_count == 0:
            return 0
        return self.total_ns // self.echo_count

    def rate(self, interval_s: float) -> float:
        """Echoes per second over an interval of interval_s seconds."""
        if interval_s <= 0:
            return 0.0
        return self.echo_count / interval_s


class EchoStats:
    """Echo count, total and max round-trip time since the last snapshot.

    All three counters live behind one lock and change together. The only
    entry points are update() and snapshot(); the lock is held for the
    arithmetic only, never across I/O.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._echo_count = 0
        self._total_ns = 0
        self._max_ns = 0

    def update(self, elapsed_ns: int) -> None:
        """Record one round trip of elapsed_ns nanoseconds."""
        if elapsed_ns < 0:
            raise ValueError(f"elapsed time must not be negative, got {elapsed_ns}ns")
        with self._lock:
            self._echo_count += 1
            self._total_ns += elapsed_ns
            if elapsed_ns > self._max_ns:
                self._max_ns = elapsed_ns

    def snapshot(self) -> StatsSnapshot:
        """Return the current counters and reset them to zero atomically."""
        with self._lock:
            snap = StatsSnapshot(
                echo_count=self._echo_count,
                total_ns=self._total_ns,
                max_ns=self._max_ns,
            )
            self._echo_count = 0
            self._total_ns = 0
            self._max_ns = 0
        return snap
