"""Tick reporting for tcpecho.

Contains:
- TickReport: One periodic summary of the echo counters
"""

from dataclasses import dataclass

from common.humanize import duration_to_human, duration_to_ms, greek
from common.report import Report
from session.stats import StatsSnapshot

NO_DATA_LINE = "No echo stats to report - no working echos"

# Significant units shown in human readable durations
HUMAN_PRECISION = 2


@dataclass
class TickReport(Report):
    """Report built from one snapshot taken at the end of a tick."""

    snapshot: StatsSnapshot
    interval_s: float
    human_time: bool = False

    def render(self) -> str:
        """Return the report line."""
        s = self.snapshot
        if not s.has_data:
            return NO_DATA_LINE

        rate = greek(s.rate(self.interval_s))
        if self.human_time:
            max_time = duration_to_human(s.max_ns, HUMAN_PRECISION)
            avg_time = duration_to_human(s.average_ns, HUMAN_PRECISION)
        else:
            max_time = duration_to_ms(s.max_ns)
            avg_time = duration_to_ms(s.average_ns)

        return f"echos: {s.echo_count} rate: {rate} max time: {max_time} avg time: {avg_time}"

    def has_data(self) -> bool:
        """Return True if any echo completed during the tick."""
        return self.snapshot.has_data
