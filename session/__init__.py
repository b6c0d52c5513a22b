"""Measurement session package for tcpecho.

This package handles everything after a connection is up:
- Probe echo loop (server) and round-trip loop (client)
- Echo statistics with atomic snapshot-and-reset
- Periodic tick reports with a cancellable timer
"""

from session.exchange import RoundTripLoop, classify_echo, serve_echoes
from session.report import TickReport
from session.stats import EchoStats, StatsSnapshot
from session.ticker import StopSignal, Ticker

__all__ = [
    "EchoStats",
    "RoundTripLoop",
    "StatsSnapshot",
    "StopSignal",
    "TickReport",
    "Ticker",
    "classify_echo",
    "serve_echoes",
]
