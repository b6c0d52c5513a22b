"""Reporting abstractions for tcpecho.

Contains:
- Report ABC: Base class for all reports
"""

from abc import ABC, abstractmethod


class Report(ABC):
    """Abstract base class for measurement reports."""

    @abstractmethod
    def render(self) -> str:
        """Return the report as a single log line."""
        pass

    @abstractmethod
    def has_data(self) -> bool:
        """Return True if the report covers at least one measurement."""
        pass
