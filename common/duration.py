"""Duration string parsing for tcpecho.

Durations are a sequence of <number><unit> terms that are summed, e.g.
"1s", "100ms500us" or "1m30s". A bare number is seconds.
"""

import re

_UNIT_NS = {
    "ns": 1,
    "us": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}

_TERM = re.compile(r"(\d+)([a-z]*)")


def parse_duration_ns(text: str) -> int:
    """Parse a duration string into integer nanoseconds.

    Raises ValueError on empty input, stray characters or an unknown unit.
    """
    s = text.strip().lower()
    if not s:
        raise ValueError("empty duration")

    if s.isdigit():
        return int(s) * _UNIT_NS["s"]

    total = 0
    pos = 0
    for match in _TERM.finditer(s):
        if match.start() != pos:
            raise ValueError(f"cannot parse {s[pos:match.start()]!r} inside duration {text!r}")
        number, unit = match.groups()
        if unit not in _UNIT_NS:
            raise ValueError(f'time unit "{unit}" not supported in duration {text!r}')
        total += int(number) * _UNIT_NS[unit]
        pos = match.end()

    if pos != len(s):
        raise ValueError(f"cannot parse {s[pos:]!r} inside duration {text!r}")
    return total


def parse_duration(text: str) -> float:
    """Parse a duration string into seconds."""
    return parse_duration_ns(text) / 1_000_000_000


def seconds_to_ns(seconds: float) -> int:
    """Convert float seconds to integer nanoseconds, rounding to nearest."""
    return round(seconds * 1_000_000_000)
