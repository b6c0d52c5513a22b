"""Human readable number formatting for tick reports."""

from decimal import Decimal

GREEK_SUFFIXES = ["", "K", "M", "G", "T", "P", "E", "Z", "Y"]

# (nanoseconds per unit, suffix), largest first
TIME_UNITS = [(1_000_000_000, "s"), (1_000_000, "ms"), (1_000, "u"), (1, "ns")]


def _plain_decimal(number: float) -> str:
    """Shortest round-trip digits of number, never in exponent notation."""
    s = format(Decimal(repr(number)), "f")
    if "." in s:
        s = s.rstrip("0").rstrip(".")
    return s


def greek(value: float) -> str:
    """Format a number in a fixed 5-character field with a magnitude suffix.

    Steps by 1024 once the value reaches 1000, e.g. 1500.0 -> "1.46 K".
    """
    number = value
    multi = 0
    while number >= 1000.0 and multi < len(GREEK_SUFFIXES) - 1:
        multi += 1
        number /= 1024.0

    s = _plain_decimal(number)[:4]
    if s.endswith("."):
        s = s[:-1]
    if len(s) < 4:
        s += " "

    return f"{s:<5}{GREEK_SUFFIXES[multi]}"


def duration_to_human(nanos: int, precision: int = 2) -> str:
    """Render a duration as its largest `precision` non-zero units.

    duration_to_human(1_500_250_000) -> "1s500ms"
    """
    if nanos <= 0:
        return "0ns"

    parts = []
    remaining = nanos
    for unit_ns, suffix in TIME_UNITS:
        if remaining >= unit_ns:
            amount, remaining = divmod(remaining, unit_ns)
            parts.append(f"{amount}{suffix}")
            if len(parts) >= precision:
                break
    return "".join(parts)


def duration_to_ms(nanos: int) -> str:
    """Render a duration as fixed-point milliseconds, e.g. "1.250ms"."""
    return f"{nanos / 1_000_000:.3f}ms"
