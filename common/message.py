"""Probe encoding/decoding for the TCP echo exchange.

A probe has a fixed layout with no length prefix or framing:
  [8-byte send_time][1-byte tag][8-byte response_time if tag == 1]

Timestamps are milliseconds on the process-local monotonic clock. Only the
client interprets them, by subtracting two values taken on the same host,
so no clock synchronization between peers is needed.

All integers are little-endian unsigned.
"""

import time
from dataclasses import dataclass
from typing import Literal, Protocol

UINT64_SIZE = 8
TAG_SIZE = 1
BYTE_ORDER: Literal["little", "big"] = "little"

UINT64_MAX = 2**64 - 1

TAG_ABSENT = 0
TAG_PRESENT = 1

# Encoded sizes for each direction
REQUEST_SIZE = UINT64_SIZE + TAG_SIZE  # client -> server
RESPONSE_SIZE = UINT64_SIZE + TAG_SIZE + UINT64_SIZE  # server -> client


class ProtocolError(Exception):
    """Raised when probe data is truncated or malformed."""

    pass


class Reader(Protocol):
    """Protocol for objects that can receive bytes."""

    def recv(self, size: int, /) -> bytes: ...


def now_ms() -> int:
    """Current process-local monotonic time in whole milliseconds."""
    return time.monotonic_ns() // 1_000_000


def uint64_to_bytes(value: int) -> bytes:
    """Encode unsigned 64-bit int as little-endian bytes."""
    return value.to_bytes(UINT64_SIZE, BYTE_ORDER, signed=False)


def uint64_from_bytes(data: bytes) -> int:
    """Decode little-endian bytes to unsigned 64-bit int."""
    return int.from_bytes(data, BYTE_ORDER, signed=False)


@dataclass
class Probe:
    """One timing round: send stamp from the client, response stamp from the server."""

    send_time: int
    response_time: int | None = None

    @classmethod
    def new(cls) -> "Probe":
        return cls(send_time=now_ms())


def _check_timestamp(name: str, value: int) -> None:
    if not 0 <= value <= UINT64_MAX:
        raise ProtocolError(f"{name} {value} does not fit in an unsigned 64-bit field")


def encode(probe: Probe) -> bytes:
    """Encode a probe into its fixed binary layout."""
    _check_timestamp("send_time", probe.send_time)
    data = uint64_to_bytes(probe.send_time)
    if probe.response_time is None:
        return data + bytes([TAG_ABSENT])
    _check_timestamp("response_time", probe.response_time)
    return data + bytes([TAG_PRESENT]) + uint64_to_bytes(probe.response_time)


def read_exact(reader: Reader, size: int) -> bytes:
    """Read exactly size bytes, looping over short reads.

    Raises ProtocolError if the peer closes or the read times out before
    size bytes arrive. Other socket errors propagate unchanged.
    """
    buf = bytearray()
    while len(buf) < size:
        try:
            chunk = reader.recv(size - len(buf))
        except TimeoutError as e:
            raise ProtocolError(
                f"timed out after {len(buf)} of {size} bytes"
            ) from e
        if not chunk:
            raise ProtocolError(
                f"stream closed after {len(buf)} of {size} bytes"
            )
        buf += chunk
    return bytes(buf)


def decode(reader: Reader) -> Probe:
    """Decode one probe from a reader.

    Raises:
        ProtocolError: On truncation, timeout or an invalid presence tag.
    """
    send_time = uint64_from_bytes(read_exact(reader, UINT64_SIZE))
    tag = read_exact(reader, TAG_SIZE)[0]

    if tag == TAG_ABSENT:
        return Probe(send_time=send_time)
    if tag != TAG_PRESENT:
        raise ProtocolError(f"Invalid presence tag: {tag}")

    response_time = uint64_from_bytes(read_exact(reader, UINT64_SIZE))
    return Probe(send_time=send_time, response_time=response_time)
