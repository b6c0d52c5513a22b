"""Logging setup for tcpecho.

Contains:
- to_log_level: Map CLI level names (and one-letter aliases) to levels
- init_logging: Console logging with UTC timestamps, or a fileConfig file
- single_line_error: Collapse an exception chain onto one log line
"""

import logging
import logging.config
import sys
import time
from pathlib import Path

from common.protocol import TRACE

LOG_FORMAT = "%(asctime)s.%(msecs)03d UTC [%(levelname)-5s] %(filename)s:%(lineno)d - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Above CRITICAL, so nothing is emitted
LEVEL_OFF = logging.CRITICAL + 10

_LEVELS = {
    "off": LEVEL_OFF,
    "o": LEVEL_OFF,
    "error": logging.ERROR,
    "e": logging.ERROR,
    "warn": logging.WARNING,
    "w": logging.WARNING,
    "info": logging.INFO,
    "i": logging.INFO,
    "debug": logging.DEBUG,
    "d": logging.DEBUG,
    "trace": TRACE,
    "t": TRACE,
}


def to_log_level(name: str) -> int:
    """Return the logging level for a CLI level name.

    Raises ValueError for unknown names.
    """
    try:
        return _LEVELS[name.lower()]
    except KeyError:
        raise ValueError(
            "log level must be one of off, o, error, e, warn, w, info, i, "
            f"debug, d, trace, t but got {name}"
        )


def init_logging(level: int = logging.INFO, config_file: Path | None = None) -> None:
    """Configure the root logger.

    With config_file, logging is configured from that file via
    logging.config.fileConfig and level is ignored.
    """
    if config_file is not None:
        logging.config.fileConfig(config_file, disable_existing_loggers=False)
        logging.getLogger(__name__).info(f"START with log configured from {config_file}")
        return

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    formatter.converter = time.gmtime
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    logging.basicConfig(level=level, handlers=[handler], force=True)


def single_line_error(exc: BaseException) -> str:
    """Render an exception and its causes as one line.

    ProtocolError("stream closed") raised from ConnectionResetError(...)
    becomes "ProtocolError: stream closed: ConnectionResetError: ...".
    """
    parts = []
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        text = str(current)
        name = type(current).__name__
        parts.append(f"{name}: {text}" if text else name)
        if current.__cause__ is not None:
            current = current.__cause__
        elif not current.__suppress_context__:
            current = current.__context__
        else:
            current = None
    line = ": ".join(parts)
    return " ".join(line.split())
