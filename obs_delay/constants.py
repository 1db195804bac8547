from __future__ import annotations

import logging
import os

# OBS filter and setting this server reads and writes
DEFAULT_FILTER_NAME = "Render Delay"
DELAY_SETTING_KEY = "delay_ms"

# Reported in place of a delay that could not be read
DELAY_UNAVAILABLE = -1

DEFAULT_SOURCES: tuple[str, ...] = (
    "01 input",
    "02 input",
    "03 input",
    "04 input",
    "05 input",
    "06 input",
    "07 input",
    "08 input",
)

# obs-websocket v5 default endpoint
DEFAULT_OBS_HOST = "localhost"
DEFAULT_OBS_PORT = 4455

# Upper bound for a single OBS request, in seconds
DEFAULT_CALL_TIMEOUT_S = 3.0
# An abandoned request may still collect its reply for this many call timeouts
# before the socket is treated as out of sync
LATE_REPLY_GRACE = 3.0

TRUTHY = ("1", "true", "True", "yes", "YES", "on")

_LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def resolve_log_level(name: str | None = None) -> int:
    """Map a level name (or OBS_DELAY_LOG_LEVEL) to a logging level, WARNING by default."""
    s = name if name is not None else os.getenv("OBS_DELAY_LOG_LEVEL")
    if s:
        return _LOG_LEVELS.get(s.strip().upper(), logging.WARNING)
    return logging.WARNING


LOG_LEVEL: int = resolve_log_level()
