"""Status codes returned across the public API boundary."""

from __future__ import annotations

from enum import IntEnum


class Status(IntEnum):
    SUCCESS = 0
    BAD_HANDLE = -1
    SERIAL_FAIL = -2
    BAD_TIME_STR = -3
    OPEN_FAIL = -4
    BAD_POWER = -5  # reserved: invalid power is normalized to 100%
    ARDUINO_ERR = -6  # reserved: "ERR:" lines are logged, not enforced
    UNKNOWN = -7
    TIMEOUT = -8


def describe_status(code: int) -> str:
    """Human-readable name for a status code, e.g. ``-3 -> "BAD_TIME_STR"``."""
    try:
        return Status(int(code)).name
    except ValueError:
        return f"UNRECOGNIZED({code})"
