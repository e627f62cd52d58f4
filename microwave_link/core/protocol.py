"""Line-level acknowledgment rules for the keypad firmware.

Every command is a single ASCII line. ``press``/``pulse`` commands are
acknowledged twice: an informational ``OK: pressing <key>`` line followed by
a bare ``OK`` once the emulated key has been released. Every other command
(``hold``, ``release``, ``status``) is done at its first ``OK...`` or
``Status:...`` line.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

LINE_TERMINATOR = "\n"
CARRIAGE_RETURN = "\r"

ACK_OK = "OK"
ACK_STATUS_PREFIX = "Status:"
ERROR_PREFIX = "ERR:"
DOUBLE_ACK_PREFIXES = ("press", "pulse")

CMD_COOK_TIME = "press cook_time"
CMD_POWER = "press power"
CMD_STOP = "press stop"
CMD_STATUS = "status"


class AckMode(Enum):
    SINGLE = "single"
    DOUBLE = "double"


def ack_mode_for(command: str) -> AckMode:
    """Acknowledgment mode of a command, decided only by its prefix."""
    if command.startswith(DOUBLE_ACK_PREFIXES):
        return AckMode.DOUBLE
    return AckMode.SINGLE


def press_command(key: str) -> str:
    return f"press {key}"


def clean_line(raw: str) -> Optional[str]:
    """Strip one trailing CR; return None for a blank line that must be skipped."""
    if raw.endswith(CARRIAGE_RETURN):
        raw = raw[:-1]
    return raw or None


def is_terminal_ack(mode: AckMode, line: str) -> bool:
    """True when ``line`` ends the wait for a command in ``mode``."""
    if mode is AckMode.DOUBLE:
        # "OK: pressing..." is only the first half
        return line == ACK_OK
    return line.startswith(ACK_OK) or line.startswith(ACK_STATUS_PREFIX)


def is_error_report(line: str) -> bool:
    return line.startswith(ERROR_PREFIX)
