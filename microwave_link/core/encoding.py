# encoding.py - turn "MM:SS" and a power percentage into keypad input
from __future__ import annotations

from typing import Optional

from microwave_link.drivers.controller_driver import BadTimeFormatError

TIME_SEPARATOR = ":"
SECONDS_WIDTH = 2
MAX_SECONDS = 59

FULL_POWER_PERCENT = 100
MIN_POWER_PERCENT = 10
POWER_STEP_PERCENT = 10


def _is_digits(text: str) -> bool:
    return bool(text) and all("0" <= ch <= "9" for ch in text)


def parse_time_to_digits(time_str: Optional[str]) -> str:
    """Parse ``"MM:SS"`` into the digit string typed on the keypad.

    The minutes part keeps its original width, so ``"1:30"`` becomes
    ``"130"`` and ``"01:30"`` becomes ``"0130"``. Seconds must be exactly two
    digits and no more than 59.

    Raises:
        BadTimeFormatError: on a missing/leading/trailing separator, a
            seconds part that is not two characters, a non-numeric part, or
            seconds out of range.
    """
    if time_str is None:
        raise BadTimeFormatError("time string is missing")

    colon_pos = time_str.find(TIME_SEPARATOR)
    if colon_pos <= 0 or colon_pos == len(time_str) - 1:
        raise BadTimeFormatError(f"expected MM:SS, got {time_str!r}")

    min_str = time_str[:colon_pos]
    sec_str = time_str[colon_pos + 1:]

    if len(sec_str) != SECONDS_WIDTH:
        raise BadTimeFormatError(f"seconds must be two digits, got {sec_str!r}")
    if not (_is_digits(min_str) and _is_digits(sec_str)):
        raise BadTimeFormatError(f"time parts must be unsigned integers, got {time_str!r}")
    if int(sec_str) > MAX_SECONDS:
        raise BadTimeFormatError(f"seconds out of range: {sec_str}")

    return min_str + sec_str


def power_presses(percent: Optional[int]) -> int:
    """Number of extra ``press power`` commands for a power percentage.

    Only 10, 20, ..., 90 select a reduced level: ``(100 - percent) // 10 + 1``
    presses (90 -> 2, 50 -> 6, 10 -> 10). Everything else, including ``None``,
    out-of-range values and non-multiples of ten, is treated as full power and
    yields 0. This normalization is deliberate: invalid input silently means
    100%, it is never reported as an error.
    """
    if not isinstance(percent, int) or isinstance(percent, bool):
        return 0
    if percent < MIN_POWER_PERCENT or percent > FULL_POWER_PERCENT:
        return 0
    if percent % POWER_STEP_PERCENT != 0 or percent == FULL_POWER_PERCENT:
        return 0
    return (FULL_POWER_PERCENT - percent) // POWER_STEP_PERCENT + 1
