# sequencer.py - expand "run for MM:SS at N%" into keypad commands
from __future__ import annotations

from typing import Optional

from microwave_link.core import protocol
from microwave_link.core.encoding import parse_time_to_digits, power_presses
from microwave_link.core.logger import APP_LOGGER


def build_run_commands(time_str: Optional[str], power_level: Optional[int] = 100) -> list[str]:
    """Ordered commands for one cook: cook_time, each time digit, then power.

    Raises BadTimeFormatError before anything is built for bad time text.
    Invalid power levels quietly mean 100% (no power presses).
    """
    digits = parse_time_to_digits(time_str)
    commands = [protocol.CMD_COOK_TIME]
    commands.extend(protocol.press_command(d) for d in digits)
    commands.extend([protocol.CMD_POWER] * power_presses(power_level))
    return commands


def run_sequence(link, time_str: Optional[str], power_level: Optional[int] = 100) -> int:
    """Drive a full cook sequence through ``link.send_command``.

    Commands go out strictly in order; the first failure propagates and the
    rest are not sent. Nothing is rolled back, so the keypad is left with
    whatever was entered so far. Assumes the device starts idle.
    Returns the number of commands sent.
    """
    commands = build_run_commands(time_str, power_level)
    APP_LOGGER.info(f"Running {time_str} at power {power_level}: {len(commands)} command(s)")
    for sent, command in enumerate(commands):
        try:
            link.send_command(command)
        except Exception as e:
            APP_LOGGER.error(f"Run aborted at step {sent + 1}/{len(commands)} ({command!r}): {e}")
            raise
    return len(commands)
