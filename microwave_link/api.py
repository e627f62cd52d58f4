"""Handle-based entry points for host applications.

Each function mirrors one operation of the controller: open a port and get
an integer handle back, send commands against that handle, close it. None of
them raise; every failure comes back as a :class:`Status` code (``open``
returns handle 0 instead).

    handle = open_controller("/dev/ttyACM0", 115200)
    if handle:
        run_microwave(handle, "01:30", 50)
        stop_microwave(handle)
        close_controller(handle)
"""

from __future__ import annotations

from typing import Callable, Optional

from microwave_link.core import protocol
from microwave_link.core.logger import APP_LOGGER
from microwave_link.core.sequencer import run_sequence
from microwave_link.core.session import MicrowaveSession, SessionTable
from microwave_link.core.status import Status, describe_status
from microwave_link.drivers.arduino_driver import DEFAULT_ACK_TIMEOUT_S, DEFAULT_BAUD, SerialLink
from microwave_link.drivers.controller_driver import ControllerDriverError

__all__ = [
    "Status",
    "describe_status",
    "open_controller",
    "close_controller",
    "send_command",
    "run_microwave",
    "stop_microwave",
    "query_status",
    "get_session",
]

NULL_HANDLE = 0

_SESSIONS = SessionTable()


def _status_of(exc: BaseException, action: str) -> Status:
    if isinstance(exc, ControllerDriverError):
        return exc.status
    APP_LOGGER.error(f"Unexpected error in {action}: {exc}", exc_info=True)
    return Status.UNKNOWN


def get_session(handle: int) -> Optional[MicrowaveSession]:
    return _SESSIONS.get(handle)


def open_controller(
    port_name: str,
    baud_rate: int = DEFAULT_BAUD,
    ack_timeout_s: float = DEFAULT_ACK_TIMEOUT_S,
    link_factory: Callable[..., SerialLink] = SerialLink,
) -> int:
    """Open the controller on ``port_name``; returns a handle, or 0 on failure.

    Blocks for the board's reset settle and the startup drain. A noisy or
    silent boot never fails the open; only the port itself can.
    """
    if not port_name:
        APP_LOGGER.error("open_controller: no port given")
        return NULL_HANDLE
    try:
        link = link_factory(ack_timeout_s=ack_timeout_s)
        link.open(port_name, baud_rate)
    except Exception as e:
        status = _status_of(e, "open_controller")
        APP_LOGGER.error(f"open_controller({port_name!r}) failed: {describe_status(status)}")
        return NULL_HANDLE

    session = MicrowaveSession(link=link, port=port_name, baud_rate=int(baud_rate))
    try:
        return _SESSIONS.add(session)
    except RuntimeError as e:
        APP_LOGGER.error(f"open_controller: {e}")
        link.close()
        return NULL_HANDLE


def close_controller(handle: int) -> Status:
    session = _SESSIONS.remove(handle)
    if session is None:
        return Status.BAD_HANDLE
    # close() logs and swallows port errors; the session is gone either way
    session.link.close()
    APP_LOGGER.info(
        f"Closed session on {session.port}: {session.commands_sent} command(s) "
        f"in {session.open_for_s():.1f}s"
    )
    return Status.SUCCESS


def send_command(handle: int, command: Optional[str]) -> Status:
    """Send ``command`` verbatim (e.g. ``"press start"``, ``"hold 1"``,
    ``"release"``) and wait for its acknowledgment."""
    session = _SESSIONS.get(handle)
    if session is None:
        return Status.BAD_HANDLE
    if command is None:
        return Status.UNKNOWN
    try:
        session.link.send_command(command)
    except Exception as e:
        return _status_of(e, "send_command")
    session.commands_sent += 1
    return Status.SUCCESS


def run_microwave(handle: int, time_str: Optional[str], power_level: Optional[int] = 100) -> Status:
    """Enter cook time ``time_str`` ("MM:SS") and ``power_level`` percent.

    ``power_level`` must be 10..100 in steps of 10; anything else means 100%.
    Stops at the first failed command and returns its status; earlier key
    presses are not undone.
    """
    session = _SESSIONS.get(handle)
    if session is None:
        return Status.BAD_HANDLE

    link = _CountingLink(session)
    try:
        run_sequence(link, time_str, power_level)
    except Exception as e:
        return _status_of(e, "run_microwave")
    return Status.SUCCESS


def stop_microwave(handle: int) -> Status:
    return send_command(handle, protocol.CMD_STOP)


def query_status(handle: int) -> tuple[Status, Optional[str]]:
    """Ask the firmware for its ``Status:`` line."""
    session = _SESSIONS.get(handle)
    if session is None:
        return Status.BAD_HANDLE, None
    try:
        line = session.link.send_command(protocol.CMD_STATUS)
    except Exception as e:
        return _status_of(e, "query_status"), None
    session.commands_sent += 1
    return Status.SUCCESS, line


class _CountingLink:
    """Forwards to the session's link and counts acknowledged commands."""

    def __init__(self, session: MicrowaveSession):
        self._session = session

    def send_command(self, command: str):
        self._session.link.send_command(command)
        self._session.commands_sent += 1
