# arduino_driver.py - blocking pyserial link to the keypad-emulation Arduino
import sys
import time
from typing import Callable, Optional

import serial

from microwave_link.core import protocol
from microwave_link.core.logger import APP_LOGGER
from .controller_driver import (
    AckTimeoutError,
    BadHandleError,
    ControllerDriver,
    ControllerDriverError,
    OpenFailureError,
    TransportError,
)

DEFAULT_BAUD = 115200
DEFAULT_ACK_TIMEOUT_S = 5.0
OPEN_READ_TIMEOUT_S = 0.05
READ_POLL_S = OPEN_READ_TIMEOUT_S
READ_MIN_BYTES = 1
RESET_SETTLE_S = 2.0
DRAIN_MAX_TOTAL_S = 0.4
DRAIN_QUIET_WINDOW_S = 0.12
KEYPRESS_SETTLE_S = 0.15
WINDOWS_DEVICE_PREFIX = "\\\\.\\"
LF = b"\n"


def normalize_port_name(port: str, platform: str = sys.platform) -> str:
    """Win32 COM ports are opened through the ``\\\\.\\`` device namespace."""
    if platform.startswith("win") and port.startswith("COM"):
        return WINDOWS_DEVICE_PREFIX + port
    return port


class SerialLink(ControllerDriver):
    """
    Blocking, line-oriented link to the keypad-emulation firmware.

    One instance owns one serial port. ``send_command`` writes a command line
    and blocks until the firmware's acknowledgment rule for that command is
    met (see :mod:`microwave_link.core.protocol`), then waits the keypress
    settle delay. Not safe for concurrent use: callers serialize commands.

    ``serial_factory``, ``clock`` and ``sleep`` are injectable so tests can
    drive the link with fake ports and a fake clock.
    """

    def __init__(
        self,
        ack_timeout_s: float = DEFAULT_ACK_TIMEOUT_S,
        *,
        serial_factory: Callable[..., serial.Serial] = serial.Serial,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        reset_settle_s: float = RESET_SETTLE_S,
        keypress_settle_s: float = KEYPRESS_SETTLE_S,
    ):
        self.ser: Optional[serial.Serial] = None
        self.ack_timeout_s = float(ack_timeout_s)
        self._serial_factory = serial_factory
        self._clock = clock
        self._sleep = sleep
        self._reset_settle_s = reset_settle_s
        self._keypress_settle_s = keypress_settle_s
        self._port: Optional[str] = None
        self._baudrate: int = DEFAULT_BAUD
        self._rx_buf = bytearray()

    @property
    def port(self) -> Optional[str]:
        return self._port

    @property
    def baudrate(self) -> int:
        return self._baudrate

    def open(self, port: str, baudrate: int = DEFAULT_BAUD, drain: bool = True):
        """Open ``port`` at ``baudrate`` with 8N1 framing, then drain boot noise.

        Raises:
            OpenFailureError: the port is missing, busy, or rejects the settings.
        """
        if self.is_open() and self._port == port:
            return

        self.close()  # Ensure clean state
        device = normalize_port_name(port)
        try:
            self.ser = self._serial_factory(
                port=device,
                baudrate=int(baudrate),
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                timeout=OPEN_READ_TIMEOUT_S,
            )
        except (ValueError, OSError, serial.SerialException) as e:
            APP_LOGGER.error(f"Failed to open port {device}: {e}")
            self.ser = None
            raise OpenFailureError(f"failed to open {device}: {e}") from e

        self._port = port
        self._baudrate = int(baudrate)
        self._rx_buf.clear()
        APP_LOGGER.info(f"Connected to {device} at {self._baudrate} baud")

        if drain:
            self.drain_startup()

    def is_open(self) -> bool:
        return bool(self.ser and self.ser.is_open)

    def close(self):
        if self.ser:
            try:
                self.ser.close()
                APP_LOGGER.info(f"Closed {self._port}")
            except Exception as e:
                # Nothing to recover; the handle is dropped either way
                APP_LOGGER.error(f"Error on port close: {e}")
            finally:
                self.ser = None
        self._rx_buf.clear()

    # --- byte level ---

    def _read_available(self, timeout_s: float) -> bytes:
        """Block up to ``timeout_s`` (capped at READ_POLL_S) for at least one byte.

        Callers loop on their own deadline. Setting the timeout reconfigures a
        real port, so it is only assigned when the value changes.
        """
        timeout_s = max(0.0, min(timeout_s, READ_POLL_S))
        if self.ser.timeout != timeout_s:
            self.ser.timeout = timeout_s
        waiting = int(getattr(self.ser, "in_waiting", 0) or 0)
        return self.ser.read(max(READ_MIN_BYTES, waiting))

    def read_line(self, deadline: float) -> Optional[str]:
        """Return the next line without its LF, or None once ``deadline`` passes.

        Bytes after the returned line stay buffered for the next call.
        """
        while True:
            idx = self._rx_buf.find(LF)
            if idx >= 0:
                raw = bytes(self._rx_buf[:idx])
                del self._rx_buf[:idx + 1]
                return raw.decode("ascii", errors="replace")
            remaining = deadline - self._clock()
            if remaining <= 0:
                return None
            data = self._read_available(remaining)
            if data:
                self._rx_buf.extend(data)

    # --- protocol ---

    def send_command(self, command: str, timeout_s: Optional[float] = None) -> str:
        """Send one command line and block until it is acknowledged.

        ``press``/``pulse`` commands finish on a bare ``OK`` line; all others
        on the first line starting with ``OK`` or ``Status:``. Blank lines are
        skipped. Returns the terminating line.

        Raises:
            BadHandleError: the link is not open.
            AckTimeoutError: no terminating ack within ``timeout_s``
                (defaults to ``ack_timeout_s``).
            TransportError: the port failed on write or read.
            ControllerDriverError: the command is not ASCII, or anything else
                went wrong. Nothing is written for a non-ASCII command.
        """
        if not self.is_open():
            raise BadHandleError("serial link is not open")

        mode = protocol.ack_mode_for(command)
        timeout_s = self.ack_timeout_s if timeout_s is None else float(timeout_s)
        try:
            payload = (command + protocol.LINE_TERMINATOR).encode("ascii")
        except UnicodeEncodeError as e:
            APP_LOGGER.error(f"Refusing non-ASCII command {command!r}")
            raise ControllerDriverError(f"command is not ASCII: {command!r}") from e
        APP_LOGGER.debug(f"-> {command!r} ({mode.value} ack)")

        try:
            self.ser.write(payload)
            deadline = self._clock() + timeout_s
            while True:
                raw = self.read_line(deadline)
                if raw is None:
                    raise AckTimeoutError(f"no acknowledgment for {command!r} within {timeout_s:.2f}s")
                line = protocol.clean_line(raw)
                if line is None:
                    continue
                APP_LOGGER.debug(f"<- {line!r}")
                if protocol.is_error_report(line):
                    APP_LOGGER.warning(f"Arduino reported: {line}")
                if protocol.is_terminal_ack(mode, line):
                    break
        except ControllerDriverError:
            raise
        except (OSError, serial.SerialException) as e:
            APP_LOGGER.error(f"Serial communication error: {e}")
            raise TransportError(f"serial communication error: {e}") from e
        except Exception as e:
            APP_LOGGER.error(f"Unknown error in send_command: {e}")
            raise ControllerDriverError(f"unexpected error: {e}") from e

        # Let the microwave's own controller register the key press
        self._sleep(self._keypress_settle_s)
        return line

    def drain_startup(self) -> int:
        """Discard unsolicited boot text right after the port opens.

        Waits for the board to finish resetting, then reads until either the
        hard cap (measured from drain start) or the quiet window (measured
        from the last received chunk) expires, whichever comes first. Ends by
        writing a bare LF so the firmware parser drops any partial token.
        Best-effort: errors are logged and swallowed. Returns bytes drained.
        """
        if not self.is_open():
            return 0

        self._sleep(self._reset_settle_s)

        drained = 0
        try:
            start = self._clock()
            hard_deadline = start + DRAIN_MAX_TOTAL_S
            idle_deadline = start + DRAIN_QUIET_WINDOW_S
            while True:
                now = self._clock()
                deadline = min(hard_deadline, idle_deadline)
                if now >= deadline:
                    break
                data = self._read_available(deadline - now)
                if data:
                    drained += len(data)
                    idle_deadline = self._clock() + DRAIN_QUIET_WINDOW_S
        except Exception as e:
            APP_LOGGER.debug(f"Startup drain stopped early: {e}")

        self._rx_buf.clear()
        try:
            self.ser.write(LF)
        except Exception as e:
            APP_LOGGER.debug(f"Post-drain newline not sent: {e}")

        APP_LOGGER.debug(f"Drained {drained} startup byte(s) from {self._port}")
        return drained
