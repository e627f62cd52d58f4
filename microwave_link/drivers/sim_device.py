"""Simulated keypad-emulation firmware.

Speaks the same line protocol as the Arduino sketch so the link, the API and
the CLI can run without hardware. The object quacks like ``serial.Serial``
(``is_open``, ``in_waiting``, ``timeout``, ``read``, ``write``, ``close``), so
it is passed to :class:`~microwave_link.drivers.arduino_driver.SerialLink`
as its ``serial_factory``.
"""

from __future__ import annotations

import time
from typing import Callable, Optional

import serial

SIM_PORT = "sim://microwave"
BOOT_BANNER = "Microwave keypad emulator ready\r\nkeys: 0-9 cook_time power start stop\r\n"
EOL = "\r\n"


class SimulatedMicrowave:
    """In-memory stand-in for the Arduino plus the microwave it drives.

    Besides answering commands it keeps a tiny keypad model (entered digits,
    power presses, running/idle) and a log of every pressed key so tests can
    assert on what actually reached the "keypad".

    ``fail_on_command`` makes the write of that (1-based) command raise
    ``serial.SerialException``, which is how a cable pull looks to pyserial.
    """

    def __init__(
        self,
        port: str = SIM_PORT,
        baudrate: int = 115200,
        timeout: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
        banner: str = BOOT_BANNER,
        fail_on_command: Optional[int] = None,
        **_line_settings,
    ):
        self.port = port
        self.baudrate = baudrate
        self.timeout = timeout
        self.is_open = True
        self.fail_on_command = fail_on_command
        self._sleep = sleep
        self._out = bytearray(banner.encode("ascii"))
        self._in = bytearray()

        self.received: list[str] = []
        self.pressed: list[str] = []
        self.held: Optional[str] = None
        self.digits = ""
        self.power_presses = 0
        self.entering_time = False
        self.running = False

    @property
    def in_waiting(self) -> int:
        return len(self._out)

    @property
    def state(self) -> str:
        if self.running:
            return "running"
        if self.entering_time:
            return f"entering time={self.digits or '-'} power_presses={self.power_presses}"
        return "idle"

    def read(self, size: int = 1) -> bytes:
        self._check_open()
        if not self._out:
            # Mimic a blocking read that times out with nothing to return
            if self.timeout:
                self._sleep(self.timeout)
            return b""
        chunk = bytes(self._out[:size])
        del self._out[:size]
        return chunk

    def write(self, data: bytes) -> int:
        self._check_open()
        self._in.extend(data)
        while True:
            idx = self._in.find(b"\n")
            if idx < 0:
                break
            line = bytes(self._in[:idx]).decode("ascii", errors="replace").rstrip("\r")
            del self._in[:idx + 1]
            self._handle_line(line)
        return len(data)

    def close(self):
        self.is_open = False

    def queue_output(self, text: str):
        """Inject unsolicited device output (e.g. a late debug print)."""
        self._out.extend(text.encode("ascii"))

    def _check_open(self):
        if not self.is_open:
            raise serial.SerialException("Attempting to use a port that is not open")

    def _reply(self, *lines: str):
        for line in lines:
            self._out.extend((line + EOL).encode("ascii"))

    def _handle_line(self, line: str):
        if not line.strip():
            return
        self.received.append(line)
        if self.fail_on_command == len(self.received):
            raise serial.SerialException("simulated device disconnected")

        verb, _, arg = line.partition(" ")
        arg = arg.strip()
        if verb in ("press", "pulse"):
            if not arg:
                self._reply(f"ERR: {verb} needs a key")
                return
            self._press(arg)
            self._reply(f"OK: pressing {arg}", "OK")
        elif verb == "hold":
            self.held = arg
            self._reply(f"OK: holding {arg}")
        elif verb == "release":
            self.held = None
            self._reply("OK: released")
        elif verb == "status":
            self._reply(f"Status: {self.state}")
        else:
            self._reply(f"ERR: unknown command '{line}'")

    def _press(self, key: str):
        self.pressed.append(key)
        if key == "cook_time":
            self.entering_time = True
            self.digits = ""
            self.power_presses = 0
        elif key.isdigit() and self.entering_time:
            self.digits += key
        elif key == "power" and self.entering_time:
            self.power_presses += 1
        elif key == "start":
            self.running = True
            self.entering_time = False
        elif key == "stop":
            if self.running:
                self.running = False
            else:
                self.entering_time = False
                self.digits = ""
                self.power_presses = 0
