"""Common interfaces and exceptions for keypad controller drivers."""

from microwave_link.core.status import Status


class ControllerDriverError(RuntimeError):
    """Raised when a keypad controller exchange fails.

    Every subclass carries the :class:`Status` code the public API reports
    for it, so the boundary can translate without a lookup table.
    """

    status = Status.UNKNOWN


class BadHandleError(ControllerDriverError):
    """Operation on a session that is not open."""

    status = Status.BAD_HANDLE


class TransportError(ControllerDriverError):
    """Write/read failure or disconnect at the byte-stream level."""

    status = Status.SERIAL_FAIL


class OpenFailureError(ControllerDriverError):
    """The serial port could not be opened or configured."""

    status = Status.OPEN_FAIL


class AckTimeoutError(ControllerDriverError):
    """The device did not acknowledge a command before its deadline."""

    status = Status.TIMEOUT


class DeviceReportedError(ControllerDriverError):
    """Reserved for an ``ERR:`` line reported by the firmware."""

    status = Status.ARDUINO_ERR


class BadTimeFormatError(ControllerDriverError, ValueError):
    """Duration text is not ``MM:SS``."""

    status = Status.BAD_TIME_STR


class ControllerDriver:
    """Abstract interface for keypad backends.

    Concrete drivers (the pyserial Arduino link, test doubles) inherit from
    this class and implement the blocking lifecycle used by the API layer.
    """

    def open(self, *args, **kwargs):  # pragma: no cover - interface placeholder
        raise NotImplementedError

    def close(self):  # pragma: no cover - interface placeholder
        raise NotImplementedError

    def is_open(self) -> bool:  # pragma: no cover - interface placeholder
        raise NotImplementedError

    def send_command(self, command: str, timeout_s=None):  # pragma: no cover - interface placeholder
        raise NotImplementedError
