"""Keypad controller drivers."""

from .controller_driver import (
    AckTimeoutError,
    BadHandleError,
    BadTimeFormatError,
    ControllerDriver,
    ControllerDriverError,
    DeviceReportedError,
    OpenFailureError,
    TransportError,
)
from .arduino_driver import SerialLink
from .sim_device import SimulatedMicrowave

__all__ = [
    "AckTimeoutError",
    "BadHandleError",
    "BadTimeFormatError",
    "ControllerDriver",
    "ControllerDriverError",
    "DeviceReportedError",
    "OpenFailureError",
    "SerialLink",
    "SimulatedMicrowave",
    "TransportError",
]
