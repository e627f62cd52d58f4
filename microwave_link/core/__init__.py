"""Core runtime modules for the microwave keypad link."""

from . import configio, encoding, logger, protocol, status, version

__all__ = [
    "configio",
    "encoding",
    "logger",
    "protocol",
    "status",
    "version",
]
