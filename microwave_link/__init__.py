"""Serial bridge from a host application to the microwave keypad-emulation Arduino."""

from .api import (
    Status,
    close_controller,
    describe_status,
    open_controller,
    query_status,
    run_microwave,
    send_command,
    stop_microwave,
)
from .core.version import APP_VERSION as __version__

__all__ = [
    "Status",
    "close_controller",
    "describe_status",
    "open_controller",
    "query_status",
    "run_microwave",
    "send_command",
    "stop_microwave",
    "__version__",
]
