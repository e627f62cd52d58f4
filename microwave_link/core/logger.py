# logger.py - app-wide logger for the microwave link (console + optional file)
import logging
from pathlib import Path

# --- App-wide logger ---
# Use a named logger for connection events, command exchanges and errors.
# Defaults to console, but can be configured to log to file.
APP_LOGGER = logging.getLogger("microwave_link")
APP_LOGGER.setLevel(logging.INFO)
_formatter = logging.Formatter("[%(asctime)s] %(levelname)s: %(message)s", datefmt="%H:%M:%S")
_console_handler = logging.StreamHandler()
_console_handler.setFormatter(_formatter)
APP_LOGGER.addHandler(_console_handler)


def set_verbose(enabled: bool = True):
    """Switch APP_LOGGER between INFO and DEBUG (per-command exchanges)."""
    APP_LOGGER.setLevel(logging.DEBUG if enabled else logging.INFO)


def configure_file_logging(log_path: Path, level=logging.DEBUG):
    """Configures file logging for APP_LOGGER."""
    # Remove existing file handlers first to prevent duplicates
    for handler in list(APP_LOGGER.handlers):
        if isinstance(handler, logging.FileHandler):
            APP_LOGGER.removeHandler(handler)
            try:
                handler.close()
            except Exception:
                pass

    log_path = Path(log_path)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(log_path, encoding='utf-8')
    file_handler.setFormatter(_formatter)
    file_handler.setLevel(level)
    APP_LOGGER.addHandler(file_handler)
    if level < APP_LOGGER.level:
        APP_LOGGER.setLevel(level)
    APP_LOGGER.info(f"File logging enabled at: {log_path}")
    return file_handler
