# microwave_link/core/paths.py
import sys
from pathlib import Path


def get_resource_path(relative_path: str) -> Path:
    """Get absolute path to resource, works for dev and for PyInstaller."""
    try:
        # PyInstaller creates a temporary folder and stores path in _MEIPASS
        base_path = Path(sys._MEIPASS)
    except AttributeError:
        # Fallback to dev mode: this file is in microwave_link/core/, so three levels up is project root
        base_path = Path(__file__).resolve().parent.parent.parent
    return base_path / relative_path


CONFIG_DIR_NAME = ".microwave_link"
