# configio.py - connection settings save/load for the microwave link
import json, tempfile
from pathlib import Path
from microwave_link.core.logger import APP_LOGGER
from microwave_link.core.paths import CONFIG_DIR_NAME

DEFAULT_PATH = Path.home() / CONFIG_DIR_NAME / "config.json"

DEFAULT_SETTINGS = {
    "port": "",
    "baud_rate": 115200,
    "ack_timeout_s": 5.0,
}
_SETTING_TYPES = {
    "port": str,
    "baud_rate": int,
    "ack_timeout_s": float,
}


def _fallback_path(p: Path) -> Path:
    return Path(tempfile.gettempdir()) / CONFIG_DIR_NAME / p.name


def ensure_dir(p: Path) -> Path:
    try:
        p.parent.mkdir(parents=True, exist_ok=True)
        return p
    except PermissionError:
        # Fallback to temp dir if home is not writable
        tmp = _fallback_path(p)
        APP_LOGGER.warning(f"Permission denied for {p}, falling back to {tmp}")
        tmp.parent.mkdir(parents=True, exist_ok=True)
        return tmp


def save_config(cfg: dict, path: Path = DEFAULT_PATH) -> Path | None:
    target_path = ensure_dir(Path(path))
    try:
        with open(target_path, "w", encoding="utf-8") as f:
            json.dump(cfg, f, indent=2)
        return target_path
    except Exception as e:
        APP_LOGGER.error(f"Failed to save config to {target_path}: {e}")
        return None


def load_config(path: Path = DEFAULT_PATH) -> dict | None:
    path = Path(path)
    try:
        if not path.exists():
            # A previous save may have landed in the temp fallback
            tmp = _fallback_path(path)
            if tmp.exists():
                path = tmp

        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except Exception as e:
        APP_LOGGER.warning(f"Failed to load config from {path}: {e}")
        return None
    if not isinstance(data, dict):
        APP_LOGGER.warning(f"Ignoring config at {path}: expected a JSON object")
        return None
    return data


def resolve_settings(cfg: dict | None = None) -> dict:
    """Overlay a (possibly partial) config on DEFAULT_SETTINGS.

    Unknown keys are dropped; values that do not coerce to the expected type
    keep their default and log a warning.
    """
    settings = dict(DEFAULT_SETTINGS)
    for key, value in (cfg or {}).items():
        if key not in _SETTING_TYPES or value is None:
            continue
        try:
            settings[key] = _SETTING_TYPES[key](value)
        except (TypeError, ValueError):
            APP_LOGGER.warning(f"Invalid config value {key}={value!r}; using {settings[key]!r}")
    if settings["ack_timeout_s"] <= 0:
        APP_LOGGER.warning("ack_timeout_s must be > 0; using default")
        settings["ack_timeout_s"] = DEFAULT_SETTINGS["ack_timeout_s"]
    return settings
