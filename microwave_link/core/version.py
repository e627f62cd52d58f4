"""Package version loader shared by the CLI and the log banner."""

from __future__ import annotations

from importlib import metadata

from microwave_link.core.logger import APP_LOGGER
from microwave_link.core.paths import get_resource_path

DEFAULT_APP_VERSION = "0.0.0"
DISTRIBUTION_NAME = "microwave-link"


def _installed_version() -> str | None:
    try:
        return metadata.version(DISTRIBUTION_NAME)
    except metadata.PackageNotFoundError:
        return None


def get_app_version(default: str = DEFAULT_APP_VERSION) -> str:
    """Resolve the version from the repo VERSION file, then the installed
    distribution metadata, then ``default``."""
    version_path = get_resource_path("VERSION")
    if version_path.exists():
        try:
            with version_path.open("r", encoding="utf-8") as fh:
                version = fh.read().strip()
            if version:
                return version
        except OSError as exc:
            APP_LOGGER.warning(f"Failed to read VERSION file: {exc}")
        return default
    return _installed_version() or default


APP_VERSION = get_app_version()
