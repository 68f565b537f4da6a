"""Configuration path helpers for easyinstaller."""

import os
from pathlib import Path


def get_config_dir() -> Path:
    """Return the config directory.

    ``EASYINSTALLER_HOME`` overrides the XDG default ``~/.config/easyinstaller``.
    """
    if os.environ.get("EASYINSTALLER_HOME"):
        return Path(os.environ["EASYINSTALLER_HOME"]).expanduser()
    return Path.home() / ".config" / "easyinstaller"


def get_manifests_dir() -> Path:
    """Return the directory scanned for ``*.json`` manifests.

    Priority:
    1. EASYINSTALLER_MANIFESTS environment variable (if set)
    2. <config dir>/manifests
    """
    if os.environ.get("EASYINSTALLER_MANIFESTS"):
        return Path(os.environ["EASYINSTALLER_MANIFESTS"]).expanduser()
    return get_config_dir() / "manifests"


def get_settings_path() -> Path:
    return get_config_dir() / "settings.yaml"


__all__ = [
    "get_config_dir",
    "get_manifests_dir",
    "get_settings_path",
]
