"""Persisted user settings (last install directory, last manifest, ...)."""

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from easyinstaller.config import ConfigError
from easyinstaller.paths import get_settings_path

_logging = logging.getLogger(__name__)

_lock = threading.Lock()

_KNOWN_KEYS = ("last_install_directory", "last_manifest_id", "telemetry_opt_in")


@dataclass
class UserSettings:
    last_install_directory: str | None = None
    last_manifest_id: str | None = None
    telemetry_opt_in: bool = False
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UserSettings":
        extra = {k: v for k, v in data.items() if k not in _KNOWN_KEYS}
        return cls(
            last_install_directory=_optional_str(data.get("last_install_directory")),
            last_manifest_id=_optional_str(data.get("last_manifest_id")),
            telemetry_opt_in=bool(data.get("telemetry_opt_in", False)),
            extra=extra,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "last_install_directory": self.last_install_directory,
            "last_manifest_id": self.last_manifest_id,
            "telemetry_opt_in": self.telemetry_opt_in,
        }
        data.update(self.extra)
        return data


def _optional_str(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def load_settings(path: Path | None = None) -> UserSettings:
    """Load settings, returning defaults when the file is missing or empty.

    Raises:
        ConfigError: If the file exists but is not a YAML mapping
    """
    path = path or get_settings_path()
    with _lock:
        if not path.exists():
            return UserSettings()
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid settings file {path}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Cannot read settings file {path}: {e}") from e

    if data is None:
        return UserSettings()
    if not isinstance(data, dict):
        raise ConfigError(f"Settings file {path} must contain a mapping")

    return UserSettings.from_dict(data)


def save_settings(settings: UserSettings, path: Path | None = None) -> Path:
    path = path or get_settings_path()
    with _lock:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(settings.to_dict(), f, default_flow_style=False, sort_keys=False)
    _logging.debug("Saved settings to %s", path)
    return path


__all__ = [
    "UserSettings",
    "load_settings",
    "save_settings",
]
