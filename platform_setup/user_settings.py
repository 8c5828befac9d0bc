"""User-configurable provisioning settings persisted locally."""
from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from platform_setup.constants import SERVICE_CENTER


SETTINGS_DIRNAME = ".platform_setup"
SETTINGS_FILENAME = "settings.json"


def default_settings_path() -> Path:
    return Path.home() / SETTINGS_DIRNAME / SETTINGS_FILENAME


@dataclass
class ProvisioningSettings:
    service_center_host: str = "localhost"
    service_center_scheme: str = SERVICE_CENTER.default_scheme
    installer_base_url: str = ""
    default_install_dir: str = ""
    downloads_dir: str = ""
    http_timeout_seconds: float = 20.0
    tool_timeout_seconds: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "service_center_host": self.service_center_host,
            "service_center_scheme": self.service_center_scheme,
            "installer_base_url": self.installer_base_url,
            "default_install_dir": self.default_install_dir,
            "downloads_dir": self.downloads_dir,
            "http_timeout_seconds": self.http_timeout_seconds,
            "tool_timeout_seconds": self.tool_timeout_seconds,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProvisioningSettings":
        defaults = cls()

        def _get(key: str, default: str) -> str:
            value = data.get(key, default)
            return str(value) if value is not None else default

        def _get_float(key: str, default: float | None) -> float | None:
            value = data.get(key, default)
            if value is None:
                return default
            try:
                return float(value)
            except (TypeError, ValueError):
                return default

        http_timeout = _get_float("http_timeout_seconds", defaults.http_timeout_seconds)
        return cls(
            service_center_host=_get("service_center_host", defaults.service_center_host),
            service_center_scheme=_get("service_center_scheme", defaults.service_center_scheme),
            installer_base_url=_get("installer_base_url", ""),
            default_install_dir=_get("default_install_dir", ""),
            downloads_dir=_get("downloads_dir", ""),
            http_timeout_seconds=http_timeout if http_timeout is not None else defaults.http_timeout_seconds,
            tool_timeout_seconds=_get_float("tool_timeout_seconds", None),
        )


class SettingsStore:
    def __init__(self, path: Path | None = None) -> None:
        self._path = path or default_settings_path()

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.exists()

    def load(self) -> ProvisioningSettings:
        if not self._path.exists():
            return ProvisioningSettings()
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            return ProvisioningSettings()
        if not isinstance(data, dict):
            return ProvisioningSettings()
        return ProvisioningSettings.from_dict(data)

    def save(self, settings: ProvisioningSettings) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(settings.to_dict(), indent=2, sort_keys=True)
        self._path.write_text(payload, encoding="utf-8")
