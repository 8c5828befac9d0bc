"""Local and remote Platform Server version probing."""
from __future__ import annotations

import urllib.error
import urllib.request
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from platform_setup.constants import IMMUTABLE_CONFIG, RegistryLocation, ServiceCenterEndpoint
from platform_setup.logging_config import get_logger
from services.errors import RemoteQueryError, VersionFormatError
from services.versioning import Version, parse_version

try:  # Windows-only dependency, optional for test doubles
    import winreg  # type: ignore
except ImportError:  # pragma: no cover - not available on Linux runners
    winreg = None  # type: ignore

logger = get_logger("state_probe")


@dataclass(frozen=True)
class InstallState:
    install_dir: Path | None = None
    installed_version: Version | None = None

    @property
    def is_installed(self) -> bool:
        return self.installed_version is not None


class RegistryAccessor(Protocol):
    def get_value(self, path: str, value_name: str) -> str | int | None:  # pragma: no cover - protocol
        ...


class WindowsRegistryAccessor:
    """Read-only registry helper backed by winreg."""

    def __init__(self) -> None:
        if winreg is None:
            raise RuntimeError("winreg not available on this platform")

    def get_value(self, path: str, value_name: str) -> str | int | None:
        hive, subkey = self._split_path(path)
        views = [getattr(winreg, "KEY_WOW64_64KEY", 0), getattr(winreg, "KEY_WOW64_32KEY", 0)]
        for view in views:
            try:
                with winreg.OpenKey(hive, subkey, 0, winreg.KEY_READ | view) as key:  # type: ignore[arg-type]
                    value, _ = winreg.QueryValueEx(key, value_name)
                    return value
            except FileNotFoundError:
                continue
        return None

    def _split_path(self, path: str) -> tuple[object, str]:
        cleaned = path.replace("/", "\\")
        marker = ":\\"
        if marker not in cleaned:
            raise ValueError(f"Invalid registry path: {path}")
        hive_name, subkey = cleaned.split(marker, 1)
        subkey = subkey.lstrip("\\")
        hive_map = {
            "HKLM": winreg.HKEY_LOCAL_MACHINE,
            "HKCU": winreg.HKEY_CURRENT_USER,
        }
        try:
            hive = hive_map[hive_name.upper()]
        except KeyError as exc:  # pragma: no cover - invalid input handled upstream
            raise ValueError(f"Unsupported hive: {hive_name}") from exc
        return hive, subkey


class NullRegistryAccessor:
    """Registry stand-in for hosts without winreg; reports nothing installed."""

    def get_value(self, path: str, value_name: str) -> str | int | None:
        return None


def default_registry() -> RegistryAccessor:
    if winreg is None:
        return NullRegistryAccessor()
    return WindowsRegistryAccessor()


class InstalledStateProbe:
    def __init__(
        self,
        *,
        registry: RegistryAccessor | None = None,
        location: RegistryLocation = IMMUTABLE_CONFIG.registry,
    ) -> None:
        self._registry = registry or default_registry()
        self._location = location

    def get_install_dir(self) -> Path | None:
        value = self._registry.get_value(self._location.path, self._location.install_dir_value)
        if value is None or not str(value).strip():
            return None
        return Path(str(value).strip())

    def get_installed_version(self) -> Version | None:
        value = self._registry.get_value(self._location.path, self._location.version_value)
        if value is None or not str(value).strip():
            return None
        try:
            return parse_version(str(value))
        except VersionFormatError:
            logger.warning("Ignoring unparseable installed version %r", value)
            return None

    def get_local_state(self) -> InstallState:
        state = InstallState(
            install_dir=self.get_install_dir(),
            installed_version=self.get_installed_version(),
        )
        logger.debug("Local state: dir=%s version=%s", state.install_dir, state.installed_version)
        return state


class ServiceCenterClient:
    """Queries Service Center for the running platform version."""

    def __init__(
        self,
        *,
        scheme: str | None = None,
        timeout: float = 20.0,
        endpoint: ServiceCenterEndpoint = IMMUTABLE_CONFIG.service_center,
    ) -> None:
        self._endpoint = endpoint
        self._scheme = scheme or endpoint.default_scheme
        self._timeout = timeout

    def version_url(self, host: str) -> str:
        return f"{self._scheme}://{host.strip().rstrip('/')}{self._endpoint.version_path}"

    def get_remote_version(self, host: str) -> Version:
        if not host or not host.strip():
            raise RemoteQueryError("Service Center host not configured")
        url = self.version_url(host)
        request = urllib.request.Request(url, headers={"User-Agent": "platform-setup"})
        try:
            with urllib.request.urlopen(request, timeout=self._timeout) as response:
                status = getattr(response, "status", 200)
                body = response.read().decode("utf-8", errors="ignore")
        except (urllib.error.URLError, OSError, ValueError) as exc:
            raise RemoteQueryError(f"Unable to reach Service Center at {host}: {exc}") from exc
        if status != 200:
            raise RemoteQueryError(f"Service Center at {host} returned HTTP {status}")
        try:
            return parse_version(body)
        except VersionFormatError as exc:
            raise RemoteQueryError(f"Service Center at {host} returned an invalid version: {body.strip()[:80]!r}") from exc
