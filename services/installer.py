"""Platform Server install, upgrade and configuration orchestration."""
from __future__ import annotations

import http.client
import time
import urllib.error
import urllib.request
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Protocol

from platform_setup.constants import IMMUTABLE_CONFIG, InstallerLayout, default_install_dir
from platform_setup.logging_config import get_logger
from platform_setup.paths import config_tool_path, get_downloads_directory, server_config_path
from platform_setup.user_settings import ProvisioningSettings
from services.config_tool import ConfigApplyCommandBuilder, Credential
from services.decision import Decision, DecisionAction, decide
from services.errors import ArtifactError, PlatformSetupError
from services.privilege import is_elevated
from services.process import SubprocessToolRunner, ToolRunner
from services.security import SettingEncryptor
from services.server_config import ConfigDocumentEditor
from services.state_probe import InstallState, InstalledStateProbe, ServiceCenterClient
from services.versioning import Version, parse_version

logger = get_logger("installer")


@dataclass
class OperationResult:
    operation: str
    success: bool
    message: str
    version: str | None = None
    output: str = ""
    exit_code: int | None = None


class ArtifactSource(Protocol):
    def acquire(self, version: Version) -> Path:  # pragma: no cover - protocol
        ...


class InstallerArtifactSource:
    """Finds a cached Platform Server installer or downloads it."""

    def __init__(
        self,
        downloads_dir: Path,
        *,
        base_url: str = "",
        installer_path: Path | None = None,
        timeout: float = 60.0,
        layout: InstallerLayout = IMMUTABLE_CONFIG.installer,
        status_callback: Callable[[str], None] | None = None,
    ) -> None:
        self._downloads_dir = Path(downloads_dir)
        self._base_url = base_url.strip().rstrip("/")
        self._installer_path = Path(installer_path) if installer_path else None
        self._timeout = timeout
        self._layout = layout
        self._status_callback = status_callback

    def cached_path(self, version: Version) -> Path:
        return self._downloads_dir / self._layout.installer_name(str(version))

    def acquire(self, version: Version) -> Path:
        if self._installer_path:
            if self._installer_path.exists() and self._installer_path.is_file():
                return self._installer_path
            raise ArtifactError(f"Installer not found: {self._installer_path}")
        cached = self.cached_path(version)
        if cached.exists() and cached.stat().st_size > 0:
            logger.info("Using cached installer %s", cached)
            return cached
        if not self._base_url:
            raise ArtifactError(f"{cached.name} not found in {self._downloads_dir} and no installer URL configured")
        url = f"{self._base_url}/{cached.name}"
        partial = cached.with_name(cached.name + ".part")
        logger.info("Downloading %s", url)
        try:
            _download_file(url, partial, timeout=self._timeout, status_callback=self._status_callback, label=cached.name)
            partial.replace(cached)
        except (urllib.error.URLError, http.client.HTTPException, OSError, ValueError) as exc:
            try:
                partial.unlink()
            except OSError:
                pass
            raise ArtifactError(f"Download of {url} failed: {exc}") from exc
        return cached


class PlatformServerService:
    def __init__(
        self,
        settings: ProvisioningSettings | None = None,
        *,
        probe: InstalledStateProbe | None = None,
        service_center: ServiceCenterClient | None = None,
        artifacts: ArtifactSource | None = None,
        runner: ToolRunner | None = None,
        command_builder: ConfigApplyCommandBuilder | None = None,
        encryptor: SettingEncryptor | None = None,
        privilege_check: Callable[[], bool] | None = None,
    ) -> None:
        self._settings = settings or ProvisioningSettings()
        self._probe = probe or InstalledStateProbe()
        self._service_center = service_center or ServiceCenterClient(
            scheme=self._settings.service_center_scheme,
            timeout=self._settings.http_timeout_seconds,
        )
        downloads_dir = Path(self._settings.downloads_dir) if self._settings.downloads_dir else get_downloads_directory()
        self._artifacts = artifacts or InstallerArtifactSource(
            downloads_dir,
            base_url=self._settings.installer_base_url,
            timeout=self._settings.http_timeout_seconds,
        )
        self._runner = runner or SubprocessToolRunner()
        self._builder = command_builder or ConfigApplyCommandBuilder()
        self._encryptor = encryptor
        self._privilege_check = privilege_check or is_elevated

    def local_state(self) -> InstallState:
        return self._probe.get_local_state()

    def get_installed_version(self) -> OperationResult:
        state = self.local_state()
        if not state.is_installed:
            return OperationResult("version", True, "Platform Server is not installed")
        return OperationResult(
            "version",
            True,
            f"Platform Server {state.installed_version} installed in {state.install_dir}",
            version=str(state.installed_version),
        )

    def get_platform_version(self, host: str | None = None) -> OperationResult:
        target = host or self._settings.service_center_host
        try:
            version = self._service_center.get_remote_version(target)
        except PlatformSetupError as exc:
            logger.warning("Platform version query failed: %s", exc)
            return OperationResult("platform-version", False, str(exc))
        return OperationResult("platform-version", True, f"Service Center at {target} reports {version}", version=str(version))

    def plan_install(self, desired: str | Version, install_dir: Path | None = None, state: InstallState | None = None) -> Decision:
        desired_version = parse_version(desired)
        current = state or self.local_state()
        decision = decide(current, desired_version, install_dir)
        if decision.action is DecisionAction.INSTALL and decision.target_dir is None:
            default_dir = Path(self._settings.default_install_dir) if self._settings.default_install_dir else default_install_dir()
            decision = Decision(decision.action, default_dir, decision.message)
        if decision.action is DecisionAction.UPGRADE and install_dir and install_dir != decision.target_dir:
            logger.warning("Ignoring requested directory %s, upgrades stay in %s", install_dir, decision.target_dir)
        return decision

    def install_or_upgrade(self, desired: str | Version, install_dir: Path | None = None) -> OperationResult:
        if not self._privilege_check():
            return OperationResult("install", False, "Administrator privileges are required to install Platform Server")
        try:
            desired_version = parse_version(desired)
            decision = self.plan_install(desired_version, install_dir)
        except PlatformSetupError as exc:
            logger.error("Install aborted: %s", exc)
            return OperationResult("install", False, str(exc))
        logger.info(decision.message)

        if decision.action is DecisionAction.FAIL:
            return OperationResult("install", False, decision.message)
        if decision.action is DecisionAction.SKIP:
            return OperationResult("install", True, decision.message, version=str(desired_version))
        if decision.target_dir is None:
            message = "Installed version found but installation directory unknown"
            logger.error(message)
            return OperationResult(decision.action.value, False, message)
        return self._run_installer(decision, desired_version)

    def set_server_config(
        self,
        section: str,
        setting: str,
        value: str,
        *,
        encrypted: bool = False,
        state: InstallState | None = None,
    ) -> OperationResult:
        current = state or self.local_state()
        if current.install_dir is None:
            return OperationResult("set-config", False, "Platform Server installation directory not found")
        editor = ConfigDocumentEditor(server_config_path(current.install_dir), encryptor=self._encryptor)
        try:
            editor.apply_setting(section, setting, value, encrypted)
        except PlatformSetupError as exc:
            logger.error("Failed to set %s/%s: %s", section, setting, exc)
            return OperationResult("set-config", False, str(exc))
        return OperationResult("set-config", True, f"{section}/{setting} updated in {editor.path}")

    def get_server_config(self, section: str, setting: str, *, state: InstallState | None = None) -> OperationResult:
        current = state or self.local_state()
        if current.install_dir is None:
            return OperationResult("get-config", False, "Platform Server installation directory not found")
        editor = ConfigDocumentEditor(server_config_path(current.install_dir), encryptor=self._encryptor)
        try:
            value = editor.get_setting(section, setting)
        except PlatformSetupError as exc:
            logger.error("Failed to read %s/%s: %s", section, setting, exc)
            return OperationResult("get-config", False, str(exc))
        if value is None:
            return OperationResult("get-config", False, f"{section}/{setting} is not set")
        return OperationResult("get-config", True, value, output=value)

    def apply_configuration(
        self,
        *,
        platform_cred: Credential | None = None,
        log_cred: Credential | None = None,
        session_cred: Credential | None = None,
        configure_cache_service: bool = False,
        state: InstallState | None = None,
    ) -> OperationResult:
        if not self._privilege_check():
            return OperationResult("apply-config", False, "Administrator privileges are required to run the configuration tool")
        current = state or self.local_state()
        if not current.is_installed or current.install_dir is None:
            return OperationResult("apply-config", False, "Platform Server is not installed")
        try:
            major = current.installed_version.platform_major()
            invocation = self._builder.build(major, platform_cred, log_cred, session_cred, configure_cache_service)
            tool = config_tool_path(current.install_dir)
            logger.info("Running %s %s", tool.name, invocation)
            result = self._runner.run(
                tool,
                invocation.tokens,
                working_dir=current.install_dir,
                timeout=self._settings.tool_timeout_seconds,
            )
        except PlatformSetupError as exc:
            logger.error("Configuration tool failed to run: %s", exc)
            return OperationResult("apply-config", False, str(exc))
        if not result.succeeded:
            logger.error("Configuration tool exited with code %s", result.exit_code)
            return OperationResult(
                "apply-config",
                False,
                f"Configuration tool failed (exit code {result.exit_code})",
                version=str(current.installed_version),
                output=result.output,
                exit_code=result.exit_code,
            )
        return OperationResult(
            "apply-config",
            True,
            "Configuration applied",
            version=str(current.installed_version),
            output=result.output,
            exit_code=result.exit_code,
        )

    def _run_installer(self, decision: Decision, version: Version) -> OperationResult:
        layout = IMMUTABLE_CONFIG.installer
        try:
            installer = self._artifacts.acquire(version)
            args = [layout.silent_flag, f"{layout.target_dir_flag}{decision.target_dir}"]
            logger.info("Running %s %s", installer.name, " ".join(args))
            result = self._runner.run(installer, args, timeout=self._settings.tool_timeout_seconds)
        except PlatformSetupError as exc:
            logger.error("%s failed: %s", decision.action.value, exc)
            return OperationResult(decision.action.value, False, str(exc))
        if not result.succeeded:
            logger.error("Installer exited with code %s", result.exit_code)
            return OperationResult(
                decision.action.value,
                False,
                f"Installer failed (exit code {result.exit_code})",
                output=result.output,
                exit_code=result.exit_code,
            )
        verb = "installed" if decision.action is DecisionAction.INSTALL else "upgraded"
        return OperationResult(
            decision.action.value,
            True,
            f"Platform Server {version} {verb} in {decision.target_dir}",
            version=str(version),
            output=result.output,
            exit_code=result.exit_code,
        )


def _download_file(
    url: str,
    destination: Path,
    *,
    timeout: float = 60.0,
    status_callback: Callable[[str], None] | None = None,
    label: str | None = None,
) -> None:
    request = urllib.request.Request(url, headers={"User-Agent": "platform-setup"})
    destination.parent.mkdir(parents=True, exist_ok=True)
    with urllib.request.urlopen(request, timeout=timeout) as response, destination.open("wb") as handle:
        last_time = time.monotonic()
        last_bytes = 0
        downloaded = 0
        while True:
            chunk = response.read(256 * 1024)
            if not chunk:
                break
            handle.write(chunk)
            downloaded += len(chunk)
            now = time.monotonic()
            if status_callback and now - last_time >= 1.0:
                speed = (downloaded - last_bytes) / max(now - last_time, 0.001)
                status_callback(_format_speed_label(label or "Downloading", speed))
                last_time = now
                last_bytes = downloaded


def _format_speed(value: float) -> str:
    units = ["B/s", "KB/s", "MB/s", "GB/s"]
    speed = float(value)
    for unit in units:
        if speed < 1024 or unit == units[-1]:
            return f"{speed:.1f} {unit}"
        speed /= 1024
    return f"{speed:.1f} GB/s"


def _format_speed_label(label: str, speed_bytes_per_sec: float) -> str:
    return f"{label} - {_format_speed(speed_bytes_per_sec)}"
