"""Immutable settings describing the Platform Server installation layout."""
from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Tuple


class PlatformMajorVersion(str, Enum):
    V10 = "10.0"
    V11 = "11.0"


@dataclass(frozen=True)
class ConfigToolProfile:
    major: PlatformMajorVersion
    supports_log_database: bool
    supports_cache_invalidation_service: bool


@dataclass(frozen=True)
class ConfigToolFlags:
    setup_install: str
    rebuild_session: str
    cache_invalidation_service: str


@dataclass(frozen=True)
class RegistryLocation:
    path: str
    install_dir_value: str
    version_value: str


@dataclass(frozen=True)
class InstallerLayout:
    file_pattern: str
    silent_flag: str
    target_dir_flag: str
    server_config_file: str
    config_tool_file: str

    def installer_name(self, version: str) -> str:
        return self.file_pattern.format(version=version)


@dataclass(frozen=True)
class ServiceCenterEndpoint:
    version_path: str
    default_scheme: str


@dataclass(frozen=True)
class ImmutableConfig:
    profiles: Dict[PlatformMajorVersion, ConfigToolProfile]
    flags: ConfigToolFlags
    registry: RegistryLocation
    installer: InstallerLayout
    service_center: ServiceCenterEndpoint
    config_root_element: str


CONFIG_TOOL_PROFILES: Dict[PlatformMajorVersion, ConfigToolProfile] = {
    PlatformMajorVersion.V10: ConfigToolProfile(
        major=PlatformMajorVersion.V10,
        supports_log_database=False,
        supports_cache_invalidation_service=False,
    ),
    PlatformMajorVersion.V11: ConfigToolProfile(
        major=PlatformMajorVersion.V11,
        supports_log_database=True,
        supports_cache_invalidation_service=True,
    ),
}

CONFIG_TOOL_FLAGS = ConfigToolFlags(
    setup_install="/setupinstall",
    rebuild_session="/rebuildsession",
    cache_invalidation_service="/createupgradecacheinvalidationservice",
)

SERVER_REGISTRY = RegistryLocation(
    path=r"HKLM:\SOFTWARE\OutSystems\Installer\Server",
    install_dir_value="",
    version_value="Server",
)

INSTALLER_LAYOUT = InstallerLayout(
    file_pattern="PlatformServer-{version}.exe",
    silent_flag="/S",
    target_dir_flag="/D=",
    server_config_file="server.hsconf",
    config_tool_file="ConfigurationTool.com",
)

SERVICE_CENTER = ServiceCenterEndpoint(
    version_path="/ServiceCenter/PlatformInfo.aspx?Type=Version",
    default_scheme="http",
)

# Setting names allowed in server.hsconf sections and settings.
IDENTIFIER_PATTERN = r"^[a-zA-Z]+$"

SUPPORTED_MAJORS: Tuple[str, ...] = tuple(member.value for member in PlatformMajorVersion)


def default_install_dir() -> Path:
    program_files = os.environ.get("ProgramFiles", r"C:\Program Files")
    return Path(program_files) / "OutSystems" / "Platform Server"


IMMUTABLE_CONFIG = ImmutableConfig(
    profiles=CONFIG_TOOL_PROFILES,
    flags=CONFIG_TOOL_FLAGS,
    registry=SERVER_REGISTRY,
    installer=INSTALLER_LAYOUT,
    service_center=SERVICE_CENTER,
    config_root_element="EnvironmentConfiguration",
)
