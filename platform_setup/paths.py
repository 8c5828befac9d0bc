"""Path utilities for locating application and installation directories."""
from __future__ import annotations

import sys
from pathlib import Path

from platform_setup.constants import INSTALLER_LAYOUT


def get_application_directory() -> Path:
    """
    Get the directory where the application is located.

    When running as a compiled .exe (PyInstaller), this returns the directory
    containing the .exe file.

    When running as a Python script, this returns the project root directory.

    Returns:
        Path to the application directory where downloads and logs are stored.
    """
    if getattr(sys, "frozen", False):
        return Path(sys.executable).parent
    return Path(__file__).parent.parent


def get_downloads_directory() -> Path:
    """Get the cache directory for Platform Server installers."""
    return get_application_directory() / "downloads"


def get_log_directory() -> Path:
    return get_application_directory() / "logs"


def server_config_path(install_dir: Path) -> Path:
    return Path(install_dir) / INSTALLER_LAYOUT.server_config_file


def config_tool_path(install_dir: Path) -> Path:
    return Path(install_dir) / INSTALLER_LAYOUT.config_tool_file
