"""Admin privilege helpers for Windows."""
from __future__ import annotations

import ctypes
import sys

from platform_setup.logging_config import get_logger

logger = get_logger("privilege")


def is_admin() -> bool:
    try:
        return bool(ctypes.windll.shell32.IsUserAnAdmin())
    except AttributeError:
        return False


def is_elevated() -> bool:
    # Only Windows hosts gate operations on elevation
    if not sys.platform.startswith("win"):
        return True
    return is_admin()


def ensure_admin() -> bool:
    if is_elevated():
        return True
    logger.error("Administrator privileges are required, run this command from an elevated prompt")
    return False
