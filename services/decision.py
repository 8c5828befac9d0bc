"""Install/upgrade decision between installed and desired Platform Server versions."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from services.state_probe import InstallState
from services.versioning import Comparison, Version, compare_versions


class DecisionAction(str, Enum):
    INSTALL = "install"
    UPGRADE = "upgrade"
    SKIP = "skip"
    FAIL = "fail"


@dataclass(frozen=True)
class Decision:
    action: DecisionAction
    target_dir: Path | None
    message: str

    @property
    def runs_installer(self) -> bool:
        return self.action in {DecisionAction.INSTALL, DecisionAction.UPGRADE}


def decide(current: InstallState, desired: Version, requested_dir: Path | None = None) -> Decision:
    installed = current.installed_version
    if installed is None:
        return Decision(DecisionAction.INSTALL, requested_dir, f"Platform Server not installed, installing {desired}")
    comparison = compare_versions(installed, desired)
    if comparison is Comparison.LESS_THAN:
        # Upgrades always stay in the existing installation directory
        return Decision(
            DecisionAction.UPGRADE,
            current.install_dir,
            f"Upgrading Platform Server from {installed} to {desired}",
        )
    if comparison is Comparison.GREATER_THAN:
        return Decision(
            DecisionAction.FAIL,
            None,
            f"Higher version already installed: {installed} (requested {desired})",
        )
    return Decision(DecisionAction.SKIP, current.install_dir, f"Platform Server {installed} already installed")
