from __future__ import annotations

import itertools
from pathlib import Path

from services.decision import DecisionAction, decide
from services.state_probe import InstallState
from services.versioning import Comparison, compare_versions, parse_version

EXISTING_DIR = Path(r"C:\Program Files\OutSystems\Platform Server")
REQUESTED_DIR = Path(r"D:\Platform")


def test_not_installed_installs_into_requested_dir() -> None:
    decision = decide(InstallState(), parse_version("10.0.823.0"), REQUESTED_DIR)
    assert decision.action is DecisionAction.INSTALL
    assert decision.target_dir == REQUESTED_DIR
    assert decision.runs_installer


def test_directory_without_version_counts_as_not_installed() -> None:
    state = InstallState(install_dir=EXISTING_DIR, installed_version=None)
    decision = decide(state, parse_version("10.0.823.0"), REQUESTED_DIR)
    assert decision.action is DecisionAction.INSTALL
    assert decision.target_dir == REQUESTED_DIR


def test_older_version_upgrades_in_place() -> None:
    state = InstallState(EXISTING_DIR, parse_version("10.0.500.0"))
    decision = decide(state, parse_version("10.0.823.0"), REQUESTED_DIR)
    assert decision.action is DecisionAction.UPGRADE
    assert decision.target_dir == EXISTING_DIR


def test_newer_version_fails() -> None:
    state = InstallState(EXISTING_DIR, parse_version("10.0.823.0"))
    decision = decide(state, parse_version("10.0.500.0"))
    assert decision.action is DecisionAction.FAIL
    assert not decision.runs_installer
    assert "higher version already installed" in decision.message.lower()


def test_same_version_skips() -> None:
    state = InstallState(EXISTING_DIR, parse_version("11.0.424.0"))
    decision = decide(state, parse_version("11.0.424"))
    assert decision.action is DecisionAction.SKIP
    assert not decision.runs_installer


def test_fail_returned_exactly_when_installed_is_higher() -> None:
    versions = ["10.0.500.0", "10.0.823.0", "11.0.0.0", None]
    for installed, desired in itertools.product(versions, versions[:-1]):
        state = InstallState(EXISTING_DIR, parse_version(installed) if installed else None)
        decision = decide(state, parse_version(desired))
        higher = installed is not None and compare_versions(installed, desired) is Comparison.GREATER_THAN
        assert (decision.action is DecisionAction.FAIL) == higher
        assert decision.action in set(DecisionAction)
