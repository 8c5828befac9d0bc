from __future__ import annotations

import pytest

from platform_setup.constants import PlatformMajorVersion
from services.config_tool import ConfigApplyCommandBuilder, Credential
from services.errors import UnsupportedVersionError


def test_v11_blank_credentials_end_with_cache_flag() -> None:
    invocation = ConfigApplyCommandBuilder().build(PlatformMajorVersion.V11, None, None, None, True)
    assert invocation.tokens == (
        "/setupinstall",
        "",
        "",
        "",
        "",
        "/rebuildsession",
        "",
        "",
        "/createupgradecacheinvalidationservice",
    )


def test_v10_omits_log_slot_and_cache_flag() -> None:
    cred = Credential.from_plain("sa", "p@ss")
    invocation = ConfigApplyCommandBuilder().build(PlatformMajorVersion.V10, cred, None, None, False)
    assert invocation.tokens == ("/setupinstall", "sa", "p@ss", "/rebuildsession", "", "")


def test_v10_ignores_cache_service_request() -> None:
    invocation = ConfigApplyCommandBuilder().build(PlatformMajorVersion.V10, configure_cache_service=True)
    assert "/createupgradecacheinvalidationservice" not in invocation.tokens


def test_v11_full_credentials_keep_positional_order() -> None:
    invocation = ConfigApplyCommandBuilder().build(
        PlatformMajorVersion.V11,
        Credential.from_plain("plat", "pp"),
        Credential.from_plain("log", "lp"),
        Credential.from_plain("sess", "sp"),
        False,
    )
    assert invocation.tokens == ("/setupinstall", "plat", "pp", "log", "lp", "/rebuildsession", "sess", "sp")


def test_passwords_are_masked_when_printed() -> None:
    cred = Credential.from_plain("plat", "hunter2")
    invocation = ConfigApplyCommandBuilder().build(PlatformMajorVersion.V11, cred, session_cred=cred)
    assert "hunter2" not in str(invocation)
    assert "hunter2" not in repr(cred)
    assert invocation.masked()[1] == "plat"


def test_builder_accepts_major_string() -> None:
    invocation = ConfigApplyCommandBuilder().build("11.0")  # type: ignore[arg-type]
    assert len(invocation.tokens) == 8


def test_unknown_major_raises_unsupported_version() -> None:
    with pytest.raises(UnsupportedVersionError):
        ConfigApplyCommandBuilder().build("9.0")  # type: ignore[arg-type]
