"""Argument assembly for the Platform Server configuration tool."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Tuple

from platform_setup.constants import (
    CONFIG_TOOL_FLAGS,
    CONFIG_TOOL_PROFILES,
    ConfigToolFlags,
    ConfigToolProfile,
    PlatformMajorVersion,
)
from services.errors import UnsupportedVersionError

_MASK = "**********"


class SecretValue:
    """Holds a password without exposing it through repr, str or logging."""

    __slots__ = ("_value",)

    def __init__(self, value: str) -> None:
        self._value = value

    def reveal(self) -> str:
        return self._value

    def __repr__(self) -> str:
        return f"SecretValue('{_MASK}')"

    def __str__(self) -> str:
        return _MASK

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SecretValue):
            return NotImplemented
        return self._value == other._value

    def __hash__(self) -> int:
        return hash(self._value)


@dataclass(frozen=True)
class Credential:
    username: str
    password: SecretValue

    @classmethod
    def from_plain(cls, username: str, password: str) -> "Credential":
        return cls(username, SecretValue(password))


@dataclass(frozen=True)
class ConfigToolInvocation:
    tokens: Tuple[str, ...]
    # Indexes of tokens holding passwords, masked when logged.
    secret_positions: frozenset[int] = frozenset()

    def masked(self) -> Tuple[str, ...]:
        return tuple(_MASK if index in self.secret_positions and token else token for index, token in enumerate(self.tokens))

    def __str__(self) -> str:
        return " ".join(f'"{token}"' if not token or " " in token else token for token in self.masked())


class ConfigApplyCommandBuilder:
    def __init__(
        self,
        *,
        profiles: Mapping[PlatformMajorVersion, ConfigToolProfile] = CONFIG_TOOL_PROFILES,
        flags: ConfigToolFlags = CONFIG_TOOL_FLAGS,
    ) -> None:
        self._profiles = profiles
        self._flags = flags

    def build(
        self,
        major: PlatformMajorVersion,
        platform_cred: Credential | None = None,
        log_cred: Credential | None = None,
        session_cred: Credential | None = None,
        configure_cache_service: bool = False,
    ) -> ConfigToolInvocation:
        try:
            profile = self._profiles[PlatformMajorVersion(major)]
        except (KeyError, ValueError) as exc:
            raise UnsupportedVersionError(f"Unsupported platform major version {major}") from exc
        tokens: list[str] = []
        secrets: set[int] = set()

        def _add_credential(credential: Credential | None) -> None:
            if credential is None:
                tokens.extend(["", ""])
                return
            tokens.append(credential.username)
            secrets.add(len(tokens))
            tokens.append(credential.password.reveal())

        # Positional contract of the configuration tool, order must not change
        tokens.append(self._flags.setup_install)
        _add_credential(platform_cred)
        if profile.supports_log_database:
            _add_credential(log_cred)
        tokens.append(self._flags.rebuild_session)
        _add_credential(session_cred)
        if configure_cache_service and profile.supports_cache_invalidation_service:
            tokens.append(self._flags.cache_invalidation_service)
        return ConfigToolInvocation(tuple(tokens), frozenset(secrets))
