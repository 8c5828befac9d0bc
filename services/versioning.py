"""Dotted numeric versions (Major.Minor.Build.Revision) and their ordering."""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from platform_setup.constants import PlatformMajorVersion
from services.errors import UnsupportedVersionError, VersionFormatError

_VERSION_PATTERN = re.compile(r"^[0-9]+(?:\.[0-9]+){0,3}$")
_FIELD_COUNT = 4


class Comparison(Enum):
    LESS_THAN = -1
    EQUAL = 0
    GREATER_THAN = 1


@dataclass(frozen=True, order=True)
class Version:
    major: int
    minor: int = 0
    build: int = 0
    revision: int = 0

    @property
    def fields(self) -> tuple[int, int, int, int]:
        return (self.major, self.minor, self.build, self.revision)

    @property
    def major_text(self) -> str:
        return f"{self.major}.{self.minor}"

    def platform_major(self) -> PlatformMajorVersion:
        try:
            return PlatformMajorVersion(self.major_text)
        except ValueError as exc:
            raise UnsupportedVersionError(f"Unsupported platform major version {self.major_text}") from exc

    def __str__(self) -> str:
        return ".".join(str(part) for part in self.fields)


def parse_version(text: str | Version) -> Version:
    if isinstance(text, Version):
        return text
    if text is None:
        raise VersionFormatError("Version string is empty")
    cleaned = str(text).strip()
    if not _VERSION_PATTERN.match(cleaned):
        raise VersionFormatError(f"Invalid version string: {text!r}")
    parts = [int(part) for part in cleaned.split(".")]
    parts.extend([0] * (_FIELD_COUNT - len(parts)))
    return Version(*parts)


def try_parse_version(text: str | None) -> Version | None:
    if not text or not str(text).strip():
        return None
    try:
        return parse_version(text)
    except VersionFormatError:
        return None


def compare_versions(a: str | Version, b: str | Version) -> Comparison:
    left = parse_version(a).fields
    right = parse_version(b).fields
    if left < right:
        return Comparison.LESS_THAN
    if left > right:
        return Comparison.GREATER_THAN
    return Comparison.EQUAL
