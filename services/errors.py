"""Exceptions raised by the setup services."""
from __future__ import annotations


class PlatformSetupError(RuntimeError):
    pass


class VersionFormatError(PlatformSetupError, ValueError):
    pass


class UnsupportedVersionError(PlatformSetupError):
    pass


class RemoteQueryError(PlatformSetupError):
    pass


class DocumentError(PlatformSetupError):
    """Failure while editing server.hsconf."""


class InvalidIdentifierError(DocumentError, ValueError):
    pass


class EncryptionError(DocumentError):
    pass


class PersistenceError(DocumentError):
    pass


class LaunchError(PlatformSetupError):
    pass


class ArtifactError(PlatformSetupError):
    pass
