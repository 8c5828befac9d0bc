"""Encryption of server.hsconf setting values.

Uses Fernet symmetric encryption with a machine-specific key derived from
the Windows username, machine name, and a static salt, unless an explicit
key is supplied. Encrypted values are only recoverable on the same machine.
"""
from __future__ import annotations

import base64
import hashlib
import os
from typing import Protocol

from cryptography.fernet import Fernet, InvalidToken

from platform_setup.logging_config import get_logger
from services.errors import EncryptionError

logger = get_logger("security")

# Static salt - not secret, just adds entropy
_SALT = b"PlatformSetup_v1_salt"


class SettingEncryptor(Protocol):
    def encrypt(self, plain_text: str) -> str:  # pragma: no cover - protocol
        ...

    def decrypt(self, cipher_text: str) -> str:  # pragma: no cover - protocol
        ...


def machine_key() -> bytes:
    """Derive a Fernet key from the current user and computer name.

    Returns:
        URL-safe base64 encoded 32-byte key
    """
    username = os.environ.get("USERNAME", "default_user")
    computername = os.environ.get("COMPUTERNAME", "default_machine")
    key_material = f"{username}:{computername}".encode("utf-8")
    key = hashlib.pbkdf2_hmac("sha256", key_material, _SALT, iterations=100000, dklen=32)
    return base64.urlsafe_b64encode(key)


class FernetSettingEncryptor:
    def __init__(self, key: bytes | None = None) -> None:
        try:
            self._cipher = Fernet(key or machine_key())
        except (TypeError, ValueError) as exc:
            raise EncryptionError(f"Invalid encryption key: {exc}") from exc

    def encrypt(self, plain_text: str) -> str:
        try:
            return self._cipher.encrypt(plain_text.encode("utf-8")).decode("utf-8")
        except (TypeError, ValueError, UnicodeError) as exc:
            logger.error("Failed to encrypt setting value: %s", exc)
            raise EncryptionError(f"Failed to encrypt setting value: {exc}") from exc

    def decrypt(self, cipher_text: str) -> str:
        try:
            return self._cipher.decrypt(cipher_text.encode("utf-8")).decode("utf-8")
        except (InvalidToken, TypeError, ValueError, UnicodeError) as exc:
            logger.error("Failed to decrypt setting value: %s", type(exc).__name__)
            raise EncryptionError("Failed to decrypt setting value") from exc
