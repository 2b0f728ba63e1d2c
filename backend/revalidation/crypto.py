"""At-rest protection for the revalidation token."""

from __future__ import annotations

import logging
import os
from functools import lru_cache

from cryptography.fernet import Fernet, InvalidToken

logger = logging.getLogger(__name__)

ENCRYPTION_PREFIX = "enc:"
SETTINGS_ENCRYPTION_KEY_ENV = "SETTINGS_ENCRYPTION_KEY"


class EncryptionNotConfigured(RuntimeError):
    pass


@lru_cache(maxsize=1)
def _get_fernet() -> Fernet | None:
    """Fernet built from the environment key, or None when no key is set."""
    key = os.environ.get(SETTINGS_ENCRYPTION_KEY_ENV, "").strip()
    if not key:
        return None
    try:
        return Fernet(key)
    except ValueError as exc:
        raise EncryptionNotConfigured(f"{SETTINGS_ENCRYPTION_KEY_ENV} is not a valid Fernet key.") from exc


def _require_fernet(action: str) -> Fernet:
    fernet = _get_fernet()
    if fernet is None:
        raise EncryptionNotConfigured(f"{SETTINGS_ENCRYPTION_KEY_ENV} is required to {action} secrets.")
    return fernet


def can_encrypt() -> bool:
    try:
        return _get_fernet() is not None
    except EncryptionNotConfigured:
        logger.warning("%s is set but invalid; secrets cannot be encrypted.", SETTINGS_ENCRYPTION_KEY_ENV)
        return False


def encrypt_secret(value: str) -> str:
    """
    Encrypt `value` into an `enc:`-prefixed token.

    Raises:
        EncryptionNotConfigured: If no valid key is set
    """
    if not value:
        return ""
    token = _require_fernet("encrypt").encrypt(value.encode("utf-8"))
    return ENCRYPTION_PREFIX + token.decode("ascii")


def decrypt_secret(value: str) -> str:
    """
    Reverse `encrypt_secret`.

    Values without the prefix were stored before a key was configured and are
    returned as-is.

    Raises:
        EncryptionNotConfigured: If the value is encrypted but no valid key is
            set, or the key does not match
    """
    if not value or not value.startswith(ENCRYPTION_PREFIX):
        return value or ""
    token = value[len(ENCRYPTION_PREFIX) :].encode("ascii")
    try:
        return _require_fernet("decrypt").decrypt(token).decode("utf-8")
    except InvalidToken as exc:
        raise EncryptionNotConfigured(f"Stored secret does not match {SETTINGS_ENCRYPTION_KEY_ENV}.") from exc


def protect_secret(value: str) -> str:
    """Encrypt a secret for storage when a key is configured, else keep plaintext."""
    if not value or value.startswith(ENCRYPTION_PREFIX):
        return value or ""
    if can_encrypt():
        return encrypt_secret(value)
    logger.warning("%s is not set; storing revalidation token in plaintext.", SETTINGS_ENCRYPTION_KEY_ENV)
    return value
