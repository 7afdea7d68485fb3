"""
Encryption of secrets stored in the database.

API keys and SMTP passwords are encrypted with Fernet when ENC_HASH is
configured. The Fernet key is derived from ENC_HASH with PBKDF2-HMAC-SHA256
so any ENC_HASH length yields a valid key.
"""

import base64
import logging
from functools import lru_cache
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from baby_tracker.config import get_settings

logger = logging.getLogger(__name__)

KEY_SALT = b"baby-tracker-salt"
KEY_ITERATIONS = 100_000

# Every Fernet token starts with the base64 encoding of version byte 0x80
FERNET_PREFIX = "gAAAAA"


class EncryptionError(Exception):
    """Raised when a secret cannot be encrypted or decrypted."""


@lru_cache()
def _get_fernet(enc_hash: str) -> Fernet:
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=KEY_SALT,
        iterations=KEY_ITERATIONS,
    )
    key = kdf.derive(enc_hash.encode("utf-8"))
    return Fernet(base64.urlsafe_b64encode(key))


def is_encrypted(value: Optional[str]) -> bool:
    """Check whether a stored value looks like a Fernet token."""
    return bool(value) and value.startswith(FERNET_PREFIX)


def encrypt(value: str) -> str:
    """
    Encrypt a secret for storage.

    Returns the value unchanged when ENC_HASH is not configured.
    """
    if not value:
        raise EncryptionError("Text to encrypt cannot be empty")

    settings = get_settings()
    if not settings.uses_encryption:
        logger.warning("ENC_HASH is not set; storing secret without encryption")
        return value

    return _get_fernet(settings.enc_hash).encrypt(value.encode("utf-8")).decode("utf-8")


def decrypt(value: str) -> str:
    """
    Decrypt a stored secret.

    Values that are not Fernet tokens are returned as-is, which covers
    secrets saved before ENC_HASH was configured.

    Raises:
        EncryptionError: If the value is a token but cannot be decrypted
    """
    if not is_encrypted(value):
        return value

    settings = get_settings()
    if not settings.uses_encryption:
        raise EncryptionError("ENC_HASH is not set; cannot decrypt stored secret")

    try:
        return _get_fernet(settings.enc_hash).decrypt(value.encode("utf-8")).decode("utf-8")
    except InvalidToken as e:
        raise EncryptionError("Failed to decrypt data") from e
