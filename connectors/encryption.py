"""
Token encryption — encrypt / decrypt credential blobs at rest.

Uses Fernet (AES-128-CBC + HMAC-SHA256) from the ``cryptography`` library.
The key comes from ``config.token_encryption_key``
(env var: ``TOKEN_ENCRYPTION_KEY``).

Without a key, blobs are stored as plaintext JSON (with a warning). Generate
a key with::

    python -c "from cryptography.fernet import Fernet; print(Fernet.generate_key().decode())"
"""

from __future__ import annotations

import logging
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

from config.settings import config

logger = logging.getLogger(__name__)

_fernet: Optional[Fernet] = None
_initialised = False


def _init_fernet() -> None:
    """Lazy-initialise the Fernet cipher once."""
    global _fernet, _initialised

    _initialised = True
    key = config.token_encryption_key
    if not key:
        logger.warning(
            "TOKEN_ENCRYPTION_KEY not set — Google credentials will be stored as plaintext."
        )
        _fernet = None
        return

    try:
        _fernet = Fernet(key.encode() if isinstance(key, str) else key)
        logger.info("Token encryption enabled (Fernet/AES-128-CBC)")
    except ValueError as exc:
        logger.error("Invalid TOKEN_ENCRYPTION_KEY, storing credentials unencrypted: %s", exc)
        _fernet = None


def _cipher() -> Optional[Fernet]:
    if not _initialised:
        _init_fernet()
    return _fernet


def reset() -> None:
    """Forget the cached cipher so the next call re-reads the config."""
    global _fernet, _initialised
    _fernet = None
    _initialised = False


def encrypt_blob(plaintext: str) -> str:
    """Encrypt a serialized credential bundle for database storage."""
    fernet = _cipher()
    if fernet is None:
        return plaintext
    return fernet.encrypt(plaintext.encode()).decode()


def decrypt_blob(ciphertext: str) -> str:
    """
    Decrypt a blob read from the database.

    Rows written before encryption was enabled are not valid Fernet
    tokens; they are returned unchanged.
    """
    fernet = _cipher()
    if fernet is None:
        return ciphertext
    try:
        return fernet.decrypt(ciphertext.encode()).decode()
    except InvalidToken:
        logger.debug("Credential blob is not Fernet-encrypted; reading as plaintext")
        return ciphertext


def is_encryption_enabled() -> bool:
    """Check whether credential encryption is active."""
    return _cipher() is not None
