"""Fernet encryption for provider tokens stored in the ``tokens`` table."""

import base64
import hashlib
from functools import lru_cache

from cryptography.fernet import Fernet, InvalidToken

from app.config import settings


@lru_cache(maxsize=4)
def _fernet(secret_key: str) -> Fernet:
    # Anything that is not already a Fernet key is stretched into one, so a
    # plain passphrase in GITUTILS_SECRET_KEY still works.
    raw = secret_key.encode()
    try:
        return Fernet(raw)
    except ValueError:
        return Fernet(base64.urlsafe_b64encode(hashlib.sha256(raw).digest()))


def encrypt(plaintext: str) -> str:
    return _fernet(settings.secret_key).encrypt(plaintext.encode()).decode()


def decrypt(ciphertext: str) -> str | None:
    """Return the plaintext, or None when the value was written under another key."""
    try:
        return _fernet(settings.secret_key).decrypt(ciphertext.encode()).decode()
    except InvalidToken:
        return None
