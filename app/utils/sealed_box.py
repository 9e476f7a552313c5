"""Anonymous sealed-box encryption for GitHub Actions secrets.

GitHub only accepts secret values encrypted with libsodium's
``crypto_box_seal`` under the repository's public key:

  - a fresh X25519 key pair is generated for every call
  - the shared key comes from the ephemeral secret key and the recipient key
  - the nonce is BLAKE2b-24(ephemeral_pk ‖ recipient_pk)
  - the message is boxed with XSalsa20-Poly1305

The output is ``ephemeral_pk ‖ ciphertext`` in base64, so the recipient can
rebuild the shared key without any side channel. The sender is anonymous.
"""

from __future__ import annotations

import base64
import binascii
import functools
from types import ModuleType

from app.errors import CryptoUnavailable, InvalidKey

PUBLIC_KEY_LENGTH = 32


@functools.lru_cache(maxsize=1)
def _load_primitive() -> ModuleType:
    """Import the libsodium bindings on first use."""
    try:
        from nacl import public
    except ImportError as exc:
        raise CryptoUnavailable("Encryption helper unavailable: PyNaCl is not installed.") from exc
    return public


def decode_public_key(public_key_b64: str) -> bytes:
    try:
        raw = base64.b64decode(public_key_b64, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidKey("Public key is not valid base64.") from exc
    if len(raw) != PUBLIC_KEY_LENGTH:
        raise InvalidKey(
            f"Public key must be {PUBLIC_KEY_LENGTH} bytes, got {len(raw)}."
        )
    return raw


def seal(recipient_public_key_b64: str, plaintext: str) -> str:
    """Encrypt ``plaintext`` so only the holder of the matching secret key can read it.

    Two calls with identical inputs return different ciphertexts.
    """
    raw_key = decode_public_key(recipient_public_key_b64)
    public = _load_primitive()
    try:
        box = public.SealedBox(public.PublicKey(raw_key))
        sealed = box.encrypt(plaintext.encode("utf-8"))
    except (RuntimeError, OSError) as exc:
        raise CryptoUnavailable(f"Encryption helper failed: {exc}") from exc
    return base64.b64encode(bytes(sealed)).decode("ascii")
