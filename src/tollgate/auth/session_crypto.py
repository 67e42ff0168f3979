"""Session envelope encryption.

The envelope handed to clients is ``<iv hex>:<ciphertext hex>``: the JSON
payload encrypted with AES-256-CBC (PKCS7 padding) under a fresh random
IV per call. The key is derived once per process with scrypt from the
session secret and the deployment's key salt, then reused.

Envelopes without a ``:`` are legacy base64-encoded JSON and are decoded
without decryption while ``allow_legacy`` is on.

decrypt() never raises: anything that doesn't decode cleanly is None.
encrypt() never falls back to plaintext: failures raise
SessionEncryptionError.
"""

import base64
import binascii
import json
import os
from functools import lru_cache
from typing import Any, Optional

import structlog
from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

from tollgate.config import settings
from tollgate.errors import SessionEncryptionError

logger = structlog.get_logger()

KEY_BYTES = 32
IV_BYTES = 16
SEPARATOR = ":"


def derive_key(secret: str, salt: str) -> bytes:
    """scrypt(secret, salt) → 32-byte AES key."""
    kdf = Scrypt(salt=salt.encode("utf-8"), length=KEY_BYTES, n=2**14, r=8, p=1)
    return kdf.derive(secret.encode("utf-8"))


class SessionCipher:
    """Encrypts and decrypts session envelopes with a fixed derived key."""

    def __init__(self, secret: str, salt: str, allow_legacy: bool = True):
        self._key = derive_key(secret, salt)
        self.allow_legacy = allow_legacy

    def encrypt(self, payload: Any) -> str:
        """Serialize and encrypt a JSON-serializable payload."""
        try:
            plaintext = json.dumps(payload).encode("utf-8")
            iv = os.urandom(IV_BYTES)
            padder = padding.PKCS7(algorithms.AES.block_size).padder()
            padded = padder.update(plaintext) + padder.finalize()
            encryptor = Cipher(algorithms.AES(self._key), modes.CBC(iv)).encryptor()
            ciphertext = encryptor.update(padded) + encryptor.finalize()
        except (TypeError, ValueError) as e:
            logger.error("session_crypto.encrypt_failed", error_type=type(e).__name__)
            raise SessionEncryptionError("Failed to encrypt session") from e
        return f"{iv.hex()}{SEPARATOR}{ciphertext.hex()}"

    def decrypt(self, encoded: str) -> Optional[Any]:
        """Decrypt an envelope. Returns None on any failure."""
        if not isinstance(encoded, str):
            return None
        if SEPARATOR not in encoded:
            return self._decode_legacy(encoded)

        iv_hex, ciphertext_hex = encoded.split(SEPARATOR, 1)
        try:
            iv = bytes.fromhex(iv_hex)
            ciphertext = bytes.fromhex(ciphertext_hex)
            decryptor = Cipher(algorithms.AES(self._key), modes.CBC(iv)).decryptor()
            padded = decryptor.update(ciphertext) + decryptor.finalize()
            unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
            plaintext = unpadder.update(padded) + unpadder.finalize()
            return json.loads(plaintext.decode("utf-8"))
        except ValueError:
            # Covers bad hex, IV length, block alignment, padding, UTF-8 and JSON.
            return None

    def _decode_legacy(self, encoded: str) -> Optional[Any]:
        if not self.allow_legacy:
            return None
        try:
            raw = base64.b64decode(encoded, validate=True)
            return json.loads(raw.decode("utf-8"))
        except (binascii.Error, ValueError):
            return None


@lru_cache(maxsize=1)
def get_session_cipher() -> SessionCipher:
    """Process-wide cipher. The key derivation runs once."""
    return SessionCipher(
        settings.session_secret,
        settings.session_key_salt,
        allow_legacy=settings.session_allow_legacy,
    )
