"""Password hashing utilities.

PBKDF2-HMAC-SHA512 with a random per-user salt. The salt and the derived
hash are both stored hex-encoded on the user row, and the hex salt string
itself is what gets fed to the KDF, so existing rows keep verifying.

Hashing is deliberately slow (10k iterations); callers on the event loop
should run these through asyncio.to_thread.
"""

import hashlib
import secrets
from dataclasses import dataclass
from typing import Optional

SALT_BYTES = 16
HASH_BYTES = 64
ITERATIONS = 10_000
DIGEST = "sha512"


@dataclass(frozen=True)
class Credential:
    """Hex-encoded password hash and the salt it was derived with."""

    hash: str
    salt: str


def _derive(password: str, salt: str) -> str:
    return hashlib.pbkdf2_hmac(
        DIGEST,
        password.encode("utf-8"),
        salt.encode("utf-8"),
        ITERATIONS,
        dklen=HASH_BYTES,
    ).hex()


def hash_password(password: str) -> Credential:
    """Derive a credential for a new (or changed) password.

    A fresh salt is generated on every call, so hashing the same password
    twice gives two different hashes.
    """
    salt = secrets.token_hex(SALT_BYTES)
    return Credential(hash=_derive(password, salt), salt=salt)


def verify_password(
    password: str,
    stored_hash: Optional[str],
    stored_salt: Optional[str],
) -> bool:
    """Verify a password against a stored hash and salt.

    Malformed stored values (missing, wrong type, non-ASCII) return False.
    """
    if not isinstance(password, str):
        return False
    if not isinstance(stored_hash, str) or not isinstance(stored_salt, str):
        return False
    try:
        candidate = _derive(password, stored_salt)
    except UnicodeEncodeError:
        # lone surrogates can arrive through JSON escapes
        return False
    try:
        return secrets.compare_digest(candidate, stored_hash)
    except TypeError:
        # compare_digest refuses non-ASCII str
        return False
