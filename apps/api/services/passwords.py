"""
Password hashing using scrypt from the cryptography package.
"""

import base64
import os

from cryptography.exceptions import InvalidKey
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt


_SCHEME = "scrypt"
_SALT_BYTES = 16
_N, _R, _P = 2**14, 8, 1


def _kdf(salt: bytes) -> Scrypt:
    return Scrypt(salt=salt, length=32, n=_N, r=_R, p=_P)


def hash_password(password: str) -> str:
    """
    Hash a password for storage.

    Returns:
        "scrypt$<salt>$<digest>" with urlsafe base64 parts
    """
    salt = os.urandom(_SALT_BYTES)
    digest = _kdf(salt).derive(password.encode())
    return "$".join(
        [
            _SCHEME,
            base64.urlsafe_b64encode(salt).decode(),
            base64.urlsafe_b64encode(digest).decode(),
        ]
    )


def verify_password(password: str, stored_hash: str) -> bool:
    """Check a password against a stored hash; malformed hashes never match."""
    try:
        scheme, salt_b64, digest_b64 = (stored_hash or "").split("$", 2)
        if scheme != _SCHEME:
            return False
        salt = base64.urlsafe_b64decode(salt_b64.encode())
        digest = base64.urlsafe_b64decode(digest_b64.encode())
    except ValueError:
        return False
    try:
        _kdf(salt).verify(password.encode(), digest)
    except InvalidKey:
        return False
    return True


def unusable_password_hash() -> str:
    """A hash no password verifies against, for accounts created without one."""
    return f"!{base64.urlsafe_b64encode(os.urandom(24)).decode()}"
