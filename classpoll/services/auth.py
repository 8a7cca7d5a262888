"""
Credential check against the loaded users: email is case-insensitive, secrets compared as stored.
Stored secrets are plaintext unless HASH_NEW_CREDENTIALS is on; bcrypt hashes are recognized either way.
Uses bcrypt directly (no passlib).
"""
import hmac
from typing import Iterable

import bcrypt

from classpoll.config import settings
from classpoll.models import User

# Bcrypt limit is 72 bytes; use 71 so we never exceed
BCRYPT_MAX_BYTES = 71
_BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")


class AuthenticationError(Exception):
    """No user matches the email/password pair."""


def _truncate_to_bytes(s: str, max_bytes: int = BCRYPT_MAX_BYTES) -> bytes:
    """Truncate string to at most max_bytes UTF-8; return bytes for bcrypt."""
    if not s:
        return b""
    encoded = s.encode("utf-8")
    if len(encoded) <= max_bytes:
        return encoded
    return encoded[:max_bytes]


def hash_password(password: str) -> str:
    """Hash password for storage. Raises ValueError if password is None."""
    if password is None:
        raise ValueError("password is required")
    hashed = bcrypt.hashpw(_truncate_to_bytes(password), bcrypt.gensalt())
    return hashed.decode("utf-8")


def is_hashed(stored: str | None) -> bool:
    return bool(stored) and stored.startswith(_BCRYPT_PREFIXES)


def verify_password(plain: str, stored: str | None) -> bool:
    if not stored:
        return False
    if is_hashed(stored):
        try:
            return bcrypt.checkpw(_truncate_to_bytes(plain), stored.encode("utf-8"))
        except ValueError:
            return False
    return hmac.compare_digest((plain or "").encode("utf-8"), stored.encode("utf-8"))


def secret_for_storage(plain: str) -> str:
    """What gets written for a new or reset secret."""
    if settings.hash_new_credentials and not is_hashed(plain):
        return hash_password(plain)
    return plain


def authenticate(users: Iterable[User], email: str, password: str) -> User:
    """Return the user matching email + password, or raise AuthenticationError."""
    for user in users:
        if user.has_email(email) and verify_password(password, user.password):
            return user
    raise AuthenticationError("Invalid email or password")
