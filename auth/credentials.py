"""
auth/credentials.py -- Password hashing and the credential verifier.

Passwords: bcrypt, used directly (no passlib wrapper). bcrypt only reads the
    first 72 bytes of a password; bcrypt 5 raises ValueError past that and 4.x
    truncates silently. Both paths here reject such passwords instead, and
    LoginRequest enforces the same byte limit at the API edge.

Timing equalization: CredentialVerifier.matches() always runs one bcrypt
    check, against _DUMMY_HASH when the identity is unknown or has no hash,
    so response time does not reveal whether a username exists.

The token core never imports this module; AuthenticationFlow calls it before
asking the issuer for a token.
"""

from __future__ import annotations

import bcrypt

from auth.models import User

MAX_PASSWORD_BYTES = 72


def password_too_long(plain: str) -> bool:
    """Return True if the UTF-8 encoding of plain exceeds bcrypt's input limit."""
    return len(plain.encode("utf-8")) > MAX_PASSWORD_BYTES


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the given plaintext password.

    Raises ValueError for passwords longer than MAX_PASSWORD_BYTES bytes.
    """
    if password_too_long(plain):
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes.")
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    if password_too_long(plain):
        return False
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash.
        return False


# Computed once at import so the first login is not measurably slower.
_DUMMY_HASH: str = hash_password("tokengate_timing_dummy")


class CredentialVerifier:
    """Decides whether plaintext credentials match a stored identity."""

    def matches(self, plaintext_password: str, identity: User | None) -> bool:
        if identity is None or not identity.hashed_password:
            verify_password(plaintext_password, _DUMMY_HASH)
            return False
        return verify_password(plaintext_password, identity.hashed_password)
