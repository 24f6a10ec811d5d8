"""
security helpers:
- Argon2 password hashing via argon2-cffi
- Opaque refresh token generation and SHA-256 lookup hashing
- JTI generation for token identifiers
"""
from __future__ import annotations

import hashlib
import secrets
import uuid
from typing import Tuple

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

ph = PasswordHasher()

# 64 bytes -> 128 hex chars, 512 bits of entropy
REFRESH_TOKEN_BYTES = 64

# Verified against when the identifier matches no user, so an unknown
# identifier costs the same Argon2 work as a wrong password.
_DUMMY_HASH = ph.hash(secrets.token_hex(16))


def hash_password(password: str) -> str:
    """Hash a plaintext password using Argon2
    """
    return ph.hash(password)


def verify_password(password_hash: str | None, password: str) -> bool:
    """ Verify a plaintext password against an Argon2 hash.
    Mismatch or an unreadable hash is False, never an exception.
    """
    known = bool(password_hash)
    try:
        matched = ph.verify(password_hash if known else _DUMMY_HASH, password)
    except (VerificationError, InvalidHashError):
        return False
    return matched and known


def generate_jti() -> str:
    """Generate a unique JTI (JWT ID).
    """
    return str(uuid.uuid4())


def generate_refresh_token() -> str:
    """Random opaque refresh token (hex)."""
    return secrets.token_hex(REFRESH_TOKEN_BYTES)


def hash_token(token: str) -> str:
    """
    SHA-256 hex digest of a refresh token, used as its lookup key.
    The input already carries full entropy, so a fast hash is sufficient.
    """
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def new_refresh_token() -> Tuple[str, str]:
    """Return (plaintext, hash) for a fresh refresh token."""
    token = generate_refresh_token()
    return token, hash_token(token)
