"""Security utilities: opaque tokens and password hashing."""

import hashlib
import secrets
from typing import Protocol

import bcrypt

from rfpdesk.core.config import settings


# =============================================================================
# Opaque tokens (sessions, verification, password reset)
# =============================================================================

TOKEN_BYTES = 32


def generate_token() -> str:
    """Generate cryptographically random token (32 bytes, URL-safe base64)."""
    return secrets.token_urlsafe(TOKEN_BYTES)


def hash_token(token: str) -> str:
    """SHA256 digest used for storage and lookup; raw tokens are never stored."""
    return hashlib.sha256(token.encode()).hexdigest()


# =============================================================================
# Password hashing
# =============================================================================


class PasswordHasher(Protocol):
    def hash(self, password: str) -> str: ...

    def verify(self, password: str, password_hash: str) -> bool: ...


def _prehash(password: str) -> bytes:
    # bcrypt only looks at the first 72 bytes; a hex digest is always 64.
    return hashlib.sha256(password.encode("utf-8")).hexdigest().encode("ascii")


class BcryptPasswordHasher:
    """bcrypt with a SHA256 pre-hash."""

    def __init__(self, rounds: int | None = None):
        self.rounds = rounds or settings.BCRYPT_ROUNDS

    def hash(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(_prehash(password), salt).decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        if not password_hash:
            return False
        try:
            return bcrypt.checkpw(_prehash(password), password_hash.encode("utf-8"))
        except ValueError:
            # Malformed stored hash
            return False


default_hasher = BcryptPasswordHasher()
