"""
Password hashing and verification.

Uses bcrypt for password hashing with automatic salting and a work
factor taken from ``config.bcrypt_rounds`` (env var: ``BCRYPT_ROUNDS``).
"""

from __future__ import annotations

import bcrypt

from config.settings import config

# bcrypt only looks at the first 72 bytes; newer releases reject longer input.
_MAX_BYTES = 72


def _encode(password: str) -> bytes:
    return password.encode()[:_MAX_BYTES]


def hash_password(password: str) -> str:
    """Hash a password with bcrypt (auto-salted)."""
    return bcrypt.hashpw(_encode(password), bcrypt.gensalt(rounds=config.bcrypt_rounds)).decode()


def verify_password(password: str, password_hash: str) -> bool:
    """Constant-time comparison against a bcrypt hash."""
    try:
        return bcrypt.checkpw(_encode(password), password_hash.encode())
    except (ValueError, TypeError):
        return False
