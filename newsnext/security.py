"""
NewsNext Backend — Password Hashing & Access Tokens
====================================================

Passwords: PBKDF2-SHA256 stored as ``pbkdf2:sha256:<iterations>$<salt>$<hex>``
so the iteration count can be raised later without invalidating old hashes.

Tokens: HS256 JWTs signed with ``settings.jwt_secret``. The payload carries
the user id (``sub``), email and role; the role is re-read from the
database on every request so demotions take effect immediately.
"""

import hashlib
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt

from newsnext.config import settings

HASH_PREFIX = "pbkdf2:sha256:"
TOKEN_KIND = "newsnext_access"


def hash_password(password: str, iterations: Optional[int] = None) -> str:
    """Hash a password using PBKDF2-SHA256 with a random salt."""
    iterations = iterations or settings.password_hash_iterations
    salt = secrets.token_hex(16)
    dk = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), iterations)
    return f"{HASH_PREFIX}{iterations}${salt}${dk.hex()}"


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against a stored PBKDF2 hash; malformed hashes never match."""
    if not password_hash or not password_hash.startswith(HASH_PREFIX):
        return False
    parts = password_hash.split("$")
    if len(parts) != 3:
        return False
    header, salt, stored_hash = parts
    try:
        iterations = int(header.split(":")[2])
    except (IndexError, ValueError):
        return False
    dk = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), iterations)
    return secrets.compare_digest(dk.hex(), stored_hash)


def create_access_token(user_id: str, email: str, role: str) -> str:
    now = datetime.now(timezone.utc)
    expiry = now + timedelta(minutes=settings.jwt_expires_minutes)
    payload = {
        "kind": TOKEN_KIND,
        "sub": str(user_id),
        "email": email,
        "role": role,
        "iat": int(now.timestamp()),
        "exp": int(expiry.timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Decode and verify an access token.

    Raises jwt.ExpiredSignatureError / jwt.InvalidTokenError; the global
    handler turns any PyJWTError into 401 "Invalid or expired token".
    """
    payload = jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=[settings.jwt_algorithm],
        options={"require": ["exp", "sub"]},
    )
    if payload.get("kind") != TOKEN_KIND:
        raise jwt.InvalidTokenError("Unexpected token kind")
    return payload
