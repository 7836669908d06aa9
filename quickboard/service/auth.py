"""Password hashing and session tokens."""

from __future__ import annotations

import hashlib
import hmac
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Final

import jwt

PBKDF2_ITERATIONS: Final[int] = 200_000
TOKEN_ALGORITHM: Final[str] = "HS256"


class InvalidCredentialError(Exception):
    """Raised when a session token cannot be trusted."""


def hash_password(password: str, salt: bytes | None = None) -> str:
    """Return ``salt$digest`` (hex) for storage."""
    salt = salt or secrets.token_bytes(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, PBKDF2_ITERATIONS)
    return f"{salt.hex()}${digest.hex()}"


def verify_password(password: str, stored: str) -> bool:
    try:
        salt_hex, digest_hex = stored.split("$", 1)
        salt = bytes.fromhex(salt_hex)
    except ValueError:
        return False
    candidate = hash_password(password, salt).split("$", 1)[1]
    return hmac.compare_digest(candidate, digest_hex)


@dataclass(frozen=True)
class TokenClaims:
    user_id: str
    username: str


class TokenIssuer:
    """Signs and checks HS256 session tokens."""

    def __init__(self, secret: str, ttl: timedelta = timedelta(hours=24)):
        self.secret = secret
        self.ttl = ttl

    def issue(self, user_id: str, username: str) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": user_id,
            "username": username,
            "iat": now,
            "exp": now + self.ttl,
        }
        return jwt.encode(payload, self.secret, algorithm=TOKEN_ALGORITHM)

    def verify(self, token: str) -> TokenClaims:
        try:
            payload = jwt.decode(token, self.secret, algorithms=[TOKEN_ALGORITHM])
        except jwt.ExpiredSignatureError as exc:
            raise InvalidCredentialError("Token has expired") from exc
        except jwt.InvalidTokenError as exc:
            raise InvalidCredentialError(f"Token validation failed: {exc}") from exc
        try:
            return TokenClaims(user_id=payload["sub"], username=payload["username"])
        except KeyError as exc:
            raise InvalidCredentialError(f"Token is missing {exc}") from exc
