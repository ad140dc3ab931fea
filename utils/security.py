"""
security helpers:
- Argon2 password hashing via argon2-cffi
- JWT creation/verification via PyJWT, with separate secrets for access and
  refresh tokens
- JTI generation for token identifiers
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Mapping

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

from services.errors import InvalidTokenError

ACCESS = "access"
REFRESH = "refresh"


class PasswordVerifier:
    """Salted one-way password hashing (argon2id)."""

    def __init__(self, hasher: PasswordHasher | None = None):
        self._ph = hasher or PasswordHasher()

    def hash(self, password: str) -> str:
        """Hash a plaintext password using Argon2
        """
        return self._ph.hash(password)

    def verify(self, password: str, password_hash: str | None) -> bool:
        """ Verify a plaintext password using argon2
        """
        if not password or not password_hash:
            return False
        try:
            return self._ph.verify(password_hash, password)
        except (VerificationError, InvalidHashError):
            return False


def generate_jti() -> str:
    """Generate a unique JTI (JWT ID).
    """
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class TokenSettings:
    access_secret: str
    refresh_secret: str
    access_expires: timedelta
    refresh_expires: timedelta
    algorithm: str = "HS256"
    issuer: str = "video-hub-api"

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "TokenSettings":
        return cls(
            access_secret=config["ACCESS_TOKEN_SECRET"],
            refresh_secret=config["REFRESH_TOKEN_SECRET"],
            access_expires=config["ACCESS_TOKEN_EXPIRES"],
            refresh_expires=config["REFRESH_TOKEN_EXPIRES"],
            algorithm=config.get("JWT_ALGORITHM", "HS256"),
            issuer=config.get("JWT_ISSUER", "video-hub-api"),
        )


class TokenIssuer:
    """Creates and verifies signed access/refresh tokens."""

    def __init__(self, settings: TokenSettings):
        self.settings = settings

    def _encode(self, claims: Dict[str, Any], token_type: str, secret: str, lifetime: timedelta) -> str:
        now = _now()
        payload = {
            **claims,
            "iss": self.settings.issuer,
            "iat": int(now.timestamp()),
            "exp": int((now + lifetime).timestamp()),
            "type": token_type,
            "jti": generate_jti(),
        }
        return jwt.encode(payload, secret, algorithm=self.settings.algorithm)

    def issue_access(self, user) -> str:
        claims = {
            "sub": str(user.id),
            "username": user.username,
            "email": user.email,
            "fullname": user.fullname,
        }
        return self._encode(claims, ACCESS, self.settings.access_secret, self.settings.access_expires)

    def issue_refresh(self, user) -> str:
        return self._encode(
            {"sub": str(user.id)}, REFRESH, self.settings.refresh_secret, self.settings.refresh_expires
        )

    def verify(self, token: str, secret: str, expected_type: str) -> Dict[str, Any]:
        """
        Decode and validate a JWT. Raises InvalidTokenError on a bad signature,
        expiry, malformed input or a token of the wrong type.
        """
        try:
            decoded = jwt.decode(
                token,
                secret,
                algorithms=[self.settings.algorithm],
                issuer=self.settings.issuer,
                options={"require": ["exp", "sub", "type"]},
            )
        except jwt.ExpiredSignatureError:
            raise InvalidTokenError("Token expired")
        except jwt.InvalidTokenError as exc:
            raise InvalidTokenError(f"Invalid token: {exc}")

        if decoded.get("type") != expected_type:
            raise InvalidTokenError("Wrong token type")
        return decoded

    def verify_access(self, token: str) -> Dict[str, Any]:
        return self.verify(token, self.settings.access_secret, ACCESS)

    def verify_refresh(self, token: str) -> Dict[str, Any]:
        return self.verify(token, self.settings.refresh_secret, REFRESH)
