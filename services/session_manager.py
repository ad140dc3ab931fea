"""
Session lifecycle: login, refresh-token rotation, logout and password change.

One user has at most one live refresh token: it is written on login,
replaced on every refresh and cleared on logout. A refresh token is accepted
only when it verifies AND equals the value stored on the user record.
"""
from __future__ import annotations

import hmac
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from models.schemas.user import UserOutSchema
from services.errors import (
    ApiError,
    InvalidTokenError,
    NotFoundError,
    RequestValidationError,
    TokenExpiredOrRevokedError,
    UnauthorizedError,
)

logger = logging.getLogger(__name__)

user_out_schema = UserOutSchema()


def sanitize_user(user) -> Dict[str, Any]:
    return user_out_schema.dump(user)


@dataclass
class SessionTokens:
    access_token: str
    refresh_token: str
    user: Optional[Dict[str, Any]] = field(default=None)


class SessionManager:
    def __init__(self, store, passwords, tokens):
        self.store = store
        self.passwords = passwords
        self.tokens = tokens

    def _issue(self, user) -> SessionTokens:
        access_token = self.tokens.issue_access(user)
        refresh_token = self.tokens.issue_refresh(user)
        # overwriting the stored token invalidates every earlier session
        user.refresh_token = refresh_token
        self.store.save(user, validate=False)
        return SessionTokens(access_token=access_token, refresh_token=refresh_token)

    def login(self, password: str | None, username: str | None = None, email: str | None = None) -> SessionTokens:
        if not username and not email:
            raise RequestValidationError("username or email is required")
        if not password:
            raise RequestValidationError("password is required")

        user = self.store.find_by_identifier(username=username, email=email)
        if user is None:
            raise NotFoundError("User does not exist.")
        if not self.passwords.verify(password, user.password_hash):
            logger.info("Rejected login for user %s: bad password", user.id)
            raise UnauthorizedError("Invalid user credentials.")

        session = self._issue(user)
        session.user = sanitize_user(user)
        logger.info("User %s logged in", user.id)
        return session

    def refresh(self, cookie_token: str | None = None, body_token: str | None = None) -> SessionTokens:
        incoming = cookie_token or body_token
        if not incoming:
            raise UnauthorizedError("Unauthorized request")

        try:
            claims = self.tokens.verify_refresh(incoming)
        except ApiError as exc:
            raise InvalidTokenError(exc.message or "Invalid refresh token")

        user = self.store.find_by_id(claims.get("sub"))
        if user is None:
            raise UnauthorizedError("Invalid refresh token")

        stored = user.refresh_token or ""
        if not hmac.compare_digest(stored.encode(), incoming.encode()):
            logger.info("Rejected stale refresh token for user %s", user.id)
            raise TokenExpiredOrRevokedError("Refresh token is expired or used")

        session = self._issue(user)
        logger.info("Rotated refresh token for user %s", user.id)
        return session

    def logout(self, user_id: str) -> None:
        self.store.clear_refresh_token(user_id)
        logger.info("User %s logged out", user_id)

    def authenticate(self, access_token: str | None):
        """Resolve the user behind an access token."""
        if not access_token:
            raise UnauthorizedError("Unauthorized request")
        try:
            claims = self.tokens.verify_access(access_token)
        except ApiError as exc:
            raise InvalidTokenError(exc.message or "Invalid access token")
        user = self.store.find_by_id(claims.get("sub"))
        if user is None:
            raise InvalidTokenError("Invalid access token")
        return user

    def change_password(self, user_id: str, old_password: str, new_password: str, confirm_password: str) -> None:
        """
        Re-hash and store a new password. Outstanding access tokens stay
        valid until they expire.
        """
        if new_password != confirm_password:
            raise RequestValidationError("New password and confirmation do not match.")
        if not new_password:
            raise RequestValidationError("New password is required.")

        user = self.store.find_by_id(user_id)
        if user is None:
            raise NotFoundError("User does not exist.")
        if not self.passwords.verify(old_password, user.password_hash):
            raise UnauthorizedError("Invalid old password.")

        user.password_hash = self.passwords.hash(new_password)
        self.store.save(user, validate=False)
        logger.info("Password changed for user %s", user.id)
