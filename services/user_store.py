"""
Credential store: the user-record repository the session manager talks to.
"""
from __future__ import annotations

import logging

from sqlalchemy import or_

from models.user import User
from models.schemas.user import UserRecordSchema
from services.errors import RequestValidationError

logger = logging.getLogger(__name__)

record_schema = UserRecordSchema()


class UserStore:
    def __init__(self, storage):
        self.storage = storage

    def _query(self):
        return self.storage.get_session().query(User)

    def find_by_identifier(self, username: str | None = None, email: str | None = None) -> User | None:
        """Match on username OR email; only the identifiers given take part."""
        clauses = []
        if username:
            clauses.append(User.username == username.strip().lower())
        if email:
            clauses.append(User.email == email.strip().lower())
        if not clauses:
            return None
        return self._query().filter(or_(*clauses)).first()

    def exists(self, username: str | None = None, email: str | None = None) -> bool:
        return self.find_by_identifier(username=username, email=email) is not None

    def find_by_id(self, user_id: str | None) -> User | None:
        if not user_id:
            return None
        return self.storage.get(User, str(user_id))

    def validate(self, user: User) -> None:
        errors = record_schema.validate({
            "username": user.username,
            "email": user.email,
            "fullname": user.fullname,
            "password_hash": user.password_hash,
            "avatar": user.avatar,
            "cover_image": user.cover_image,
        })
        if errors:
            raise RequestValidationError("Invalid user record", details=errors)

    def add(self, user: User) -> User:
        self.validate(user)
        self.storage.new(user)
        self.storage.save()
        return user

    def save(self, user: User, validate: bool = True) -> User:
        """
        Persist changes to a user. validate=False is for single-field
        rotations (refresh token, password hash) that must not re-run the
        full record checks.
        """
        if validate:
            self.validate(user)
        user.save()
        return user

    def clear_refresh_token(self, user_id: str) -> bool:
        """Atomic single-field update; returns False when no such user."""
        updated = self._query().filter(User.id == str(user_id)).update(
            {User.refresh_token: None}, synchronize_session="fetch"
        )
        self.storage.save()
        return bool(updated)
