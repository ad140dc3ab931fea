from __future__ import annotations
from functools import wraps
from flask import request, g, current_app

from services.errors import UnauthorizedError

ACCESS_COOKIE = "accessToken"


def get_session_manager():
    return current_app.extensions["session_manager"]


def get_user_store():
    return current_app.extensions["user_store"]


def get_password_verifier():
    return current_app.extensions["password_verifier"]


def get_media_uploader():
    return current_app.extensions["media_uploader"]


def access_token_from_request() -> str | None:
    """Cookie first, then an `Authorization: Bearer` header."""
    token = request.cookies.get(ACCESS_COOKIE)
    if token:
        return token
    auth = request.headers.get("Authorization", "")
    if auth.startswith("Bearer "):
        return auth.split(" ", 1)[1].strip() or None
    return None


def jwt_required(optional: bool = False):
    """
    Verify the access token and attach the user to g.current_user.
    With optional=True a request without a usable token (missing, stale or
    invalid) passes through as anonymous with g.current_user set to None.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            token = access_token_from_request()
            if not optional:
                g.current_user = get_session_manager().authenticate(token)
                return fn(*args, **kwargs)

            g.current_user = None
            if token is not None:
                try:
                    g.current_user = get_session_manager().authenticate(token)
                except UnauthorizedError:
                    g.current_user = None
            return fn(*args, **kwargs)

        return wrapper

    return decorator
