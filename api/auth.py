"""
Authentication blueprint:
- POST /auth/register
- POST /auth/login
- POST /auth/refresh-token
- POST /auth/logout
- POST /auth/change-password

The implementation:
- Uses argon2 for password hashing (via utils.security)
- Issues short-lived access tokens and longer-lived refresh tokens (JWTs with separate secrets)
- Stores the current refresh token on the user so it can be rotated and revoked
- Sets both tokens as HttpOnly, Secure cookies and also returns them in the body
"""
from __future__ import annotations

import logging

from flask import Blueprint, request, jsonify, g, current_app

from models.user import User
from models.schemas.user import UserRegisterSchema, UserLoginSchema, ChangePasswordSchema, UserOutSchema
from services.errors import ConflictError, InternalError, RequestValidationError
from utils.decorators import (
    ACCESS_COOKIE,
    get_media_uploader,
    get_password_verifier,
    get_session_manager,
    get_user_store,
    jwt_required,
)

REFRESH_COOKIE = "refreshToken"
REGISTER_FIELDS = ("fullname", "email", "username", "password")

logger = logging.getLogger(__name__)

bp = Blueprint("auth", __name__)

user_register_schema = UserRegisterSchema()
user_login_schema = UserLoginSchema()
change_password_schema = ChangePasswordSchema()
user_out_schema = UserOutSchema()


def set_session_cookies(response, access_token: str, refresh_token: str):
    options = {"httponly": True, "secure": True, "samesite": "Lax"}
    response.set_cookie(ACCESS_COOKIE, access_token,
                        max_age=int(current_app.config["ACCESS_TOKEN_EXPIRES"].total_seconds()), **options)
    response.set_cookie(REFRESH_COOKIE, refresh_token,
                        max_age=int(current_app.config["REFRESH_TOKEN_EXPIRES"].total_seconds()), **options)
    return response


def clear_session_cookies(response):
    options = {"httponly": True, "secure": True, "samesite": "Lax"}
    response.delete_cookie(ACCESS_COOKIE, **options)
    response.delete_cookie(REFRESH_COOKIE, **options)
    return response


@bp.post("/auth/register")
def register():
    """
    Register a new user with an avatar and an optional cover image.
    ---
    tags:
      - Auth
    consumes:
      - multipart/form-data
    parameters:
      - { in: formData, name: fullname, type: string, required: true }
      - { in: formData, name: email, type: string, required: true }
      - { in: formData, name: username, type: string, required: true }
      - { in: formData, name: password, type: string, required: true }
      - { in: formData, name: avatar, type: file, required: true }
      - { in: formData, name: coverImage, type: file, required: false }
    responses:
      201:
        description: Created
      400:
        description: Missing field or avatar
      409:
        description: Username or email already exists
    """
    payload = request.form.to_dict()
    if any(not str(payload.get(name) or "").strip() for name in REGISTER_FIELDS):
        raise RequestValidationError("All fields are required.")
    data = user_register_schema.load(payload)

    store = get_user_store()
    if store.exists(username=data["username"], email=data["email"]):
        raise ConflictError("Username or email already exists.")

    avatar_file = request.files.get("avatar")
    if avatar_file is None or not avatar_file.filename:
        raise RequestValidationError("Avatar file is required")

    uploader = get_media_uploader()
    avatar_url = uploader.upload_file(avatar_file)
    if not avatar_url:
        raise RequestValidationError("Avatar file is required")
    cover_image_url = uploader.upload_file(request.files.get("coverImage"))

    passwords = get_password_verifier()
    user = User(
        fullname=data["fullname"],
        avatar=avatar_url,
        cover_image=cover_image_url or "",
        email=data["email"],
        password_hash=passwords.hash(data["password"]),
        username=data["username"],
    )
    store.add(user)

    created = store.find_by_id(user.id)
    if created is None:
        raise InternalError("Something went wrong while registering the user.")
    logger.info("Registered user %s", created.id)

    return jsonify(
        {
            "data": user_out_schema.dump(created),
            "message": "User registered successfully."
        }
    ), 201


@bp.post("/auth/login")
def login():
    """
    Login with username or email; returns and sets accessToken and refreshToken
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             username: { type: string }
             email: { type: string }
             password: { type: string }
    responses:
      200:
        description: OK (returns tokens)
      400:
        description: Missing identifier or password
      401:
        description: Invalid credentials
      404:
        description: User does not exist
    """
    data = user_login_schema.load(request.get_json(silent=True) or {})
    session = get_session_manager().login(
        data.get("password"), username=data.get("username"), email=data.get("email")
    )

    response = jsonify(
        {
            "data": {
                "user": session.user,
                "accessToken": session.access_token,
                "refreshToken": session.refresh_token,
            },
            "message": "User logged in successfully."
        }
    )
    return set_session_cookies(response, session.access_token, session.refresh_token), 200


@bp.post("/auth/refresh-token")
def refresh_token():
    """
    Rotate the refresh token and issue a new access token.
    The refreshToken cookie takes precedence over the body field.
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             refreshToken: { type: string }
    responses:
      200:
        description: OK (returns new tokens)
      401:
        description: Missing, invalid, expired or already used refresh token
    """
    cookie_token = request.cookies.get(REFRESH_COOKIE)
    payload = request.get_json(silent=True)
    body_token = payload.get("refreshToken") if isinstance(payload, dict) else None
    session = get_session_manager().refresh(cookie_token=cookie_token, body_token=body_token)

    response = jsonify(
        {
            "data": {
                "accessToken": session.access_token,
                "refreshToken": session.refresh_token,
            },
            "message": "Access token refreshed."
        }
    )
    return set_session_cookies(response, session.access_token, session.refresh_token), 200


@bp.post("/auth/logout")
@jwt_required()
def logout():
    """
    Logout: revokes the stored refresh token and clears the cookies
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: Logged out
      401:
        description: Unauthorized
    """
    get_session_manager().logout(g.current_user.id)
    response = jsonify({"data": {}, "message": "User logged out."})
    return clear_session_cookies(response), 200


@bp.post("/auth/change-password")
@jwt_required()
def change_password():
    """
    Change the current user's password
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             oldPassword: { type: string }
             newPassword: { type: string }
             confirmPassword: { type: string }
    responses:
      200:
        description: Password changed
      400:
        description: Validation error or confirmation mismatch
      401:
        description: Old password is wrong
    """
    data = change_password_schema.load(request.get_json(silent=True) or {})
    get_session_manager().change_password(
        g.current_user.id,
        data["old_password"],
        data["new_password"],
        data["confirm_password"],
    )
    return jsonify({"data": {}, "message": "Password changed successfully."}), 200
