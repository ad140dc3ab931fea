from __future__ import annotations

from flask import Blueprint, request, jsonify, g
from sqlalchemy import func

from models import storage
from models.subscription import Subscription
from models.schemas.user import ChannelProfileSchema, UserOutSchema, UserUpdateSchema
from models.schemas.video import VideoOutSchema
from services.errors import ConflictError, NotFoundError, RequestValidationError
from utils.decorators import get_media_uploader, get_user_store, jwt_required

bp = Blueprint("users", __name__)

user_out_schema = UserOutSchema()
user_update_schema = UserUpdateSchema()
channel_profile_schema = ChannelProfileSchema()
video_list_out_schema = VideoOutSchema(many=True)


def _count(column, value) -> int:
    session = storage.get_session()
    return session.query(func.count(Subscription.id)).filter(column == value).scalar() or 0


@bp.get("/users/me")
@jwt_required()
def current_user():
    """
    Get current user info
    ---
    tags:
      - Users
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
    """
    return jsonify({"data": user_out_schema.dump(g.current_user)}), 200


@bp.patch("/users/me")
@jwt_required()
def update_account():
    """
    Update fullname and/or email
    ---
    tags:
      - Users
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
             fullname: { type: string }
             email: { type: string }
    responses:
      200: { description: OK }
      400: { description: Validation error }
      409: { description: Email already in use }
    """
    data = user_update_schema.load(request.get_json(silent=True) or {})
    user = g.current_user
    store = get_user_store()

    email = data.get("email")
    if email and email != user.email:
        other = store.find_by_identifier(email=email)
        if other is not None and other.id != user.id:
            raise ConflictError("Email already in use.")
        user.email = email
    if "fullname" in data:
        user.fullname = data["fullname"]

    store.save(user)
    return jsonify({"data": user_out_schema.dump(user), "message": "Account details updated."}), 200


def _replace_media(attribute: str, form_field: str, label: str):
    file_storage = request.files.get(form_field)
    if file_storage is None or not file_storage.filename:
        raise RequestValidationError(f"{label} file is missing")

    url = get_media_uploader().upload_file(file_storage)
    if not url:
        raise RequestValidationError(f"Error while uploading {label.lower()}")

    user = g.current_user
    setattr(user, attribute, url)
    get_user_store().save(user, validate=False)
    return jsonify({"data": user_out_schema.dump(user), "message": f"{label} updated."}), 200


@bp.patch("/users/me/avatar")
@jwt_required()
def update_avatar():
    """
    Replace the avatar
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - multipart/form-data
    parameters:
      - { in: formData, name: avatar, type: file, required: true }
    responses:
      200: { description: OK }
      400: { description: Missing file or upload failed }
    """
    return _replace_media("avatar", "avatar", "Avatar")


@bp.patch("/users/me/cover-image")
@jwt_required()
def update_cover_image():
    """
    Replace the cover image
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - multipart/form-data
    parameters:
      - { in: formData, name: coverImage, type: file, required: true }
    responses:
      200: { description: OK }
      400: { description: Missing file or upload failed }
    """
    return _replace_media("cover_image", "coverImage", "Cover image")


@bp.get("/users/channels/<username>")
@jwt_required(optional=True)
def channel_profile(username: str):
    """
    Channel profile with subscriber counts
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - in: path
        name: username
        type: string
        required: true
    responses:
      200: { description: OK }
      404: { description: Channel does not exist }
    """
    username = (username or "").strip().lower()
    if not username:
        raise RequestValidationError("username is missing")

    channel = get_user_store().find_by_identifier(username=username)
    if channel is None:
        raise NotFoundError("Channel does not exist.")

    viewer = g.current_user
    is_subscribed = False
    if viewer is not None:
        session = storage.get_session()
        is_subscribed = session.query(Subscription.id).filter(
            Subscription.channel_id == channel.id,
            Subscription.subscriber_id == viewer.id,
        ).first() is not None

    profile = {
        "id": channel.id,
        "username": channel.username,
        "email": channel.email,
        "fullname": channel.fullname,
        "avatar": channel.avatar,
        "cover_image": channel.cover_image,
        "subscribers_count": _count(Subscription.channel_id, channel.id),
        "channels_subscribed_to_count": _count(Subscription.subscriber_id, channel.id),
        "is_subscribed": is_subscribed,
    }
    return jsonify({"data": channel_profile_schema.dump(profile)}), 200


@bp.get("/users/me/history")
@jwt_required()
def watch_history():
    """
    Watch history of the current user, oldest first
    ---
    tags:
      - Users
    security:
      - Bearer: []
    responses:
      200: { description: OK }
      401: { description: Unauthorized }
    """
    return jsonify({"data": video_list_out_schema.dump(g.current_user.watch_history)}), 200
