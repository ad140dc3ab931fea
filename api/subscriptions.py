from __future__ import annotations

from flask import Blueprint, jsonify, g

from models import storage
from models.subscription import Subscription
from services.errors import NotFoundError, RequestValidationError
from utils.decorators import get_user_store, jwt_required

bp = Blueprint("subscriptions", __name__)


def _find(subscriber_id: str, channel_id: str):
    session = storage.get_session()
    return session.query(Subscription).filter(
        Subscription.subscriber_id == subscriber_id,
        Subscription.channel_id == channel_id,
    ).first()


@bp.post("/subscriptions/<channel_id>")
@jwt_required()
def subscribe(channel_id: str):
    """
    Subscribe the current user to a channel
    ---
    tags:
      - Subscriptions
    security:
      - Bearer: []
    parameters:
      - in: path
        name: channel_id
        type: string
        required: true
    responses:
      201: { description: Subscribed }
      200: { description: Already subscribed }
      400: { description: Cannot subscribe to yourself }
      404: { description: Channel does not exist }
    """
    user = g.current_user
    if channel_id == user.id:
        raise RequestValidationError("Cannot subscribe to your own channel.")
    if get_user_store().find_by_id(channel_id) is None:
        raise NotFoundError("Channel does not exist.")

    if _find(user.id, channel_id) is not None:
        return jsonify({"data": {"channelId": channel_id, "subscribed": True}}), 200

    storage.new(Subscription(subscriber_id=user.id, channel_id=channel_id))
    storage.save()
    return jsonify({"data": {"channelId": channel_id, "subscribed": True}}), 201


@bp.delete("/subscriptions/<channel_id>")
@jwt_required()
def unsubscribe(channel_id: str):
    """
    Unsubscribe the current user from a channel
    ---
    tags:
      - Subscriptions
    security:
      - Bearer: []
    parameters:
      - in: path
        name: channel_id
        type: string
        required: true
    responses:
      200: { description: Not subscribed anymore }
    """
    existing = _find(g.current_user.id, channel_id)
    if existing is not None:
        existing.delete()
        storage.save()
    return jsonify({"data": {"channelId": channel_id, "subscribed": False}}), 200
