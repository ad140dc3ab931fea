from marshmallow import EXCLUDE, Schema, fields, pre_load, validates_schema, ValidationError

from models.schemas.common import is_lowercase, norm_lower, norm_strip, normalize_keys, not_blank


class UserRegisterSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    fullname = fields.String(required=True, validate=not_blank)
    email = fields.Email(required=True)
    username = fields.String(required=True, validate=not_blank)
    password = fields.String(required=True, load_only=True, validate=not_blank)

    @pre_load
    def normalize(self, data, **kwargs):
        data = normalize_keys(data, ("email", "username"), norm_lower)
        return normalize_keys(data, ("fullname",), norm_strip)


class UserLoginSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    username = fields.String(load_default=None, allow_none=True)
    email = fields.String(load_default=None, allow_none=True)
    password = fields.String(load_default=None, allow_none=True, load_only=True)

    @pre_load
    def normalize(self, data, **kwargs):
        return normalize_keys(data, ("email", "username"), norm_lower)

    @validates_schema
    def require_identifier(self, data, **kwargs):
        if not data.get("username") and not data.get("email"):
            raise ValidationError("username or email is required", "username")
        if not data.get("password"):
            raise ValidationError("password is required", "password")


class ChangePasswordSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    old_password = fields.String(required=True, data_key="oldPassword", validate=not_blank)
    new_password = fields.String(required=True, data_key="newPassword", validate=not_blank)
    confirm_password = fields.String(required=True, data_key="confirmPassword")


class UserUpdateSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    fullname = fields.String(validate=not_blank)
    email = fields.Email()

    @pre_load
    def normalize(self, data, **kwargs):
        data = normalize_keys(data, ("email",), norm_lower)
        return normalize_keys(data, ("fullname",), norm_strip)

    @validates_schema
    def require_any(self, data, **kwargs):
        if not data:
            raise ValidationError("fullname or email is required")


class UserRecordSchema(Schema):
    """Full-record validation run by UserStore.save(validate=True)."""

    username = fields.String(required=True, validate=[not_blank, is_lowercase])
    email = fields.Email(required=True)
    fullname = fields.String(required=True, validate=not_blank)
    password_hash = fields.String(required=True, validate=not_blank)
    avatar = fields.String(required=True, validate=not_blank)
    cover_image = fields.String(allow_none=True)


class UserOutSchema(Schema):
    """Sanitized user: never carries the password hash or refresh token."""

    id = fields.String()
    username = fields.String()
    email = fields.String()
    fullname = fields.String()
    avatar = fields.String()
    cover_image = fields.String(data_key="coverImage")
    created_at = fields.DateTime(data_key="createdAt")
    updated_at = fields.DateTime(data_key="updatedAt")


class OwnerSchema(Schema):
    id = fields.String()
    username = fields.String()
    fullname = fields.String()
    avatar = fields.String()


class ChannelProfileSchema(Schema):
    id = fields.String()
    username = fields.String()
    email = fields.String()
    fullname = fields.String()
    avatar = fields.String()
    cover_image = fields.String(data_key="coverImage")
    subscribers_count = fields.Integer(data_key="subscribersCount")
    channels_subscribed_to_count = fields.Integer(data_key="channelsSubscribedToCount")
    is_subscribed = fields.Boolean(data_key="isSubscribed")
