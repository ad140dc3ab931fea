from marshmallow import Schema, fields

from models.schemas.user import OwnerSchema


class VideoOutSchema(Schema):
    id = fields.String()
    video_file = fields.String(data_key="videoFile")
    thumbnail = fields.String()
    title = fields.String()
    description = fields.String()
    duration = fields.Float()
    views = fields.Integer()
    is_published = fields.Boolean(data_key="isPublished")
    owner = fields.Nested(OwnerSchema)
    created_at = fields.DateTime(data_key="createdAt")
