"""
Domain errors raised by the service layer.

Each error carries the HTTP status it maps to; api.errors turns them into the
JSON error envelope. Nothing below the blueprints knows about Flask.
"""
from __future__ import annotations


class ApiError(Exception):
    status = 500
    code = "INTERNAL_ERROR"
    default_message = "Something went wrong"

    def __init__(self, message: str | None = None, details: dict | None = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class RequestValidationError(ApiError):
    status = 400
    code = "VALIDATION_ERROR"
    default_message = "Invalid request"


class UnauthorizedError(ApiError):
    status = 401
    code = "UNAUTHORIZED"
    default_message = "Unauthorized request"


class InvalidTokenError(UnauthorizedError):
    default_message = "Invalid token"


class TokenExpiredOrRevokedError(UnauthorizedError):
    default_message = "Refresh token is expired or used"


class NotFoundError(ApiError):
    status = 404
    code = "NOT_FOUND"
    default_message = "Resource not found"


class ConflictError(ApiError):
    status = 409
    code = "CONFLICT"
    default_message = "Conflict"


class InternalError(ApiError):
    pass
