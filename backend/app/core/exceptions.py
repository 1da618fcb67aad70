"""
Quiz Platform - Domain Errors
Error taxonomy shared by services; rendered into the response envelope by main.py
"""
from fastapi import status


class AppError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    default_code: str = "ERROR"

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code


class NotFoundError(AppError):
    """Referenced entity does not exist."""
    status_code = status.HTTP_404_NOT_FOUND
    default_code = "NOT_FOUND"


class ForbiddenError(AppError):
    """Authenticated, but not entitled to this action."""
    status_code = status.HTTP_403_FORBIDDEN
    default_code = "FORBIDDEN"


class ConflictError(AppError):
    """The entity's current state disallows the request."""
    status_code = status.HTTP_409_CONFLICT
    default_code = "CONFLICT"


class InvalidInputError(AppError):
    """Malformed input: missing field, out-of-range index, bad shape."""
    status_code = 422
    default_code = "VALIDATION_ERROR"


class UpstreamError(AppError):
    """External AI service failed or is not configured."""
    status_code = status.HTTP_502_BAD_GATEWAY
    default_code = "UPSTREAM_ERROR"
