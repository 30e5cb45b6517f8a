"""Typed errors raised by the service layer.

Every error maps to one HTTP status and renders the same envelope:
``{"message": str, "data": list | None, "code": int}``.
"""

from typing import Any

from fastapi import status


class FeedError(Exception):
    """Base class for all errors surfaced to API callers."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "An unexpected error occurred."

    def __init__(self, message: str | None = None, data: list[dict[str, Any]] | None = None):
        self.message = message or self.default_message
        self.data = data
        super().__init__(self.message)

    def to_response(self) -> dict[str, Any]:
        """Convert to the error envelope returned by the API."""
        return {"message": self.message, "data": self.data, "code": self.status_code}


class ValidationError(FeedError):
    """One or more input fields are invalid. ``data`` lists every violation."""

    status_code = 422
    default_message = "Validation failed, entered data is incorrect."

    def __init__(self, violations: list[dict[str, Any]], message: str | None = None):
        super().__init__(message, data=violations)

    @property
    def fields(self) -> list[str]:
        return [v["field"] for v in self.data or []]


class UnauthenticatedError(FeedError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authenticated."


class ForbiddenError(FeedError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Not authorized."


class NotFoundError(FeedError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found."


class ConflictError(FeedError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Resource already exists."


class UnexpectedError(FeedError):
    """Persistence or collaborator failure. The message never carries internals."""


def violation(field: str, message: str) -> dict[str, str]:
    """Build a single field-level violation entry."""
    return {"field": field, "message": message}
