"""
Domain errors raised by the stores and the auth gate.

Each error carries the HTTP status it maps to; the exception handlers in
``review_api.main`` turn them into ``{"message": ...}`` responses.
"""

from typing import Dict, Optional

from fastapi import status


class BookReviewError(Exception):
    """Base class for all errors the API reports to clients."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def headers(self) -> Optional[Dict[str, str]]:
        return None


class FieldValidationError(BookReviewError):
    """A required field is missing or empty."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class ConflictError(BookReviewError):
    """The resource already exists."""

    status_code = status.HTTP_409_CONFLICT
    default_message = "User already exists"


class InvalidCredentialsError(BookReviewError):
    """Unknown username or wrong password."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid credentials"


class MissingTokenError(BookReviewError):
    """No bearer token on a protected route."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Access token required"

    @property
    def headers(self) -> Optional[Dict[str, str]]:
        return {"WWW-Authenticate": "Bearer"}


class InvalidTokenError(BookReviewError):
    """Bearer token failed signature or expiry checks."""

    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Invalid or expired token"


class NotFoundError(BookReviewError):
    """Unknown isbn, empty search result or missing review."""

    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Book not found"
