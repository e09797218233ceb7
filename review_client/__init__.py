"""
HTTP client for the Book Review API.
"""

from .client import BookReviewClient, BookReviewClientError  # noqa: F401
