"""
API models and schemas for the FastAPI application.
"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class Book(BaseModel):
    """A catalogue entry with its per-user reviews."""
    isbn: str = Field(..., description="Unique book identifier")
    title: str = Field(..., description="Book title")
    author: str = Field(..., description="Book author")
    reviews: Dict[str, str] = Field(default_factory=dict, description="Review text keyed by username")


class User(BaseModel):
    """A registered user. Passwords are stored as given."""
    username: str = Field(..., description="Unique username")
    password: str = Field(..., description="Plaintext password")


class Credentials(BaseModel):
    """Request body for registration and login.

    Both fields are optional here so that a missing field is reported by
    the user store as a 400 rather than by FastAPI as a 422.
    """
    username: Optional[str] = Field(None, description="Username")
    password: Optional[str] = Field(None, description="Password")


class ReviewRequest(BaseModel):
    """Request body for adding or updating a review."""
    review: Optional[str] = Field(None, description="Review text")


class ReviewEntry(BaseModel):
    """A single review as returned after an update."""
    username: str = Field(..., description="Review author")
    review: str = Field(..., description="Review text")


class BookListResponse(BaseModel):
    """Response model for a list of books."""
    books: List[Book] = Field(..., description="List of books")


class BookResponse(BaseModel):
    """Response model for a single book."""
    book: Book = Field(..., description="The requested book")


class ReviewsResponse(BaseModel):
    """Response model for the reviews of a book."""
    reviews: Dict[str, str] = Field(..., description="Review text keyed by username")


class MessageResponse(BaseModel):
    """Response model carrying only a status message."""
    message: str = Field(..., description="Human-readable status message")


class LoginResponse(BaseModel):
    """Response model for a successful login."""
    message: str = Field(..., description="Human-readable status message")
    token: str = Field(..., description="Bearer token")
    username: str = Field(..., description="Authenticated username")


class ReviewResponse(BaseModel):
    """Response model for a successful review update."""
    message: str = Field(..., description="Human-readable status message")
    review: ReviewEntry = Field(..., description="The stored review")


class ErrorResponse(BaseModel):
    """Error response model."""
    message: str = Field(..., description="Error message")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Overall service status")
    timestamp: datetime = Field(..., description="Health check timestamp")
    version: str = Field(..., description="API version")
    books_count: int = Field(..., ge=0, description="Number of books in the catalogue")
    users_count: int = Field(..., ge=0, description="Number of registered users")
