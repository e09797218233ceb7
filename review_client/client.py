"""
Synchronous client for the Book Review API.
Exposes one call per server operation and raises a single error type for
both transport failures and error responses.
"""

from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx
import structlog

from review_api.models import Book, HealthResponse, LoginResponse, ReviewEntry
from utilities.config import config

logger = structlog.get_logger(__name__)


class BookReviewClientError(Exception):
    """
    Raised when a request fails.

    ``status_code`` is the HTTP status of an error response, or ``None`` when
    the server could not be reached.
    """

    def __init__(self, status_code: Optional[int], message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"{status_code}: {message}" if status_code else message)


class BookReviewClient:
    """
    Client for the Book Review API.

    The token returned by ``login`` is kept and sent with review updates.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[int] = None,
        http_client: Optional[httpx.Client] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: Server root URL (defaults to the configured one)
            timeout: Request timeout in seconds
            http_client: Existing httpx client to send requests through;
                it is not closed by ``close``
        """
        self.token: Optional[str] = None
        self.username: Optional[str] = None
        self._owns_client = http_client is None

        if http_client is None:
            http_client = httpx.Client(
                base_url=base_url or config.base_url,
                timeout=timeout or config.request_timeout,
                headers=config.get_headers(),
                follow_redirects=True,
            )
        self._client = http_client

    def __enter__(self) -> "BookReviewClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying HTTP client if this object created it."""
        if self._owns_client:
            self._client.close()

    def _request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        authenticated: bool = False,
    ) -> Dict[str, Any]:
        headers = {}
        if authenticated and self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        try:
            response = self._client.request(method, path, json=json, headers=headers)
        except httpx.HTTPError as e:
            logger.error("Request failed", method=method, path=path, error=str(e))
            raise BookReviewClientError(None, str(e)) from e

        if response.is_error:
            try:
                message = response.json().get("message", response.text)
            except ValueError:
                message = response.text
            logger.debug(
                "Error response", method=method, path=path,
                status_code=response.status_code, message=message
            )
            raise BookReviewClientError(response.status_code, message)

        return response.json()

    @staticmethod
    def _segment(value: str) -> str:
        return quote(value, safe="")

    def health(self) -> HealthResponse:
        """Get the server health status."""
        return HealthResponse(**self._request("GET", "/health"))

    def get_all_books(self) -> List[Book]:
        """Get every book in the catalogue."""
        data = self._request("GET", "/books")
        return [Book(**book) for book in data["books"]]

    def search_by_isbn(self, isbn: str) -> Book:
        """Get a single book by ISBN."""
        data = self._request("GET", f"/books/isbn/{self._segment(isbn)}")
        return Book(**data["book"])

    def search_by_author(self, author: str) -> List[Book]:
        """Get all books by an author (exact name, any case)."""
        data = self._request("GET", f"/books/author/{self._segment(author)}")
        return [Book(**book) for book in data["books"]]

    def search_by_title(self, title: str) -> List[Book]:
        """Get all books whose title contains ``title`` (any case)."""
        data = self._request("GET", f"/books/title/{self._segment(title)}")
        return [Book(**book) for book in data["books"]]

    def get_reviews(self, isbn: str) -> Dict[str, str]:
        """Get the reviews of a book keyed by username."""
        data = self._request("GET", f"/books/review/{self._segment(isbn)}")
        return data["reviews"]

    def register(self, username: str, password: str) -> str:
        """Register a new user and return the server message."""
        data = self._request("POST", "/register", json={"username": username, "password": password})
        return data["message"]

    def login(self, username: str, password: str) -> LoginResponse:
        """Log in and keep the returned token for later calls."""
        data = self._request("POST", "/login", json={"username": username, "password": password})
        result = LoginResponse(**data)
        self.token = result.token
        self.username = result.username
        logger.info("Logged in", username=result.username)
        return result

    def add_review(self, isbn: str, review: str) -> ReviewEntry:
        """Add or replace the logged-in user's review of a book."""
        data = self._request(
            "PUT", f"/books/review/{self._segment(isbn)}",
            json={"review": review}, authenticated=True
        )
        return ReviewEntry(**data["review"])

    def delete_review(self, isbn: str) -> str:
        """Delete the logged-in user's review of a book."""
        data = self._request("DELETE", f"/books/review/{self._segment(isbn)}", authenticated=True)
        return data["message"]
