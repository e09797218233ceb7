"""
In-memory stores for the book catalogue and registered users.

Both stores are created once per application and handed to the request
handlers through ``app.state``. Mutations are serialized with a lock and
reads return copies, so callers never see or change shared state directly.
"""

import threading
from typing import Dict, Iterable, List, Optional

import structlog

from review_api.errors import (
    ConflictError, FieldValidationError, InvalidCredentialsError, NotFoundError
)
from review_api.models import Book, User

logger = structlog.get_logger(__name__)


SEED_BOOKS: List[Dict[str, str]] = [
    {"isbn": "ISBN001", "title": "The Great Gatsby", "author": "F. Scott Fitzgerald"},
    {"isbn": "ISBN002", "title": "To Kill a Mockingbird", "author": "Harper Lee"},
    {"isbn": "ISBN003", "title": "1984", "author": "George Orwell"},
    {"isbn": "ISBN004", "title": "Pride and Prejudice", "author": "Jane Austen"},
    {"isbn": "ISBN005", "title": "Animal Farm", "author": "George Orwell"},
]


class CatalogStore:
    """Holds the fixed book catalogue and the reviews attached to it."""

    def __init__(self, books: Optional[Iterable[Dict[str, str]]] = None):
        """
        Initialize the catalogue.

        Args:
            books: Seed records with isbn, title and author. Defaults to
                ``SEED_BOOKS``.

        Raises:
            ValueError: If two seed records share an isbn
        """
        self._lock = threading.Lock()
        self._books: Dict[str, Book] = {}

        for record in SEED_BOOKS if books is None else books:
            book = Book(**record)
            if book.isbn in self._books:
                raise ValueError(f"Duplicate isbn in seed data: {book.isbn}")
            self._books[book.isbn] = book

        logger.debug("Catalog store initialized", books=len(self._books))

    def _require(self, isbn: str) -> Book:
        book = self._books.get(isbn)
        if book is None:
            raise NotFoundError("Book not found")
        return book

    def count(self) -> int:
        """Number of books in the catalogue."""
        return len(self._books)

    def list_books(self) -> List[Book]:
        """Return every book in insertion order."""
        with self._lock:
            return [book.model_copy(deep=True) for book in self._books.values()]

    def get_by_isbn(self, isbn: str) -> Book:
        """
        Get a single book by isbn.

        Raises:
            NotFoundError: If the isbn is unknown
        """
        with self._lock:
            return self._require(isbn).model_copy(deep=True)

    def find_by_author(self, author: str) -> List[Book]:
        """
        Find books whose author equals ``author``, ignoring case.

        Raises:
            NotFoundError: If no book matches
        """
        query = author.lower()
        with self._lock:
            matches = [
                book.model_copy(deep=True)
                for book in self._books.values()
                if book.author.lower() == query
            ]
        if not matches:
            raise NotFoundError("No books found by this author")
        return matches

    def find_by_title(self, title: str) -> List[Book]:
        """
        Find books whose title contains ``title``, ignoring case.

        Raises:
            NotFoundError: If no book matches
        """
        query = title.lower()
        with self._lock:
            matches = [
                book.model_copy(deep=True)
                for book in self._books.values()
                if query in book.title.lower()
            ]
        if not matches:
            raise NotFoundError("No books found with this title")
        return matches

    def get_reviews(self, isbn: str) -> Dict[str, str]:
        """
        Get the reviews of a book keyed by username.

        Raises:
            NotFoundError: If the isbn is unknown
        """
        with self._lock:
            return dict(self._require(isbn).reviews)

    def upsert_review(self, isbn: str, username: str, text: Optional[str]) -> str:
        """
        Add or replace ``username``'s review of a book.

        Args:
            isbn: Book identifier
            username: Review author
            text: Review text

        Returns:
            The stored review text

        Raises:
            FieldValidationError: If the text is empty
            NotFoundError: If the isbn is unknown
        """
        if not text:
            raise FieldValidationError("Review text required")

        with self._lock:
            book = self._require(isbn)
            replaced = username in book.reviews
            book.reviews[username] = text

        logger.info("Review stored", isbn=isbn, username=username, replaced=replaced)
        return text

    def delete_review(self, isbn: str, username: str) -> None:
        """
        Remove ``username``'s review of a book.

        Raises:
            NotFoundError: If the isbn is unknown or the user has no review
        """
        with self._lock:
            book = self._require(isbn)
            if username not in book.reviews:
                raise NotFoundError("No review found for this user")
            del book.reviews[username]

        logger.info("Review deleted", isbn=isbn, username=username)


class UserStore:
    """Holds registered users keyed by username."""

    def __init__(self):
        self._lock = threading.Lock()
        self._users: Dict[str, User] = {}

    def count(self) -> int:
        """Number of registered users."""
        return len(self._users)

    def register(self, username: Optional[str], password: Optional[str]) -> User:
        """
        Register a new user.

        Raises:
            FieldValidationError: If either field is empty or missing
            ConflictError: If the username is already taken
        """
        if not username or not password:
            raise FieldValidationError("Username and password required")

        with self._lock:
            if username in self._users:
                logger.warning("Registration for existing username", username=username)
                raise ConflictError("User already exists")
            user = User(username=username, password=password)
            self._users[username] = user

        logger.info("User registered", username=username)
        return user.model_copy()

    def authenticate(self, username: Optional[str], password: Optional[str]) -> str:
        """
        Check a username/password pair.

        Returns:
            The authenticated username

        Raises:
            FieldValidationError: If either field is empty or missing
            InvalidCredentialsError: If the user is unknown or the password differs
        """
        if not username or not password:
            raise FieldValidationError("Username and password required")

        with self._lock:
            user = self._users.get(username)

        if user is None or user.password != password:
            logger.warning("Login failed", username=username)
            raise InvalidCredentialsError("Invalid credentials")

        return user.username
