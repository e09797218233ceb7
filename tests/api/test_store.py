"""
Unit tests for the catalogue and user stores.
"""

import threading

import pytest

from review_api.errors import (
    ConflictError, FieldValidationError, InvalidCredentialsError, NotFoundError
)
from review_api.store import SEED_BOOKS, CatalogStore


class TestCatalogStore:
    """Test cases for CatalogStore."""

    def test_seeded_books_in_order(self, catalog):
        """Listing returns the seed books in insertion order."""
        books = catalog.list_books()
        assert [book.isbn for book in books] == [record["isbn"] for record in SEED_BOOKS]
        assert catalog.count() == 5

    def test_get_by_isbn(self, catalog):
        """Every seeded isbn can be fetched."""
        for record in SEED_BOOKS:
            book = catalog.get_by_isbn(record["isbn"])
            assert book.isbn == record["isbn"]
            assert book.title == record["title"]

    def test_get_by_unknown_isbn(self, catalog):
        """Unknown isbn raises NotFoundError."""
        with pytest.raises(NotFoundError) as exc_info:
            catalog.get_by_isbn("ISBN999")
        assert exc_info.value.status_code == 404

    def test_find_by_author(self, catalog):
        """Author match is exact and case-insensitive."""
        books = catalog.find_by_author("george orwell")
        assert [book.isbn for book in books] == ["ISBN003", "ISBN005"]
        assert catalog.find_by_author("GEORGE ORWELL") == books

        with pytest.raises(NotFoundError):
            catalog.find_by_author("George")

    def test_find_by_title(self, catalog):
        """Title match is a case-insensitive substring."""
        assert [book.isbn for book in catalog.find_by_title("1984")] == ["ISBN003"]
        assert [book.isbn for book in catalog.find_by_title("MOCKING")] == ["ISBN002"]
        assert [book.isbn for book in catalog.find_by_title("AN")] == ["ISBN004", "ISBN005"]

        with pytest.raises(NotFoundError):
            catalog.find_by_title("Ulysses")

    def test_returned_books_are_copies(self, catalog):
        """Mutating a returned book does not change the store."""
        book = catalog.get_by_isbn("ISBN001")
        book.reviews["mallory"] = "sneaky"
        book.title = "Changed"

        stored = catalog.get_by_isbn("ISBN001")
        assert stored.reviews == {}
        assert stored.title == "The Great Gatsby"

        reviews = catalog.get_reviews("ISBN001")
        reviews["mallory"] = "sneaky"
        assert catalog.get_reviews("ISBN001") == {}

    def test_upsert_review(self, catalog):
        """Upsert inserts, then overwrites the same user's entry."""
        assert catalog.upsert_review("ISBN001", "alice", "Great read") == "Great read"
        assert catalog.get_reviews("ISBN001") == {"alice": "Great read"}

        catalog.upsert_review("ISBN001", "alice", "Still great")
        catalog.upsert_review("ISBN001", "bob", "Overrated")
        assert catalog.get_reviews("ISBN001") == {"alice": "Still great", "bob": "Overrated"}

    def test_upsert_review_validation(self, catalog):
        """Empty text is rejected before the isbn is looked up."""
        for text in ["", None]:
            with pytest.raises(FieldValidationError) as exc_info:
                catalog.upsert_review("ISBN999", "alice", text)
            assert exc_info.value.message == "Review text required"

        with pytest.raises(NotFoundError):
            catalog.upsert_review("ISBN999", "alice", "Great read")

    def test_delete_review(self, catalog):
        """Delete removes only the caller's entry."""
        catalog.upsert_review("ISBN002", "alice", "Moving")
        catalog.upsert_review("ISBN002", "bob", "Classic")

        catalog.delete_review("ISBN002", "alice")
        assert catalog.get_reviews("ISBN002") == {"bob": "Classic"}

        with pytest.raises(NotFoundError) as exc_info:
            catalog.delete_review("ISBN002", "alice")
        assert exc_info.value.message == "No review found for this user"

        with pytest.raises(NotFoundError):
            catalog.delete_review("ISBN999", "bob")

    def test_custom_seed(self):
        """A custom seed replaces the default catalogue."""
        store = CatalogStore([{"isbn": "X1", "title": "Dune", "author": "Frank Herbert"}])
        assert [book.title for book in store.list_books()] == ["Dune"]

    def test_duplicate_seed_isbn(self):
        """Duplicate isbns in the seed are rejected."""
        record = {"isbn": "X1", "title": "Dune", "author": "Frank Herbert"}
        with pytest.raises(ValueError):
            CatalogStore([record, record])

    def test_concurrent_upserts(self, catalog):
        """Upserts from many threads all land."""
        def write(n):
            catalog.upsert_review("ISBN004", f"user{n}", f"review {n}")

        threads = [threading.Thread(target=write, args=(n,)) for n in range(50)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(catalog.get_reviews("ISBN004")) == 50


class TestUserStore:
    """Test cases for UserStore."""

    def test_register_and_authenticate(self, users):
        """A registered user can authenticate."""
        user = users.register("alice", "wonderland")
        assert user.username == "alice"
        assert users.count() == 1
        assert users.authenticate("alice", "wonderland") == "alice"

    def test_register_duplicate(self, users):
        """Duplicate registration conflicts and keeps the original user."""
        users.register("alice", "wonderland")

        with pytest.raises(ConflictError) as exc_info:
            users.register("alice", "looking-glass")
        assert exc_info.value.status_code == 409

        assert users.count() == 1
        assert users.authenticate("alice", "wonderland") == "alice"
        with pytest.raises(InvalidCredentialsError):
            users.authenticate("alice", "looking-glass")

    @pytest.mark.parametrize("username,password", [
        ("", "pw"),
        ("alice", ""),
        (None, "pw"),
        ("alice", None),
    ])
    def test_register_missing_fields(self, users, username, password):
        """Empty or missing fields are rejected."""
        with pytest.raises(FieldValidationError):
            users.register(username, password)
        assert users.count() == 0

    def test_authenticate_failures(self, users):
        """Unknown users and wrong passwords raise InvalidCredentialsError."""
        with pytest.raises(InvalidCredentialsError):
            users.authenticate("alice", "wonderland")

        users.register("alice", "wonderland")
        with pytest.raises(InvalidCredentialsError) as exc_info:
            users.authenticate("alice", "Wonderland")
        assert exc_info.value.status_code == 401

        with pytest.raises(FieldValidationError):
            users.authenticate("alice", "")
