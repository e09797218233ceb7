"""
Tests for the Book Review API client.
"""

import httpx
import pytest

from review_client import BookReviewClient, BookReviewClientError


@pytest.fixture
def review_client(client):
    """Create an API client that talks to the in-process test app."""
    return BookReviewClient(http_client=client)


class TestCatalogueCalls:
    """Test cases for the read-only catalogue calls."""

    def test_get_all_books(self, review_client):
        books = review_client.get_all_books()
        assert len(books) == 5
        assert books[0].title == "The Great Gatsby"

    def test_search_by_isbn(self, review_client):
        book = review_client.search_by_isbn("ISBN002")
        assert book.author == "Harper Lee"

    def test_search_by_author_with_space(self, review_client):
        """Author names with spaces are URL-encoded."""
        books = review_client.search_by_author("George Orwell")
        assert [book.title for book in books] == ["1984", "Animal Farm"]

    def test_search_by_title(self, review_client):
        books = review_client.search_by_title("Pride")
        assert [book.isbn for book in books] == ["ISBN004"]

    def test_not_found_raises(self, review_client):
        with pytest.raises(BookReviewClientError) as exc_info:
            review_client.search_by_isbn("ISBN999")
        assert exc_info.value.status_code == 404
        assert exc_info.value.message == "Book not found"

    def test_health(self, review_client):
        assert review_client.health().books_count == 5


class TestReviewWorkflow:
    """Test cases for register, login and review calls."""

    def test_full_review_cycle(self, review_client):
        assert review_client.register("carol", "secret") == "User registered successfully"

        result = review_client.login("carol", "secret")
        assert result.username == "carol"
        assert review_client.token == result.token

        entry = review_client.add_review("ISBN001", "Great read")
        assert entry.username == "carol"
        assert entry.review == "Great read"
        assert review_client.get_reviews("ISBN001") == {"carol": "Great read"}

        assert review_client.delete_review("ISBN001") == "Review deleted successfully"
        assert review_client.get_reviews("ISBN001") == {}

    def test_review_without_login(self, review_client):
        with pytest.raises(BookReviewClientError) as exc_info:
            review_client.add_review("ISBN001", "Great read")
        assert exc_info.value.status_code == 401

    def test_duplicate_registration(self, review_client):
        review_client.register("carol", "secret")
        with pytest.raises(BookReviewClientError) as exc_info:
            review_client.register("carol", "secret")
        assert exc_info.value.status_code == 409

    def test_bad_login_keeps_no_token(self, review_client):
        with pytest.raises(BookReviewClientError) as exc_info:
            review_client.login("nobody", "nothing")
        assert exc_info.value.status_code == 401
        assert review_client.token is None


def test_transport_error():
    """Connection failures raise a client error without a status code."""
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    http_client = httpx.Client(base_url="http://testserver", transport=httpx.MockTransport(refuse))
    with BookReviewClient(http_client=http_client) as review_client:
        with pytest.raises(BookReviewClientError) as exc_info:
            review_client.get_all_books()
    assert exc_info.value.status_code is None


def test_non_json_error_body():
    """Error responses without a JSON body fall back to the raw text."""
    transport = httpx.MockTransport(lambda request: httpx.Response(502, text="Bad Gateway"))
    http_client = httpx.Client(base_url="http://testserver", transport=transport)

    with pytest.raises(BookReviewClientError) as exc_info:
        BookReviewClient(http_client=http_client).get_all_books()
    assert exc_info.value.status_code == 502
    assert exc_info.value.message == "Bad Gateway"


def test_owned_client_is_closed():
    """The client closes the HTTP client it created."""
    review_client = BookReviewClient(base_url="http://localhost:1")
    review_client.close()
    assert review_client._client.is_closed
