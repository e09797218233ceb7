#!/usr/bin/env python3
"""
End-to-end smoke check for a running Book Review API server.

Walks every endpoint through the client and prints a pass/fail summary.
Exits with status 0 only if every step passed.

Usage: python smoke_check.py [base_url]
"""

import sys
from pathlib import Path
from typing import Callable, List, Tuple

# Add project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from review_client import BookReviewClient, BookReviewClientError
from utilities.config import config
from utilities.logger import setup_logging, get_logger

USERNAME = "testuser"
PASSWORD = "testpass123"


def check_register(client: BookReviewClient) -> str:
    try:
        return client.register(USERNAME, PASSWORD)
    except BookReviewClientError as e:
        # Expected on repeat runs against the same server
        if e.status_code == 409:
            return "User already exists"
        raise


def build_steps(client: BookReviewClient) -> List[Tuple[str, Callable[[], object]]]:
    """Return the ordered smoke-check steps."""
    return [
        ("Health check", lambda: client.health().status),
        ("Get all books", lambda: f"{len(client.get_all_books())} books"),
        ("Get book by ISBN", lambda: client.search_by_isbn("ISBN001").title),
        ("Get books by author", lambda: [b.title for b in client.search_by_author("George Orwell")]),
        ("Get books by title", lambda: [b.title for b in client.search_by_title("1984")]),
        ("Get book reviews", lambda: client.get_reviews("ISBN001")),
        ("Register user", lambda: check_register(client)),
        ("Login user", lambda: client.login(USERNAME, PASSWORD).message),
        ("Add/modify review", lambda: client.add_review(
            "ISBN001", "An absolute masterpiece! A must-read classic."
        ).review),
        ("Delete review", lambda: client.delete_review("ISBN001")),
        ("Get books by author (second author)", lambda: [b.title for b in client.search_by_author("Harper Lee")]),
        ("Get books by title (partial)", lambda: [b.title for b in client.search_by_title("Pride")]),
    ]


def main():
    """Main function."""
    base_url = sys.argv[1] if len(sys.argv) > 1 else config.base_url

    setup_logging(
        log_level=config.log_level,
        log_format=config.log_format,
        log_file=config.get_log_file_path(),
        debug=config.debug
    )
    logger = get_logger(__name__)

    print("=" * 50)
    print("📚 Book Review API - Smoke Check")
    print(f"📡 Server: {base_url}")
    print("=" * 50)

    passed = 0
    with BookReviewClient(base_url=base_url) as client:
        steps = build_steps(client)
        for name, step in steps:
            try:
                result = step()
            except BookReviewClientError as e:
                logger.error("Smoke check step failed", step=name, status_code=e.status_code, error=e.message)
                print(f"✗ {name}: {e}")
                continue
            passed += 1
            print(f"✓ {name}: {result}")

    print("=" * 50)
    print(f"Passed {passed}/{len(steps)}")
    sys.exit(0 if passed == len(steps) else 1)


if __name__ == "__main__":
    main()
