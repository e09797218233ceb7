"""
Pytest configuration and shared fixtures.
"""

import pytest
from fastapi.testclient import TestClient

from review_api.auth import TokenManager
from review_api.config import APIConfig
from review_api.main import create_app
from review_api.store import CatalogStore, UserStore


TEST_SECRET = "test-secret-key"


@pytest.fixture
def api_settings():
    """API configuration for testing."""
    return APIConfig(secret_key=TEST_SECRET, log_format="console")


@pytest.fixture
def app(api_settings):
    """Create a fresh application with empty user and review state."""
    return create_app(api_settings)


@pytest.fixture
def client(app):
    """Create test client."""
    return TestClient(app)


@pytest.fixture
def catalog():
    """Create a catalogue store seeded with the default books."""
    return CatalogStore()


@pytest.fixture
def users():
    """Create an empty user store."""
    return UserStore()


@pytest.fixture
def token_manager():
    """Create a token manager using the test secret."""
    return TokenManager(secret_key=TEST_SECRET)


@pytest.fixture
def sample_credentials():
    """Sample registration/login payload."""
    return {"username": "alice", "password": "wonderland"}


@pytest.fixture
def auth_headers(client, sample_credentials):
    """Register and log in the sample user; return bearer headers."""
    response = client.post("/register", json=sample_credentials)
    assert response.status_code == 201

    response = client.post("/login", json=sample_credentials)
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['token']}"}
