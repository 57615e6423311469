"""Fixtures for API tests."""

import pytest
from fastapi.testclient import TestClient

from api.app import app
from api.dependencies import get_container, get_identity_provider


@pytest.fixture
def client(identity_provider):
    """Test client whose signup/sign-in goes to the fake identity provider."""
    app.dependency_overrides[get_identity_provider] = lambda: identity_provider
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def container():
    """The service container the app resolves dependencies from."""
    return get_container()
