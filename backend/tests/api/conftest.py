"""Fixtures for API tests."""

import pytest
from fastapi.testclient import TestClient

from api.app import create_app
from api.dependencies import reset_container, set_container


@pytest.fixture
def app(container):
    """Create a fresh app wired to the in-memory container."""
    set_container(container)
    yield create_app()
    reset_container()


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)
