"""
Shared test fixtures and utilities.

This module provides common test infrastructure used across all test modules.
"""

from typing import Any, Optional

import pytest
from datetime import datetime, timezone, timedelta
import jwt  # PyJWT

from api.dependencies import ServiceContainer
from modules.auth.service import reset_auth_service
from modules.usage.service import reset_quota_ledger
from providers.base import DocumentLLM
from shared.config import Settings
from shared.models import AuthenticatedUser


# Test JWT secret (only for testing)
TEST_JWT_SECRET = "test-secret-key-for-testing-only"

# A valid SHA-256 hex digest
DOC_HASH = "a" * 64


def create_test_token(
    user_id: str = "test-user-123",
    email: Optional[str] = "test@example.com",
    expired: bool = False,
    email_verified: bool = True,
    is_anonymous: bool = False,
) -> str:
    """
    Create a test JWT token for authentication.

    Args:
        user_id: User ID to include in the token
        email: Email to include in the token
        expired: If True, creates an expired token
        email_verified: Whether the email should be marked as verified
        is_anonymous: Mark the token as an anonymous session

    Returns:
        JWT token string
    """
    now = datetime.now(timezone.utc)
    exp = now - timedelta(hours=1) if expired else now + timedelta(hours=1)

    payload = {
        "sub": user_id,
        "email": email or "",
        "email_confirmed_at": now.isoformat() if email_verified else None,
        "aud": "authenticated",
        "role": "authenticated",
        "is_anonymous": is_anonymous,
        "exp": int(exp.timestamp()),
        "iat": int(now.timestamp()),
    }
    return jwt.encode(payload, TEST_JWT_SECRET, algorithm="HS256")


class FakeDocumentLLM(DocumentLLM):
    """DocumentLLM that returns a canned reply and records every call."""

    def __init__(self, response: Any = None, error: Optional[Exception] = None):
        self.response = response if response is not None else {}
        self.error = error
        self.calls: list[dict[str, Any]] = []

    @property
    def model_name(self) -> str:
        return "fake-gemini"

    async def generate_json(self, prompt, schema=None, temperature=0.2):
        self.calls.append({"prompt": prompt, "schema": schema, "temperature": temperature})
        if self.error is not None:
            raise self.error
        return self.response


class FakeCatalog:
    """Document type catalog backed by dicts instead of HTTP."""

    def __init__(self, slugs: Optional[dict[str, str]] = None, specs: Optional[dict[str, dict]] = None):
        self.slugs = slugs or {}
        self.specs = specs or {}

    async def find_validation_slug(self, type_id):
        return self.slugs.get(type_id) if type_id else None

    async def find_validation_spec(self, validation_slug):
        return self.specs.get(validation_slug) if validation_slug else None


@pytest.fixture(autouse=True)
def reset_singletons():
    """Reset module singletons before and after each test."""
    reset_auth_service()
    reset_quota_ledger()
    yield
    reset_auth_service()
    reset_quota_ledger()


@pytest.fixture
def settings() -> Settings:
    """Settings with in-memory storage and the test JWT secret."""
    return Settings(
        supabase_jwt_secret=TEST_JWT_SECRET,
        use_in_memory_store=True,
        remote_config_enabled=False,
    )


@pytest.fixture
def test_user_id() -> str:
    """Provide a consistent test user ID."""
    return "test-user-123"


@pytest.fixture
def test_user_email() -> str:
    """Provide a consistent test user email."""
    return "test@example.com"


@pytest.fixture
def free_user(test_user_id: str, test_user_email: str) -> AuthenticatedUser:
    return AuthenticatedUser(id=test_user_id, email=test_user_email, email_verified=True)


@pytest.fixture
def anonymous_user() -> AuthenticatedUser:
    return AuthenticatedUser(id="anon-user-1", is_anonymous=True)


@pytest.fixture
def auth_token(test_user_id: str, test_user_email: str) -> str:
    """Create a valid auth token for testing."""
    return create_test_token(user_id=test_user_id, email=test_user_email)


@pytest.fixture
def auth_headers(auth_token: str) -> dict[str, str]:
    """Create authorization headers with a valid token."""
    return {"Authorization": f"Bearer {auth_token}"}


@pytest.fixture
def fake_llm() -> FakeDocumentLLM:
    return FakeDocumentLLM(response={"plainExplanation": "Looks fine."})


@pytest.fixture
def container(settings: Settings, fake_llm: FakeDocumentLLM) -> ServiceContainer:
    """In-memory service container with a fake LLM and catalog."""
    container = ServiceContainer(settings)
    container._llm = fake_llm
    container._document_catalog = FakeCatalog()
    return container
