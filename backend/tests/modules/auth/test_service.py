import pytest
import jwt
from datetime import datetime, timedelta, timezone

from modules.auth.service import AuthService, get_auth_service, resolve_puid_for_uid
from modules.auth.exceptions import (
    InvalidTokenError,
    ExpiredTokenError,
    MissingTokenError,
)
from shared.config import Settings
from shared.models import AuthenticatedUser


def _token(secret: str = "test-secret", **overrides) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": "user-123",
        "email": "test@example.com",
        "exp": now + timedelta(hours=1),
        "iat": now,
        "aud": "authenticated",
        "role": "authenticated",
    }
    payload.update(overrides)
    return jwt.encode(payload, secret, algorithm="HS256")


class TestValidateToken:
    @pytest.fixture
    def service(self):
        return AuthService(Settings(supabase_jwt_secret="test-secret"))

    @pytest.mark.asyncio
    async def test_validate_valid_token(self, service):
        """Should validate a valid token and return user."""
        user = await service.validate_token(_token())
        assert user.id == "user-123"
        assert user.email == "test@example.com"
        assert user.is_anonymous is False
        assert user.role == "user"

    @pytest.mark.asyncio
    async def test_validate_anonymous_token(self, service):
        """Anonymous sessions are valid users flagged as anonymous."""
        user = await service.validate_token(_token(email="", is_anonymous=True))
        assert user.is_anonymous is True
        assert user.email is None
        assert user.sign_in_provider == "anonymous"

    @pytest.mark.asyncio
    async def test_validate_expired_token(self, service):
        """Should raise ExpiredTokenError for expired token."""
        now = datetime.now(timezone.utc)
        with pytest.raises(ExpiredTokenError):
            await service.validate_token(
                _token(exp=now - timedelta(hours=1), iat=now - timedelta(hours=2))
            )

    @pytest.mark.asyncio
    async def test_validate_invalid_token(self, service):
        """Should raise InvalidTokenError for malformed token."""
        with pytest.raises(InvalidTokenError):
            await service.validate_token("not-a-valid-token")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("token", ["", None])
    async def test_validate_missing_token(self, service, token):
        """Should raise MissingTokenError for empty token."""
        with pytest.raises(MissingTokenError):
            await service.validate_token(token)

    @pytest.mark.asyncio
    async def test_validate_wrong_secret(self, service):
        """Should raise InvalidTokenError for token signed with wrong secret."""
        with pytest.raises(InvalidTokenError):
            await service.validate_token(_token(secret="wrong-secret"))

    @pytest.mark.asyncio
    async def test_validate_wrong_audience(self, service):
        """Should raise InvalidTokenError for token with wrong audience."""
        with pytest.raises(InvalidTokenError):
            await service.validate_token(_token(aud="wrong-audience"))

    @pytest.mark.asyncio
    async def test_validate_token_without_iat(self, service):
        """A signed token missing required claims is invalid, not a crash."""
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {"sub": "user-123", "aud": "authenticated", "exp": now + timedelta(hours=1)},
            "test-secret",
            algorithm="HS256",
        )
        with pytest.raises(InvalidTokenError, match="Invalid token claims"):
            await service.validate_token(token)

    @pytest.mark.asyncio
    async def test_unconfigured_secret(self):
        """Without a JWT secret every token is rejected."""
        service = AuthService(Settings(supabase_jwt_secret=""))
        with pytest.raises(InvalidTokenError, match="not configured"):
            await service.validate_token(_token())

    @pytest.mark.asyncio
    async def test_errors_are_unauthenticated(self, service):
        with pytest.raises(InvalidTokenError) as exc_info:
            await service.validate_token("garbage")
        assert exc_info.value.status == "UNAUTHENTICATED"


class TestResolveIdentity:
    @pytest.fixture
    def service(self):
        return AuthService(Settings(supabase_jwt_secret="test-secret"))

    @pytest.mark.asyncio
    async def test_identity_for_user(self, service):
        identity = await service.resolve_identity(AuthenticatedUser(id="user-1"))
        assert identity.uid == "user-1"
        assert identity.puid == "user-1"
        assert identity.is_anonymous is False

    @pytest.mark.asyncio
    async def test_identity_for_anonymous_user(self, service):
        identity = await service.resolve_identity(
            AuthenticatedUser(id="anon-1", is_anonymous=True)
        )
        assert identity.is_anonymous is True

    @pytest.mark.asyncio
    async def test_missing_user(self, service):
        with pytest.raises(MissingTokenError):
            await service.resolve_identity(None)

    @pytest.mark.asyncio
    async def test_puid_is_uid(self):
        assert await resolve_puid_for_uid("abc") == "abc"


def test_get_auth_service_is_singleton():
    assert get_auth_service() is get_auth_service()
