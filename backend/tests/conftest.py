"""
Shared test fixtures and utilities.

This module provides common test infrastructure used across all test modules.
Every test runs against in-memory repositories: Supabase, n8n, Telegram and
Stripe credentials are cleared from the environment.
"""

import uuid
from datetime import datetime, timezone, timedelta
from typing import Optional

import jwt  # PyJWT
import pytest

from modules.auth import (
    AuthIdentity,
    EmailAlreadyExistsError,
    InvalidCredentialsError,
)
from modules.auth.service import reset_auth_service
from shared.config import get_settings
from shared.database import reset_client_cache


# Test JWT secret (only for testing)
TEST_JWT_SECRET = "test-secret-key-for-testing-only"

# Integration settings that must not leak in from a developer's .env
CLEARED_ENV = [
    "SUPABASE_URL",
    "SUPABASE_ANON_KEY",
    "SUPABASE_SERVICE_ROLE_KEY",
    "SUPABASE_DB_URL",
    "N8N_BASE_URL",
    "N8N_API_KEY",
    "TELEGRAM_BOT_TOKEN",
    "TELEGRAM_WEBHOOK_SECRET",
    "STRIPE_SECRET_KEY",
    "STRIPE_WEBHOOK_SECRET",
    "STRIPE_PRICE_STARTER",
    "STRIPE_PRICE_PRO",
    "STRIPE_PRICE_ENTERPRISE",
]


def create_test_token(
    user_id: str = "test-user-123",
    email: str = "test@example.com",
    expired: bool = False,
    email_verified: bool = True,
) -> str:
    """
    Create a test JWT token for authentication.

    Args:
        user_id: User ID to include in the token
        email: Email to include in the token
        expired: If True, creates an expired token
        email_verified: Whether the email should be marked as verified

    Returns:
        JWT token string
    """
    now = datetime.now(timezone.utc)
    exp = now - timedelta(hours=1) if expired else now + timedelta(hours=1)

    payload = {
        "sub": user_id,
        "email": email,
        "email_confirmed_at": now.isoformat() if email_verified else None,
        "aud": "authenticated",
        "role": "authenticated",
        "exp": int(exp.timestamp()),
        "iat": int(now.timestamp()),
    }
    return jwt.encode(payload, TEST_JWT_SECRET, algorithm="HS256")


class Clock:
    """Settable clock for services that take a ``clock`` callable."""

    def __init__(self, now: Optional[datetime] = None):
        self.now = now or datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakeIdentityProvider:
    """In-memory stand-in for Supabase Auth."""

    def __init__(self):
        self.users: dict[str, tuple[str, str]] = {}  # email -> (user_id, password)
        self.signed_out: list[str] = []

    async def sign_up(
        self, email: str, password: str, full_name: Optional[str] = None
    ) -> AuthIdentity:
        if email in self.users:
            raise EmailAlreadyExistsError(email)
        user_id = str(uuid.uuid4())
        self.users[email] = (user_id, password)
        return AuthIdentity(user_id=user_id, email=email, access_token=f"access-{user_id}")

    async def sign_in(self, email: str, password: str) -> AuthIdentity:
        entry = self.users.get(email)
        if entry is None or entry[1] != password:
            raise InvalidCredentialsError()
        return AuthIdentity(user_id=entry[0], email=email, access_token=f"access-{entry[0]}")

    async def sign_out(self, access_token: str) -> None:
        self.signed_out.append(access_token)


@pytest.fixture(autouse=True)
def test_settings(monkeypatch):
    """Run every test with a known JWT secret and no external integrations."""
    monkeypatch.setenv("SUPABASE_JWT_SECRET", TEST_JWT_SECRET)
    for name in CLEARED_ENV:
        monkeypatch.setenv(name, "")
    get_settings.cache_clear()
    reset_client_cache()
    yield
    get_settings.cache_clear()
    reset_client_cache()


@pytest.fixture(autouse=True)
def reset_singletons():
    """Reset the auth service and service container around each test."""
    from api.dependencies import reset_container

    reset_auth_service()
    reset_container()
    yield
    reset_auth_service()
    reset_container()


@pytest.fixture
def clock() -> Clock:
    return Clock()


@pytest.fixture
def identity_provider() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture
def test_user_id() -> str:
    """Provide a consistent test user ID."""
    return "test-user-123"


@pytest.fixture
def test_user_email() -> str:
    """Provide a consistent test user email."""
    return "test@example.com"


@pytest.fixture
def auth_token(test_user_id: str, test_user_email: str) -> str:
    """Create a valid auth token for testing."""
    return create_test_token(user_id=test_user_id, email=test_user_email)


@pytest.fixture
def auth_headers(auth_token: str) -> dict[str, str]:
    """Create authorization headers with a valid token."""
    return {"Authorization": f"Bearer {auth_token}"}
