"""
Tests for AccountService.

Uses the in-memory profile and session stores with a fake identity
provider standing in for Supabase Auth.
"""

import pytest

from modules.auth import (
    AccountService,
    EmailAlreadyExistsError,
    InMemorySessionRepository,
    InvalidCredentialsError,
    InvalidEmailError,
    SessionService,
    WeakPasswordError,
    validate_email,
    validate_password,
)
from modules.profiles import ProfileService, SubscriptionTier


PASSWORD = "correct-horse-42"


@pytest.fixture
def profiles(clock):
    return ProfileService(clock=clock)


@pytest.fixture
def sessions(clock):
    return SessionService(InMemorySessionRepository(), clock=clock)


@pytest.fixture
def accounts(identity_provider, profiles, sessions):
    return AccountService(identity_provider, profiles, sessions)


class TestValidation:
    @pytest.mark.parametrize(
        "email,expected",
        [
            ("user@example.com", "user@example.com"),
            ("  User@Example.COM ", "user@example.com"),
            ("first.last+tag@sub.example.org", "first.last+tag@sub.example.org"),
        ],
    )
    def test_valid_emails(self, email, expected):
        assert validate_email(email) == expected

    @pytest.mark.parametrize("email", ["", "plain", "a@b", "@example.com", "a b@example.com"])
    def test_invalid_emails(self, email):
        with pytest.raises(InvalidEmailError):
            validate_email(email)

    def test_password_length(self):
        validate_password("12345678")
        with pytest.raises(WeakPasswordError) as exc_info:
            validate_password("1234567")
        assert exc_info.value.code == "WEAK_PASSWORD"


class TestSignUp:
    @pytest.mark.asyncio
    async def test_creates_profile_with_defaults(self, accounts, profiles, sessions, clock):
        result, session = await accounts.sign_up("New@Example.com", PASSWORD, "New User")

        assert result.email == "new@example.com"
        assert result.redirect_to == "/dashboard"

        profile = await profiles.get_profile(result.user_id)
        assert profile.tier == SubscriptionTier.FREE
        assert profile.quota_used == 0
        assert profile.quota_limit == 50
        assert profile.full_name == "New User"
        assert profile.trial_started_at == clock.now

        assert (await sessions.resolve(session.id)).auth_user_id == result.user_id

    @pytest.mark.asyncio
    async def test_duplicate_email(self, accounts, identity_provider):
        await accounts.sign_up("dup@example.com", PASSWORD)

        with pytest.raises(EmailAlreadyExistsError) as exc_info:
            await accounts.sign_up("DUP@example.com", PASSWORD)

        assert exc_info.value.code == "USER_ALREADY_EXISTS"
        assert len(identity_provider.users) == 1

    @pytest.mark.asyncio
    async def test_provider_duplicate_without_profile(self, accounts, identity_provider, profiles):
        """The provider knows the email even though no profile exists."""
        await identity_provider.sign_up("orphan@example.com", PASSWORD)

        with pytest.raises(EmailAlreadyExistsError):
            await accounts.sign_up("orphan@example.com", PASSWORD)
        assert await profiles.find_by_email("orphan@example.com") is None

    @pytest.mark.asyncio
    async def test_validation_runs_before_provider(self, accounts, identity_provider):
        with pytest.raises(WeakPasswordError):
            await accounts.sign_up("user@example.com", "short")
        with pytest.raises(InvalidEmailError):
            await accounts.sign_up("not-an-email", PASSWORD)
        assert identity_provider.users == {}


class TestSignIn:
    @pytest.mark.asyncio
    async def test_records_login(self, accounts, profiles, clock):
        signup, _ = await accounts.sign_up("user@example.com", PASSWORD)
        clock.advance(hours=3)

        result, session = await accounts.sign_in("user@example.com", PASSWORD)

        assert result.user_id == signup.user_id
        assert result.access_token == f"access-{signup.user_id}"
        assert session.auth_user_id == signup.user_id
        profile = await profiles.get_profile(signup.user_id)
        assert profile.last_activity_at == clock.now

    @pytest.mark.asyncio
    async def test_wrong_password(self, accounts):
        await accounts.sign_up("user@example.com", PASSWORD)
        with pytest.raises(InvalidCredentialsError):
            await accounts.sign_in("user@example.com", "nope-nope-nope")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("email,password", [("", PASSWORD), ("user@example.com", "")])
    async def test_missing_credentials(self, accounts, email, password):
        with pytest.raises(InvalidCredentialsError):
            await accounts.sign_in(email, password)

    @pytest.mark.asyncio
    async def test_creates_missing_profile(self, accounts, identity_provider, profiles):
        identity = await identity_provider.sign_up("legacy@example.com", PASSWORD)

        await accounts.sign_in("legacy@example.com", PASSWORD)

        profile = await profiles.get_profile(identity.user_id)
        assert profile.email == "legacy@example.com"

    @pytest.mark.asyncio
    async def test_changed_email_uses_existing_profile(self, accounts, identity_provider, profiles, clock):
        signup, _ = await accounts.sign_up("old@example.com", PASSWORD)
        identity_provider.users["new@example.com"] = identity_provider.users.pop("old@example.com")
        clock.advance(hours=1)

        result, _ = await accounts.sign_in("new@example.com", PASSWORD)

        assert result.user_id == signup.user_id
        profile = await profiles.get_profile(signup.user_id)
        assert profile.last_activity_at == clock.now


class TestSignOut:
    @pytest.mark.asyncio
    async def test_revokes_session(self, accounts, sessions, identity_provider):
        _, session = await accounts.sign_up("user@example.com", PASSWORD)

        await accounts.sign_out(session.id)

        assert await sessions.resolve(session.id) is None
        assert identity_provider.signed_out == []

    @pytest.mark.asyncio
    async def test_ends_provider_session_with_token(self, accounts, identity_provider):
        _, session = await accounts.sign_up("user@example.com", PASSWORD)
        await accounts.sign_out(session.id, "provider-token")
        assert identity_provider.signed_out == ["provider-token"]

    @pytest.mark.asyncio
    async def test_repeated_sign_out(self, accounts):
        _, session = await accounts.sign_up("user@example.com", PASSWORD)
        await accounts.sign_out(session.id)
        await accounts.sign_out(session.id)
        await accounts.sign_out(None)


class TestEmailExists:
    @pytest.mark.asyncio
    async def test_email_exists(self, accounts):
        assert await accounts.email_exists("user@example.com") is False
        await accounts.sign_up("user@example.com", PASSWORD)
        assert await accounts.email_exists(" USER@example.com") is True
