"""Fixtures for profile tests."""

import pytest
from datetime import timedelta

from modules.profiles import InMemoryProfileRepository, Profile, ProfileService, SubscriptionTier


@pytest.fixture
def make_profile(clock):
    """Factory for a free-tier profile created now with no trial started."""

    def _make(created_at=None, **overrides) -> Profile:
        created_at = created_at or clock.now
        data = {
            "id": "profile-1",
            "auth_user_id": "user-1",
            "email": "user@example.com",
            "tier": SubscriptionTier.FREE,
            "quota_used": 0,
            "quota_limit": 50,
            "created_at": created_at,
            "updated_at": created_at,
        }
        data.update(overrides)
        return Profile(**data)

    return _make


@pytest.fixture
def with_trial(make_profile, clock):
    """Factory for a profile whose 7-day trial ends ``days_left`` days from now."""

    def _make(days_left: float = 7, **overrides) -> Profile:
        expires_at = clock.now + timedelta(days=days_left)
        return make_profile(
            trial_started_at=expires_at - timedelta(days=7),
            trial_expires_at=expires_at,
            **overrides,
        )

    return _make


@pytest.fixture
def repository():
    return InMemoryProfileRepository()


@pytest.fixture
def service(repository, clock):
    return ProfileService(repository, clock=clock)
