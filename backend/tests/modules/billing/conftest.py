"""Fixtures for billing tests."""

import pytest
from datetime import timedelta

from modules.billing import BillingService
from modules.profiles import InMemoryProfileRepository, Profile, ProfileService
from shared.config import Settings


@pytest.fixture
def stripe_settings():
    return Settings(
        _env_file=None,
        stripe_secret_key="sk_test_dummy",
        stripe_webhook_secret="whsec_dummy",
        stripe_price_starter="price_starter",
        stripe_price_pro="price_pro",
        stripe_price_enterprise="price_enterprise",
    )


@pytest.fixture
def profile_repository():
    return InMemoryProfileRepository()


@pytest.fixture
def profiles(profile_repository, clock):
    return ProfileService(profile_repository, clock=clock)


@pytest.fixture
def profile(profile_repository, clock):
    return profile_repository.insert(
        Profile(
            id="profile-1",
            auth_user_id="user-1",
            email="user@example.com",
            trial_started_at=clock.now,
            trial_expires_at=clock.now + timedelta(days=7),
            quota_used=12,
            quota_limit=50,
            created_at=clock.now,
            updated_at=clock.now,
        )
    )


@pytest.fixture
def service(profiles, stripe_settings):
    return BillingService(profiles, settings=stripe_settings)
