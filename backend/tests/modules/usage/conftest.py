"""
Pytest fixtures for usage module tests.

The usage service runs against an in-memory profile service whose
clock the tests control.
"""

import pytest
from datetime import timedelta

from modules.profiles import InMemoryProfileRepository, Profile, ProfileService
from modules.usage import AuditService, UsageService


@pytest.fixture
def profile_repository():
    return InMemoryProfileRepository()


@pytest.fixture
def profile_service(profile_repository, clock):
    return ProfileService(profile_repository, clock=clock)


@pytest.fixture
def profile(profile_repository, clock):
    """A freshly signed-up user with 50 requests of quota."""
    return profile_repository.insert(
        Profile(
            id="profile-123",
            auth_user_id="user-123",
            email="user@example.com",
            trial_started_at=clock.now,
            trial_expires_at=clock.now + timedelta(days=7),
            quota_limit=50,
            created_at=clock.now,
            updated_at=clock.now,
        )
    )


@pytest.fixture
def usage_service(profile_service, clock):
    """Create a fresh usage service instance."""
    return UsageService(profile_service, clock=clock)


@pytest.fixture
def audit_service():
    return AuditService()
