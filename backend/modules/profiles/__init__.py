"""
Profiles module.

User records keyed by Supabase Auth UID: subscription tier, free trial,
request quota and Telegram link.

Public API:
- IProfileService: Interface for profile operations
- ProfileService: Implementation over a profile repository
- trial: Trial and access rules
"""

from .interfaces import IProfileService, IProfileRepository
from .models import (
    AccessLevel,
    AccessStatus,
    Profile,
    ProfileResponse,
    SubscriptionTier,
    TrialStartResponse,
    TrialStatus,
)
from .exceptions import (
    ProfileNotFoundError,
    ProfileAlreadyExistsError,
    TrialNotAvailableError,
)
from .repository import InMemoryProfileRepository, SupabaseProfileRepository
from .service import ProfileService, normalize_email

__all__ = [
    # Interfaces
    "IProfileService",
    "IProfileRepository",
    # Models
    "AccessLevel",
    "AccessStatus",
    "Profile",
    "ProfileResponse",
    "SubscriptionTier",
    "TrialStartResponse",
    "TrialStatus",
    # Exceptions
    "ProfileNotFoundError",
    "ProfileAlreadyExistsError",
    "TrialNotAvailableError",
    # Implementation
    "InMemoryProfileRepository",
    "SupabaseProfileRepository",
    "ProfileService",
    "normalize_email",
]
